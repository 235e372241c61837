"""Signature facts for controller methods.

Building a ``ControllerReflection`` walks the class once and resolves every
method's type hints; the route table memoizes the result per class.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import typing
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger("autoroute.reflection")

_EMPTY = inspect.Parameter.empty


@dataclass(frozen=True)
class ParamInfo:
    name: str
    annotation: Any = None  # resolved type, None when missing or unresolvable
    has_default: bool = False
    default: Any = None

    @property
    def is_path_candidate(self) -> bool:
        # exactly int or str; bool subclasses int and is excluded on purpose
        return self.annotation is int or self.annotation is str


@dataclass(frozen=True)
class MethodReflection:
    name: str
    func: Any
    parameters: tuple[ParamInfo, ...]

    @property
    def path_parameters(self) -> list[ParamInfo]:
        return [p for p in self.parameters if p.is_path_candidate]


@dataclass(frozen=True)
class ControllerReflection:
    class_name: str
    cls: type
    methods: dict[str, MethodReflection]

    def method(self, name: str) -> Optional[MethodReflection]:
        return self.methods.get(name)


def load_class(class_name: str) -> type:
    """Import ``pkg.module.Class`` (nested qualnames allowed)."""
    parts = class_name.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj: Any = importlib.import_module(module_name)
        except ModuleNotFoundError:
            continue
        for attr in parts[split:]:
            obj = getattr(obj, attr)
        if not isinstance(obj, type):
            raise TypeError(f"{class_name} is not a class")
        return obj
    raise ModuleNotFoundError(f"no importable module for {class_name}")


def _type_hints(func: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(func)
    except Exception as exc:  # unresolvable forward refs: fall back to raw annotations
        logger.debug("cannot resolve type hints of %r: %s", func, exc)
        raw = getattr(func, "__annotations__", {}) or {}
        return {k: v for k, v in raw.items() if not isinstance(v, str)}


def reflect_method(name: str, member: Any) -> Optional[MethodReflection]:
    func = getattr(member, "__func__", member)
    if not inspect.isfunction(func):
        return None

    hints = _type_hints(func)
    params: list[ParamInfo] = []
    skip_first = not isinstance(member, staticmethod)
    for i, p in enumerate(inspect.signature(func).parameters.values()):
        if i == 0 and skip_first and p.name in ("self", "cls"):
            continue
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        params.append(
            ParamInfo(
                name=p.name,
                annotation=hints.get(p.name),
                has_default=p.default is not _EMPTY,
                default=None if p.default is _EMPTY else p.default,
            )
        )
    return MethodReflection(name=name, func=func, parameters=tuple(params))


def reflect_controller(class_name: str, cls: Optional[type] = None) -> ControllerReflection:
    if cls is None:
        cls = load_class(class_name)

    methods: dict[str, MethodReflection] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            reflected = reflect_method(name, member)
            if reflected is not None:
                methods[name] = reflected

    return ControllerReflection(class_name=class_name, cls=cls, methods=methods)

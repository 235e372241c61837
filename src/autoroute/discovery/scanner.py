from __future__ import annotations

import importlib
import logging
import pkgutil
from collections.abc import Iterable, Iterator
from types import ModuleType

from autoroute.discovery.ignore import should_ignore_module
from autoroute.discovery.markers import controller_annotations_of, mappings_of
from autoroute.domain.metadata import ControllerMetadata
from autoroute.domain.models import Mapping

logger = logging.getLogger("autoroute.scanner")


def _iter_class_members(cls: type) -> Iterable[tuple[str, object]]:
    # base classes first so overrides keep the base's position
    seen: dict[str, object] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            seen[name] = member
    return seen.items()


def scan_class(cls: type) -> ControllerMetadata | None:
    """Read the markers of one class; None when it is not a controller."""
    class_annotations = controller_annotations_of(cls)
    if not class_annotations:
        return None

    method_annotations: dict[str, tuple[Mapping, ...]] = {}
    for name, member in _iter_class_members(cls):
        mappings = mappings_of(member)
        if mappings:
            method_annotations[name] = mappings

    return ControllerMetadata.for_class(cls, class_annotations, method_annotations)


def scan_classes(classes: Iterable[type]) -> list[ControllerMetadata]:
    out: list[ControllerMetadata] = []
    for cls in classes:
        meta = scan_class(cls)
        if meta is not None:
            out.append(meta)
    return out


def scan_module(module: ModuleType) -> list[ControllerMetadata]:
    """Controllers defined in ``module`` itself (not the ones it imports)."""
    classes = [
        obj
        for obj in vars(module).values()
        if isinstance(obj, type) and obj.__module__ == module.__name__
    ]
    return scan_classes(classes)


def _import_tree(package: ModuleType, root: str) -> Iterator[ModuleType]:
    # ignored packages are pruned before import, so their __init__ never runs
    prefix = package.__name__ + "."
    for info in sorted(pkgutil.iter_modules(package.__path__, prefix=prefix), key=lambda i: i.name):
        if should_ignore_module(info.name[len(root) + 1 :]):
            continue
        module = importlib.import_module(info.name)
        yield module
        if info.ispkg:
            yield from _import_tree(module, root)


def scan_package(package: str, max_modules: int | None = None) -> list[ControllerMetadata]:
    """
    Import ``package`` and every sub-module under it and collect controllers.

    Modules named like tests/migrations are skipped. Import errors propagate:
    a package that cannot be imported has no trustworthy route table.
    """
    root = importlib.import_module(package)
    modules: list[ModuleType] = [root]

    if hasattr(root, "__path__"):
        for module in _import_tree(root, package):
            if max_modules is not None and len(modules) >= max_modules:
                break
            modules.append(module)

    out: list[ControllerMetadata] = []
    for module in modules:
        found = scan_module(module)
        if found:
            logger.debug("%s: %d controller(s)", module.__name__, len(found))
        out.extend(found)
    return out

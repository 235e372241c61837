"""Turn controller metadata into resolved routes.

Path precedence for a method: explicit ``path`` on its mapping, then the
REST convention for its name and verb, then a path synthesized from its
parameters. The controller prefix is either explicit or derived from the
qualified class name::

    app.controllers.UserController            -> /users
    app.controllers.admin.user.UserPostController -> /admin/user-posts
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from autoroute.config import RouteSettings
from autoroute.conventions import table as conventions
from autoroute.domain.metadata import ControllerMetadata
from autoroute.domain.models import ControllerAnnotation, Mapping, ResolvedRoute
from autoroute.errors import ConfigurationError, ConflictAnnotationError
from autoroute.introspect.reflection import ControllerReflection, MethodReflection
from autoroute.resolve.synthesizer import synthesize_path
from autoroute.text.transform import (
    camel_to_kebab,
    humanize_class_name,
    join_path,
    normalize_path,
    pluralize,
)

logger = logging.getLogger("autoroute.resolver")

SELF_PATH_MARKER = "/_self_path"
_SELF_PATH_SEGMENT = re.compile(re.escape(SELF_PATH_MARKER) + r"(?=/|$)")
_GROUPING_SEGMENTS = {"controller", "controllers"}
_FALSY_DEPRECATION = {"", "0", "false", "no"}


@dataclass(frozen=True)
class LintWarning:
    """An action named like a convention but annotated with another verb."""

    controller: str
    action: str
    verb: str
    expected_verb: str

    @property
    def message(self) -> str:
        return (
            f"{self.controller}::{self.action} is annotated {self.verb} but the "
            f"'{self.action}' convention expects {self.expected_verb}; path was synthesized"
        )


@dataclass(frozen=True)
class ControllerResolution:
    class_name: str
    routes: tuple[ResolvedRoute, ...]
    warnings: tuple[LintWarning, ...] = ()


def get_prefix(class_name: str, explicit_prefix: str = "", service: Optional[str] = None) -> str:
    if explicit_prefix:
        return explicit_prefix if explicit_prefix.startswith("/") else "/" + explicit_prefix

    *modules, short = class_name.split(".")
    namespace: list[str] = []
    for i, segment in enumerate(modules):
        if segment.lower() in _GROUPING_SEGMENTS:
            # segments between the grouping package and the defining module
            namespace = modules[i + 1 : -1]
            break

    if short.endswith("Controller") and short != "Controller":
        short = short[: -len("Controller")]

    segments = [camel_to_kebab(s) for s in [service or "", *namespace, short] if s]
    if not segments:
        return "/"
    segments[-1] = pluralize(segments[-1])
    return normalize_path("/".join(segments))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class RouteResolver:
    def __init__(self, settings: Optional[RouteSettings] = None) -> None:
        self.settings = settings or RouteSettings()

    # ----------------------------
    # Controller level
    # ----------------------------

    def controller_annotation(self, metadata: ControllerMetadata) -> ControllerAnnotation:
        annotations = list(metadata.class_annotations.values())
        if not annotations:
            raise ConfigurationError(f"{metadata.class_name} has no controller annotation")
        if len(annotations) > 1:
            kinds = " and ".join(sorted(type(a).__name__ for a in annotations))
            raise ConflictAnnotationError(metadata.class_name, f"{kinds} cannot be used together")
        return annotations[0]

    def controller_prefix(self, class_name: str, annotation: ControllerAnnotation) -> str:
        prefix = get_prefix(class_name, annotation.prefix, annotation.service)
        if annotation.kind == "admin" and self.settings.admin_prefix:
            prefix = normalize_path(join_path(self.settings.admin_prefix, prefix))
        return prefix

    def controller_middleware(self, annotation: ControllerAnnotation) -> list[str]:
        middleware = _as_list(annotation.options.get("middleware"))
        if annotation.kind == "admin":
            middleware += self.settings.admin_middleware
        return _unique(middleware)

    def resolve_controller(
        self,
        metadata: ControllerMetadata,
        reflection: ControllerReflection,
    ) -> ControllerResolution:
        annotation = self.controller_annotation(metadata)
        prefix = self.controller_prefix(metadata.class_name, annotation)

        routes: list[ResolvedRoute] = []
        warnings: list[LintWarning] = []
        for action, mappings in metadata.method_annotations.items():
            if action.startswith("_") or not mappings:
                continue
            if len(mappings) > 1:
                verbs = ", ".join(m.verb.value for m in mappings)
                raise ConflictAnnotationError(
                    metadata.class_name, f"method {action} carries several mappings ({verbs})"
                )
            method = reflection.method(action)
            if method is None:
                raise ConfigurationError(
                    f"{metadata.class_name}.{action} has a route mapping but is not a method"
                )

            route, warning = self.resolve_route(
                metadata.class_name, method, mappings[0], annotation, prefix
            )
            routes.append(route)
            if warning is not None:
                warnings.append(warning)

        return ControllerResolution(
            class_name=metadata.class_name, routes=tuple(routes), warnings=tuple(warnings)
        )

    # ----------------------------
    # Method level
    # ----------------------------

    def resolve_route(
        self,
        class_name: str,
        method: MethodReflection,
        mapping: Mapping,
        controller: ControllerAnnotation,
        prefix: str,
    ) -> tuple[ResolvedRoute, Optional[LintWarning]]:
        action = method.name
        verb = mapping.verb
        warning: Optional[LintWarning] = None
        smart_path = False

        if mapping.path is not None:
            route_path = mapping.path
        else:
            template = conventions.lookup(action, verb)
            if template is not None:
                route_path = template
            else:
                warning = self._convention_mismatch(class_name, action, mapping)
                route_path = synthesize_path(
                    action, method.parameters, self.settings.numeric_constraints
                )
                smart_path = True

        if route_path == "":
            path = prefix
        elif not route_path.startswith("/"):
            path = join_path(prefix, route_path)
        else:
            path = prefix + route_path
        path = normalize_path(_SELF_PATH_SEGMENT.sub("", path))

        controller_middleware = self.controller_middleware(controller)
        method_middleware = _as_list(mapping.options.get("middleware")) + mapping.middleware
        middleware = tuple(_unique(controller_middleware + method_middleware))
        options = deep_merge(controller.options, mapping.options)
        options["middleware"] = middleware

        route = ResolvedRoute(
            path=path,
            methods=mapping.methods,
            controller=class_name,
            action=action,
            name=f"{class_name}::{action}",
            server=controller.server or self.settings.default_server,
            route_name=mapping.name,
            middleware=middleware,
            options=options,
            summary=mapping.summary or conventions.summary_for(verb, action) or action,
            description=mapping.description or "",
            deprecated=(mapping.deprecated or "").strip().lower() not in _FALSY_DEPRECATION,
            tags=(controller.tag,) if controller.tag else (humanize_class_name(class_name),),
            security=controller.security and mapping.security,
            user_open=controller.user_open or mapping.user_open,
            restful=conventions.is_restful(action),
            smart_path=smart_path,
        )
        return route, warning

    def _convention_mismatch(
        self, class_name: str, action: str, mapping: Mapping
    ) -> Optional[LintWarning]:
        expected = conventions.expected_verb(action)
        if expected is None or expected == mapping.verb:
            return None
        warning = LintWarning(
            controller=class_name,
            action=action,
            verb=mapping.verb.value,
            expected_verb=expected.value,
        )
        if self.settings.lint_convention_mismatch:
            logger.warning(warning.message)
        return warning

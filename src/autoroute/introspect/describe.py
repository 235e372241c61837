"""Second-phase route details: parameters and request bodies.

Resolved routes only carry cheap fields. These helpers look at the handler
signature again when a consumer (docs generator, debug listing) asks for
more; ``RouteTable`` memoizes the results per route.
"""

from __future__ import annotations

import re
import types
import typing
from typing import Any, Optional

from pydantic import BaseModel

from autoroute.domain.models import ParamSpec, RequestBodySpec, ResolvedRoute
from autoroute.introspect.reflection import MethodReflection, ParamInfo

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)(?::[^}]*)?\}")

_SCALAR_TYPES: dict[Any, str] = {
    int: "integer",
    float: "number",
    bool: "boolean",
    str: "string",
    list: "array",
    tuple: "array",
}

_DESCRIPTIONS = {
    "id": "Identifier",
    "uuid": "UUID identifier",
    "code": "Code",
    "key": "Key",
    "page": "Page number",
    "size": "Page size",
    "limit": "Maximum number of results",
    "offset": "Result offset",
    "sort": "Sort field",
    "order": "Sort direction",
}


def path_placeholders(path: str) -> list[str]:
    return _PLACEHOLDER.findall(path)


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """(inner type, was optional)."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(annotation)) == 2:
            return args[0], True
    return annotation, False


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _data_type(annotation: Any) -> Optional[str]:
    if annotation is None:
        return "string"
    origin = typing.get_origin(annotation)
    if origin in (list, tuple, set):
        return "array"
    return _SCALAR_TYPES.get(annotation)


def describe_param(name: str) -> str:
    return _DESCRIPTIONS.get(name, name[:1].upper() + name[1:])


def describe_parameters(route: ResolvedRoute, method: MethodReflection) -> list[ParamSpec]:
    placeholders = path_placeholders(route.path)
    by_name: dict[str, ParamInfo] = {p.name: p for p in method.parameters}

    out: list[ParamSpec] = []
    for name in placeholders:
        param = by_name.get(name)
        out.append(
            ParamSpec(
                name=name,
                location="path",
                type=_data_type(param.annotation if param else None) or "string",
                required=True,
                description=describe_param(name),
            )
        )

    for param in method.parameters:
        if param.name in placeholders:
            continue
        inner, optional = _unwrap_optional(param.annotation)
        if _is_model(inner):
            continue
        data_type = _data_type(inner)
        if data_type is None:
            # services, requests and other injected objects
            continue
        out.append(
            ParamSpec(
                name=param.name,
                location="query",
                type=data_type,
                required=not (param.has_default or optional),
                description=describe_param(param.name),
            )
        )
    return out


def describe_request_body(route: ResolvedRoute, method: MethodReflection) -> Optional[RequestBodySpec]:
    for param in method.parameters:
        inner, optional = _unwrap_optional(param.annotation)
        if not _is_model(inner):
            continue
        schema = inner.model_json_schema()
        return RequestBodySpec(
            model=inner.__name__,
            required=not (param.has_default or optional),
            description=schema.get("description", ""),
            properties=schema.get("properties", {}),
            required_fields=list(schema.get("required", [])),
            json_schema=schema,
        )
    return None

"""Derive a path template from a method's parameter shape.

Used only when a method has no explicit path and no convention match.

Examples (relative to the controller prefix)::

    custom_action(id: int)                 -> /{id}/custom-action
    user_post(user_id: int, post_id: int)  -> /{user_id}/user-post/{post_id}
    find_by_code(code: str)                -> /find-by-code/{code}   (filter beats id name)
    rename(key: str)                       -> /{key}/rename
    compare(a: str, b: str)                -> /compare/{a}/{b}
    compare_versions(id: int, v1: str, v2: str) -> /compare-versions/{id}/{v1}/{v2}
"""

from __future__ import annotations

from collections.abc import Sequence

from autoroute.introspect.reflection import ParamInfo
from autoroute.text.transform import camel_to_kebab

RESOURCE_ID_NAMES = ("id", "Id", "ID", "uuid", "code", "key")
FILTER_PREFIXES = ("by", "findBy", "getBy", "searchBy", "filterBy")


def is_resource_id(param_name: str) -> bool:
    """id, uuid, code, key, or a name ending in one of them (userId, order_id)."""
    return param_name in RESOURCE_ID_NAMES or param_name.endswith(RESOURCE_ID_NAMES)


def is_filter_action(action: str) -> bool:
    folded = action.replace("_", "").lower()
    return any(folded.startswith(prefix.lower()) for prefix in FILTER_PREFIXES)


def _placeholder(param: ParamInfo, numeric_constraints: bool) -> str:
    if numeric_constraints and param.annotation is int:
        return "{" + param.name + r":\d+}"
    return "{" + param.name + "}"


def synthesize_path(
    action: str,
    parameters: Sequence[ParamInfo],
    numeric_constraints: bool = False,
) -> str:
    segment = camel_to_kebab(action)
    path_params = [p for p in parameters if p.is_path_candidate]
    slots = [_placeholder(p, numeric_constraints) for p in path_params]

    if not path_params:
        return f"/{segment}"

    if len(path_params) == 1:
        if is_filter_action(action):
            return f"/{segment}/{slots[0]}"
        # resource ids and plain values both precede the action
        return f"/{slots[0]}/{segment}"

    if len(path_params) == 2:
        if is_resource_id(path_params[0].name):
            return f"/{slots[0]}/{segment}/{slots[1]}"
        return f"/{segment}/{slots[0]}/{slots[1]}"

    return f"/{segment}/" + "/".join(slots)

"""Marker decorators for routed classes and methods.

Decoration only records an annotation on the target; nothing is registered
anywhere until a scanner reads the markers back::

    @api_controller(tag="Users")
    class UserController:
        @get()
        def show(self, id: int): ...

        @post(path="/login", security=False)
        def login(self, form: LoginForm): ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from autoroute.domain.models import (
    AdminController,
    ApiController,
    ControllerAnnotation,
    HttpVerb,
    Mapping,
)

__all__ = [
    "api_controller",
    "admin_controller",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "controller_annotations_of",
    "mappings_of",
]

CONTROLLER_MARKER = "__autoroute_controllers__"
MAPPING_MARKER = "__autoroute_mappings__"

C = TypeVar("C", bound=type)
F = TypeVar("F", bound=Callable[..., Any])


def _controller_decorator(annotation: ControllerAnnotation) -> Callable[[C], C]:
    def decorator(cls: C) -> C:
        # read from the class's own __dict__ so subclasses don't inherit markers
        markers = dict(vars(cls).get(CONTROLLER_MARKER, {}))
        markers[type(annotation)] = annotation
        setattr(cls, CONTROLLER_MARKER, markers)  # noqa: B010
        return cls

    return decorator


def api_controller(**fields: Any) -> Callable[[C], C]:
    """Mark a class as an API controller. Keyword arguments are ``ApiController`` fields."""
    return _controller_decorator(ApiController(**fields))


def admin_controller(**fields: Any) -> Callable[[C], C]:
    """Mark a class as an admin controller. Keyword arguments are ``AdminController`` fields."""
    return _controller_decorator(AdminController(**fields))


def _mapping_decorator(verb: HttpVerb, path: str | None, fields: dict[str, Any]) -> Callable[[F], F]:
    if "verb" in fields or "methods" in fields:
        raise TypeError("the HTTP verb is fixed by the decorator and cannot be overridden")
    mapping = Mapping(verb=verb, path=path, **fields)

    def decorator(func: F) -> F:
        target = getattr(func, "__func__", func)
        markers = list(getattr(target, MAPPING_MARKER, ()))
        markers.append(mapping)
        setattr(target, MAPPING_MARKER, tuple(markers))  # noqa: B010
        return func

    return decorator


def get(path: str | None = None, **fields: Any) -> Callable[[F], F]:
    return _mapping_decorator(HttpVerb.GET, path, fields)


def post(path: str | None = None, **fields: Any) -> Callable[[F], F]:
    return _mapping_decorator(HttpVerb.POST, path, fields)


def put(path: str | None = None, **fields: Any) -> Callable[[F], F]:
    return _mapping_decorator(HttpVerb.PUT, path, fields)


def patch(path: str | None = None, **fields: Any) -> Callable[[F], F]:
    return _mapping_decorator(HttpVerb.PATCH, path, fields)


def delete(path: str | None = None, **fields: Any) -> Callable[[F], F]:
    return _mapping_decorator(HttpVerb.DELETE, path, fields)


def controller_annotations_of(cls: type) -> dict[type[ControllerAnnotation], ControllerAnnotation]:
    return dict(vars(cls).get(CONTROLLER_MARKER, {}))


def mappings_of(func: Any) -> tuple[Mapping, ...]:
    target = getattr(func, "__func__", func)
    return tuple(getattr(target, MAPPING_MARKER, ()))

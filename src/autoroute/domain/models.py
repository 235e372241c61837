from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


def as_verb(value: HttpVerb | str) -> HttpVerb:
    if isinstance(value, HttpVerb):
        return value
    return HttpVerb(value.strip().upper())


class _Annotation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ControllerAnnotation(_Annotation):
    """Class-level routing annotation.

    ``ignore`` and ``generate`` are reserved hints carried for other tools;
    route resolution does not read them.
    """

    kind: Literal["api", "admin"] = "api"
    prefix: str = ""
    server: str = "http"
    service: Optional[str] = None
    tag: Optional[str] = None
    description: str = ""
    security: bool = True
    user_open: bool = False
    options: dict[str, Any] = Field(default_factory=dict)
    ignore: list[str] = Field(default_factory=list)
    generate: list[str] = Field(default_factory=list)


class ApiController(ControllerAnnotation):
    kind: Literal["api"] = "api"


class AdminController(ControllerAnnotation):
    """Back-office controller: also gets the configured admin prefix and middleware."""

    kind: Literal["admin"] = "admin"


CONTROLLER_KINDS: tuple[type[ControllerAnnotation], ...] = (ApiController, AdminController)


class Mapping(_Annotation):
    """Method-level routing annotation.

    One variant per HTTP verb; the verb is fixed when the annotation is made
    and ``methods`` is derived from it, never stored.
    """

    verb: HttpVerb
    path: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: Optional[str] = None
    security: bool = True
    user_open: bool = True
    options: dict[str, Any] = Field(default_factory=dict)
    name: Optional[str] = None
    middleware: list[str] = Field(default_factory=list)

    @property
    def methods(self) -> list[str]:
        return [self.verb.value]


class ResolvedRoute(BaseModel):
    """One table entry. Sequences are tuples so cached routes can be shared."""

    model_config = ConfigDict(frozen=True)

    path: str
    methods: tuple[str, ...]
    controller: str
    action: str
    name: str
    server: str = "http"
    route_name: Optional[str] = None
    middleware: tuple[str, ...] = ()
    options: dict[str, Any] = Field(default_factory=dict)
    summary: str = ""
    description: str = ""
    deprecated: bool = False
    tags: tuple[str, ...] = ()
    security: bool = True
    user_open: bool = False
    restful: bool = False
    smart_path: bool = False


class ParamSpec(BaseModel):
    name: str
    location: Literal["path", "query"] = "query"
    type: str = "string"
    required: bool = True
    description: str = ""


class RequestBodySpec(BaseModel):
    model: str
    required: bool = True
    description: str = ""
    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required_fields: list[str] = Field(default_factory=list)
    json_schema: dict[str, Any] = Field(default_factory=dict)

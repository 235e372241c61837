"""autoroute exception hierarchy.

Shared by the scanner, resolver and route table so callers can catch one
base type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Sequence

if TYPE_CHECKING:
    from autoroute.domain.models import ResolvedRoute


class AutorouteError(Exception):
    """Base for all autoroute errors."""


class ConfigurationError(AutorouteError):
    """Annotation values that cannot be turned into routes."""


class ConflictAnnotationError(ConfigurationError):
    """Mutually exclusive annotations were combined on one class or method."""

    def __init__(self, class_name: str, detail: str) -> None:
        self.class_name = class_name
        self.detail = detail
        super().__init__(f"{detail} in {class_name}")


class ControllerResolutionError(AutorouteError):
    """Resolving a single controller class failed.

    Always attributed to one class; other classes keep resolving.
    """

    def __init__(self, class_name: str, cause: BaseException) -> None:
        self.class_name = class_name
        self.cause = cause
        super().__init__(f"cannot resolve routes for {class_name}: {cause}")


class RouteCollectionError(AutorouteError):
    """One or more controllers failed during a full collection pass.

    ``failures`` maps class name to the error raised for it. ``routes`` holds
    the routes of every class that did resolve, for callers that want to
    degrade explicitly.
    """

    def __init__(
        self,
        failures: Mapping[str, ControllerResolutionError],
        routes: Sequence["ResolvedRoute"] = (),
    ) -> None:
        self.failures = dict(failures)
        self.routes = list(routes)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"route collection failed for {len(self.failures)} controller(s): {names}")


class DuplicateRouteError(AutorouteError):
    """Two routes claim the same server, verb and path under the ``error`` policy."""

    def __init__(self, server: str, verb: str, path: str, first: str, second: str) -> None:
        self.server = server
        self.verb = verb
        self.path = path
        super().__init__(
            f"duplicate route {verb} {path} on server {server!r}: {first} and {second}"
        )

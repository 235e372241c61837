from __future__ import annotations

import gc
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from autoroute.config import DuplicatePolicy, RouteSettings
from autoroute.domain.metadata import ControllerMetadata, qualified_name
from autoroute.domain.models import ParamSpec, RequestBodySpec, ResolvedRoute
from autoroute.errors import (
    ControllerResolutionError,
    DuplicateRouteError,
    RouteCollectionError,
)
from autoroute.introspect import describe
from autoroute.introspect.reflection import (
    ControllerReflection,
    MethodReflection,
    reflect_controller,
)
from autoroute.resolve.resolver import ControllerResolution, LintWarning, RouteResolver

logger = logging.getLogger("autoroute.table")

ControllerRef = Union[str, type]


@dataclass
class RouteIndex:
    """Secondary lookups built in one pass over the final route list."""

    by_path: dict[str, list[ResolvedRoute]] = field(default_factory=dict)
    by_controller: dict[str, list[ResolvedRoute]] = field(default_factory=dict)
    by_tag: dict[str, list[ResolvedRoute]] = field(default_factory=dict)
    by_method: dict[str, list[ResolvedRoute]] = field(default_factory=dict)
    restful: list[ResolvedRoute] = field(default_factory=list)

    @classmethod
    def build(cls, routes: Iterable[ResolvedRoute]) -> "RouteIndex":
        index = cls()
        for route in routes:
            index.by_path.setdefault(route.path, []).append(route)
            index.by_controller.setdefault(route.controller, []).append(route)
            for tag in route.tags:
                index.by_tag.setdefault(tag, []).append(route)
            for method in route.methods:
                index.by_method.setdefault(method, []).append(route)
            if route.restful:
                index.restful.append(route)
        return index


def _class_name(ref: ControllerRef) -> str:
    return ref if isinstance(ref, str) else qualified_name(ref)


class RouteTable:
    """Resolved route table with per-class caches and lookup indexes.

    Lifecycle: construct empty, populate on first access (or call
    ``collect_routes()`` at startup), read many times, ``clear_cache()`` or
    ``register()`` again after reloading controller classes.

    All cache mutation happens under one lock, so concurrent first callers
    resolve the table exactly once and never observe a partial build.
    """

    def __init__(
        self,
        controllers: Iterable[ControllerMetadata] = (),
        settings: Optional[RouteSettings] = None,
        resolver: Optional[RouteResolver] = None,
    ) -> None:
        self.settings = settings or RouteSettings()
        self.resolver = resolver or RouteResolver(self.settings)
        self._lock = threading.RLock()
        self._controllers: OrderedDict[str, ControllerMetadata] = OrderedDict()
        for meta in controllers:
            self._controllers[meta.class_name] = meta
        self._reset()

    def _reset(self) -> None:
        self._populated = False
        self._route_cache: list[ResolvedRoute] = []
        self._controller_cache: OrderedDict[str, ControllerResolution] = OrderedDict()
        self._reflection_cache: OrderedDict[str, ControllerReflection] = OrderedDict()
        self._index = RouteIndex()
        self._parameter_cache: dict[str, list[ParamSpec]] = {}
        self._body_cache: dict[str, Optional[RequestBodySpec]] = {}

    # ----------------------------
    # Registry
    # ----------------------------

    @property
    def controllers(self) -> list[ControllerMetadata]:
        return list(self._controllers.values())

    def register(self, metadata: ControllerMetadata) -> None:
        """Add or replace a controller; invalidates every cache."""
        with self._lock:
            self._controllers[metadata.class_name] = metadata
            self._reset()

    def unregister(self, controller: ControllerRef) -> None:
        with self._lock:
            self._controllers.pop(_class_name(controller), None)
            self._reset()

    # ----------------------------
    # Resolution
    # ----------------------------

    def _reflection(self, meta: ControllerMetadata) -> ControllerReflection:
        cached = self._reflection_cache.get(meta.class_name)
        if cached is None:
            cached = reflect_controller(meta.class_name, meta.cls)
            self._reflection_cache[meta.class_name] = cached
        return cached

    def _resolve(self, meta: ControllerMetadata) -> ControllerResolution:
        cached = self._controller_cache.get(meta.class_name)
        if cached is not None:
            return cached
        try:
            resolution = self.resolver.resolve_controller(meta, self._reflection(meta))
        except Exception as exc:
            raise ControllerResolutionError(meta.class_name, exc) from exc
        self._controller_cache[meta.class_name] = resolution
        return resolution

    def _apply_duplicate_policy(self, routes: list[ResolvedRoute]) -> list[ResolvedRoute]:
        policy = self.settings.duplicate_policy
        kept: OrderedDict[tuple[str, str, str], ResolvedRoute] = OrderedDict()
        for route in routes:
            for verb in route.methods:
                key = (route.server, verb, route.path)
                existing = kept.get(key)
                if existing is None:
                    kept[key] = route
                    continue
                if policy is DuplicatePolicy.ERROR:
                    raise DuplicateRouteError(route.server, verb, route.path, existing.name, route.name)
                if policy is DuplicatePolicy.LAST_WINS:
                    logger.info("%s %s: %s replaces %s", verb, route.path, route.name, existing.name)
                    del kept[key]
                    kept[key] = route
                else:
                    logger.info("%s %s: keeping %s, skipping %s", verb, route.path, existing.name, route.name)

        out: list[ResolvedRoute] = []
        seen: set[int] = set()
        for route in kept.values():
            if id(route) not in seen:
                seen.add(id(route))
                out.append(route)
        return out

    def collect_routes(self) -> list[ResolvedRoute]:
        """The full table; resolved once and reused until the cache is cleared.

        Raises ``RouteCollectionError`` naming every controller that failed.
        Controllers that resolved stay cached, so a retry only redoes the
        failures.
        """
        with self._lock:
            if self._populated:
                return list(self._route_cache)

            routes: list[ResolvedRoute] = []
            failures: dict[str, ControllerResolutionError] = {}
            for meta in self._controllers.values():
                try:
                    routes.extend(self._resolve(meta).routes)
                except ControllerResolutionError as exc:
                    logger.error("%s", exc)
                    failures[meta.class_name] = exc

            if failures:
                raise RouteCollectionError(failures, routes)

            routes = self._apply_duplicate_policy(routes)
            self._route_cache = routes
            self._index = RouteIndex.build(routes)
            self._populated = True
            logger.debug("resolved %d route(s) from %d controller(s)", len(routes), len(self._controllers))
            return list(routes)

    def get_controller_routes(self, controller: ControllerRef) -> list[ResolvedRoute]:
        """Routes of one registered controller, without building the full table."""
        with self._lock:
            meta = self._controllers.get(_class_name(controller))
            if meta is None:
                return []
            return list(self._resolve(meta).routes)

    # ----------------------------
    # Lookups
    # ----------------------------

    def _ensure_index(self) -> RouteIndex:
        # populate and read under one lock so a concurrent clear_cache cannot
        # hand back the empty index of a reset table
        with self._lock:
            if not self._populated:
                self.collect_routes()
            return self._index

    def find_route_by_path(self, path: str) -> Optional[ResolvedRoute]:
        matches = self._ensure_index().by_path.get(path)
        return matches[0] if matches else None

    def find_routes_by_controller(self, controller: ControllerRef) -> list[ResolvedRoute]:
        return list(self._ensure_index().by_controller.get(_class_name(controller), []))

    def find_routes_by_tag(self, tag: str) -> list[ResolvedRoute]:
        return list(self._ensure_index().by_tag.get(tag, []))

    def find_routes_by_method(self, verb: str) -> list[ResolvedRoute]:
        return list(self._ensure_index().by_method.get(verb.strip().upper(), []))

    def get_restful_routes(self) -> list[ResolvedRoute]:
        return list(self._ensure_index().restful)

    def get_all_paths(self) -> set[str]:
        return {r.path for r in self.collect_routes()}

    def routes_for_server(self, server: str) -> list[ResolvedRoute]:
        return [r for r in self.collect_routes() if r.server == server]

    @property
    def lint_warnings(self) -> list[LintWarning]:
        with self._lock:
            self._ensure_index()
            out: list[LintWarning] = []
            for meta in self._controllers.values():
                # re-resolves classes that optimize_memory evicted
                out.extend(self._resolve(meta).warnings)
            return out

    # ----------------------------
    # On-demand details
    # ----------------------------

    def _method_for(self, route: ResolvedRoute) -> MethodReflection:
        meta = self._controllers.get(route.controller)
        if meta is None:
            raise KeyError(f"{route.controller} is not registered")
        method = self._reflection(meta).method(route.action)
        if method is None:
            raise KeyError(f"{route.name} has no handler")
        return method

    def describe_parameters(self, route: ResolvedRoute) -> list[ParamSpec]:
        with self._lock:
            key = f"{route.name}|{route.path}"
            if key not in self._parameter_cache:
                self._parameter_cache[key] = describe.describe_parameters(route, self._method_for(route))
            return list(self._parameter_cache[key])

    def describe_request_body(self, route: ResolvedRoute) -> Optional[RequestBodySpec]:
        with self._lock:
            key = f"{route.name}|{route.path}"
            if key not in self._body_cache:
                self._body_cache[key] = describe.describe_request_body(route, self._method_for(route))
            return self._body_cache[key]

    # ----------------------------
    # Cache management
    # ----------------------------

    def clear_cache(self) -> "RouteTable":
        with self._lock:
            self._reset()
        return self

    def get_cache_stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "routes": len(self._route_cache),
                "controllers": len(self._controller_cache),
                "reflections": len(self._reflection_cache),
                "indexed_paths": len(self._index.by_path),
                "described": len(self._parameter_cache) + len(self._body_cache),
            }

    def optimize_memory(self) -> dict[str, int]:
        """Trim caches above ``max_cache_entries`` and run gc.

        Per-class caches keep their newest entries. An oversized route table
        is dropped whole and rebuilt on next access, never served truncated.
        Returns how many entries were dropped per cache.
        """
        limit = self.settings.max_cache_entries
        dropped = {"routes": 0, "controllers": 0, "reflections": 0}
        with self._lock:
            if len(self._route_cache) > limit:
                dropped["routes"] = len(self._route_cache)
                self._route_cache = []
                self._index = RouteIndex()
                self._populated = False
            for name, cache in (
                ("controllers", self._controller_cache),
                ("reflections", self._reflection_cache),
            ):
                while len(cache) > limit:
                    cache.popitem(last=False)
                    dropped[name] += 1
            self._parameter_cache.clear()
            self._body_cache.clear()
        gc.collect()
        if any(dropped.values()):
            logger.info("optimize_memory dropped %s", dropped)
        return dropped

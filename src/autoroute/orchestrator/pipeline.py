from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from autoroute.config import RouteSettings
from autoroute.discovery.scanner import scan_package
from autoroute.domain.models import ResolvedRoute
from autoroute.resolve.resolver import LintWarning
from autoroute.store.route_table import RouteTable

logger = logging.getLogger("autoroute.pipeline")


@dataclass(frozen=True)
class CollectResult:
    package: str
    controllers: int
    routes: list[ResolvedRoute]
    warnings: list[LintWarning]
    table: RouteTable


def build_route_table(
    package: str,
    settings: Optional[RouteSettings] = None,
    max_modules: Optional[int] = None,
) -> RouteTable:
    """Scan ``package`` and return an (unpopulated) route table for it."""
    controllers = scan_package(package, max_modules=max_modules)
    logger.debug("%s: %d controller(s) found", package, len(controllers))
    return RouteTable(controllers, settings=settings)


def run_collect(
    package: str,
    settings: Optional[RouteSettings] = None,
    max_modules: Optional[int] = None,
) -> CollectResult:
    """Scan, resolve eagerly, and report. Startup-time counterpart of lazy access."""
    table = build_route_table(package, settings=settings, max_modules=max_modules)
    routes = table.collect_routes()
    return CollectResult(
        package=package,
        controllers=len(table.controllers),
        routes=routes,
        warnings=table.lint_warnings,
        table=table,
    )

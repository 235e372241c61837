from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from autoroute.config import DuplicatePolicy, RouteSettings, load_settings
from autoroute.errors import AutorouteError, RouteCollectionError
from autoroute.graph.builder import build_route_graph, graph_to_dot, graph_to_json
from autoroute.orchestrator.pipeline import CollectResult, run_collect


app = typer.Typer(no_args_is_help=True, add_completion=False)

routes_app = typer.Typer(no_args_is_help=True)
app.add_typer(routes_app, name="routes")

graph_app = typer.Typer(no_args_is_help=True)
app.add_typer(graph_app, name="graph")

console = Console()


def _setup_logging(settings: RouteSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _collect(
    package: str,
    path: str,
    numeric_constraints: bool,
    duplicates: Optional[DuplicatePolicy],
) -> CollectResult:
    app_dir = Path(path).expanduser().resolve()
    if not app_dir.is_dir():
        raise typer.BadParameter(f"Path is not a directory: {app_dir}")
    overrides: dict[str, object] = {}
    if numeric_constraints:
        overrides["numeric_constraints"] = True
    if duplicates is not None:
        overrides["duplicate_policy"] = duplicates
    settings = load_settings(**overrides)
    _setup_logging(settings)

    # only for this collection; the caller's import path is restored after
    added = str(app_dir) not in sys.path
    if added:
        sys.path.insert(0, str(app_dir))

    try:
        return run_collect(package, settings=settings)
    except RouteCollectionError as exc:
        console.print(f"[bold red]Route collection failed[/bold red] for {len(exc.failures)} controller(s):")
        for name, failure in sorted(exc.failures.items()):
            console.print(f"  [red]{name}[/red]: {failure.cause}")
        raise typer.Exit(code=1)
    except (AutorouteError, ImportError) as exc:
        console.print(f"[bold red]error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    finally:
        if added:
            sys.path.remove(str(app_dir))


PackageArg = typer.Argument(..., help="Importable package or module holding the controllers")
PathOpt = typer.Option(".", "--path", help="Directory to put on sys.path before importing")
NumericOpt = typer.Option(False, "--numeric-constraints", help="Render int path params as {name:\\d+}")
DuplicatesOpt = typer.Option(None, "--duplicates", help="Duplicate route policy")


@routes_app.command("list")
def routes_list(
    package: str = PackageArg,
    path: str = PathOpt,
    numeric_constraints: bool = NumericOpt,
    duplicates: Optional[DuplicatePolicy] = DuplicatesOpt,
    method: Optional[str] = typer.Option(None, help="Filter by HTTP method (GET/POST/...)"),
    tag: Optional[str] = typer.Option(None, help="Filter by tag"),
    controller: Optional[str] = typer.Option(None, help="Filter by qualified controller class name"),
    path_contains: Optional[str] = typer.Option(None, help="Substring match on route path"),
    limit: int = typer.Option(200, help="Max rows to print"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    result = _collect(package, path, numeric_constraints, duplicates)
    table = result.table

    rows = table.find_routes_by_method(method) if method else result.routes
    if tag:
        rows = [r for r in rows if tag in r.tags]
    if controller:
        rows = [r for r in rows if r.controller == controller]
    if path_contains:
        rows = [r for r in rows if path_contains in r.path]

    total = len(rows)
    rows = rows[:limit]

    if format.lower() == "json":
        console.print_json(json.dumps([r.model_dump(mode="json") for r in rows]))
        return

    console.print(f"[bold]Package:[/bold] {package}")
    console.print(f"[bold]Routes:[/bold] {total} (showing up to {limit})")

    out = Table(show_header=True, header_style="bold")
    out.add_column("METHOD", no_wrap=True)
    out.add_column("PATH")
    out.add_column("HANDLER")
    out.add_column("MIDDLEWARE")
    out.add_column("AUTH", no_wrap=True)
    out.add_column("SRC", no_wrap=True)

    for r in rows:
        src = "smart" if r.smart_path else ("rest" if r.restful else "explicit")
        auth = "open" if not r.security else ("user" if r.user_open else "perm")
        out.add_row(
            ",".join(r.methods),
            r.path,
            r.name.rsplit(".", 1)[-1],
            ", ".join(r.middleware),
            auth,
            src,
        )

    console.print(out)


@routes_app.command("stats")
def routes_stats(
    package: str = PackageArg,
    path: str = PathOpt,
    limit: int = typer.Option(10, help="How many top controllers to show"),
) -> None:
    result = _collect(package, path, False, None)
    routes = result.routes

    per_controller = Counter(r.controller for r in routes)
    per_method = Counter(m for r in routes for m in r.methods)
    restful = sum(1 for r in routes if r.restful)
    smart = sum(1 for r in routes if r.smart_path)

    console.print(f"[bold]Package:[/bold] {package}")
    console.print(f"Controllers: {result.controllers}")
    console.print(f"Routes: {len(routes)} (unique paths: {len(result.table.get_all_paths())})")
    console.print(f"RESTful names: {restful}, synthesized paths: {smart}")
    console.print("")
    console.print("[bold]By method:[/bold]")
    for verb, cnt in sorted(per_method.items()):
        console.print(f"  {cnt:>4}  {verb}")
    console.print("")
    console.print(f"[bold]Top controllers by routes (limit {limit}):[/bold]")
    for name, cnt in per_controller.most_common(limit):
        console.print(f"  {cnt:>4}  {name}")


@routes_app.command("lint")
def routes_lint(
    package: str = PackageArg,
    path: str = PathOpt,
    strict: bool = typer.Option(False, help="Exit with status 1 when warnings exist"),
) -> None:
    result = _collect(package, path, False, None)
    if not result.warnings:
        console.print("[bold green]No convention mismatches.[/bold green]")
        return
    for w in result.warnings:
        console.print(f"[yellow]warning[/yellow] {w.message}")
    if strict:
        raise typer.Exit(code=1)


@graph_app.command("export")
def graph_export(
    package: str = PackageArg,
    path: str = PathOpt,
    format: str = typer.Option("json", help="Export format: json|dot"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
    timestamp: bool = typer.Option(False, help="Include generated_at in JSON output"),
) -> None:
    fmt = format.lower().strip()
    if fmt not in ("json", "dot"):
        raise typer.BadParameter("format must be one of: json, dot")

    result = _collect(package, path, False, None)
    graph = build_route_graph(result.routes)
    text = graph_to_json(graph, timestamp=timestamp, package=package) if fmt == "json" else graph_to_dot(graph)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] {fmt} graph to: {out_path}")
    else:
        # plain stdout keeps the output machine-readable
        typer.echo(text)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

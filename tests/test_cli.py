from __future__ import annotations

import json
import sys
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from autoroute.cli import app

runner = CliRunner()

# keep stderr log lines out of machine-readable stdout on older click
QUIET = {"AUTOROUTE_LOG_LEVEL": "ERROR"}


def write(root, rel, body=""):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(body), encoding="utf-8")


@pytest.fixture(scope="module")
def app_dir(tmp_path_factory):
    root = tmp_path_factory.mktemp("cliapp")
    write(root, "clishop/__init__.py")
    write(root, "clishop/controllers/__init__.py")
    write(
        root,
        "clishop/controllers/user.py",
        """
        from autoroute.discovery.markers import api_controller, get, post

        @api_controller(options={"middleware": ["auth"]})
        class UserController:
            @get()
            def index(self): ...

            @get()
            def show(self, id: int): ...

            @post()
            def enable(self, id: int): ...

            @get(security=False)
            def find_by_code(self, code: str): ...
        """,
    )
    write(
        root,
        "clishop/controllers/legacy.py",
        """
        from autoroute.discovery.markers import api_controller, delete

        @api_controller(prefix="/legacy")
        class LegacyController:
            @delete()
            def show(self, id: int): ...
        """,
    )
    write(root, "clibroken/__init__.py")
    write(
        root,
        "clibroken/controllers.py",
        """
        from autoroute.discovery.markers import admin_controller, api_controller, get

        @api_controller()
        @admin_controller()
        class BothController:
            @get()
            def index(self): ...
        """,
    )
    return str(root)


def test_routes_list_json(app_dir):
    result = runner.invoke(app, ["routes", "list", "clishop", "--path", app_dir, "--format", "json"], env=QUIET)
    assert result.exit_code == 0, result.output

    rows = json.loads(result.stdout)
    assert {r["path"] for r in rows} == {
        "/users",
        "/users/{id}",
        "/users/{id}/enable",
        "/users/find-by-code/{code}",
        "/legacy/{id}/show",
    }
    show = [r for r in rows if r["path"] == "/users/{id}"][0]
    assert show["methods"] == ["GET"]
    assert show["middleware"] == ["auth"]


def test_routes_list_filters(app_dir):
    result = runner.invoke(
        app,
        ["routes", "list", "clishop", "--path", app_dir, "--format", "json", "--method", "post"],
        env=QUIET,
    )
    assert result.exit_code == 0, result.output
    assert [r["path"] for r in json.loads(result.stdout)] == ["/users/{id}/enable"]

    result = runner.invoke(
        app,
        ["routes", "list", "clishop", "--path", app_dir, "--format", "json", "--path-contains", "legacy"],
        env=QUIET,
    )
    assert [r["action"] for r in json.loads(result.stdout)] == ["show"]


def test_routes_list_table(app_dir):
    result = runner.invoke(app, ["routes", "list", "clishop", "--path", app_dir])
    assert result.exit_code == 0, result.output
    assert "Routes: 5" in result.output
    assert "METHOD" in result.output
    assert "/users" in result.output


def test_routes_stats(app_dir):
    result = runner.invoke(app, ["routes", "stats", "clishop", "--path", app_dir])
    assert result.exit_code == 0, result.output
    assert "Controllers: 2" in result.output
    assert "Routes: 5" in result.output


def test_routes_lint(app_dir):
    result = runner.invoke(app, ["routes", "lint", "clishop", "--path", app_dir])
    assert result.exit_code == 0, result.output
    assert "LegacyController::show" in result.output

    strict = runner.invoke(app, ["routes", "lint", "clishop", "--path", app_dir, "--strict"])
    assert strict.exit_code == 1


def test_graph_export(app_dir, tmp_path):
    result = runner.invoke(app, ["graph", "export", "clishop", "--path", app_dir, "--format", "dot"])
    assert result.exit_code == 0, result.output
    assert "digraph autoroute {" in result.stdout

    out = tmp_path / "graph" / "routes.json"
    result = runner.invoke(app, ["graph", "export", "clishop", "--path", app_dir, "--out", str(out)])
    assert result.exit_code == 0, result.output
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["package"] == "clishop"
    assert len([n for n in payload["nodes"] if n["type"] == "route"]) == 5


def test_graph_export_rejects_unknown_format(app_dir):
    result = runner.invoke(app, ["graph", "export", "clishop", "--path", app_dir, "--format", "svg"])
    assert result.exit_code != 0


def test_collection_failure_exits_nonzero(app_dir):
    result = runner.invoke(app, ["routes", "list", "clibroken", "--path", app_dir])
    assert result.exit_code == 1
    assert "Route collection failed" in result.output
    assert "BothController" in result.output


def test_missing_package_exits_nonzero(app_dir):
    result = runner.invoke(app, ["routes", "list", "no_such_pkg_anywhere", "--path", app_dir])
    assert result.exit_code == 1
    assert "error" in result.output


def test_path_option_does_not_leak_into_sys_path(app_dir):
    resolved = str(Path(app_dir).resolve())
    assert resolved not in sys.path

    result = runner.invoke(app, ["routes", "stats", "clishop", "--path", app_dir])
    assert result.exit_code == 0, result.output
    assert resolved not in sys.path

    failed = runner.invoke(app, ["routes", "list", "clibroken", "--path", app_dir])
    assert failed.exit_code == 1
    assert resolved not in sys.path

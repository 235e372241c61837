from __future__ import annotations

import logging

import pytest

from autoroute.config import RouteSettings
from autoroute.discovery.markers import (
    admin_controller,
    api_controller,
    controller_annotations_of,
    delete,
    get,
    post,
    put,
)
from autoroute.discovery.scanner import scan_class
from autoroute.domain.metadata import qualified_name
from autoroute.domain.models import ApiController
from autoroute.errors import ConfigurationError, ConflictAnnotationError
from autoroute.introspect.reflection import reflect_controller
from autoroute.resolve.resolver import RouteResolver, get_prefix


@api_controller()
class UserController:
    @get()
    def index(self): ...

    @get()
    def show(self, id: int): ...

    @post()
    def store(self, form: dict): ...

    @put()
    def update(self, id: int): ...

    @delete()
    def destroy(self, id: int): ...

    @post()
    def enable(self, id: int): ...

    @get()
    def find_by_code(self, code: str): ...

    @get()
    def findByCode(self, code: str): ...

    @post(path="/login", summary="Sign in", security=False)
    def login(self, form: dict): ...

    @get(path="")
    def root(self): ...

    @get(path="relative")
    def relative(self): ...

    @get(path="/_self_path")
    def collapse(self): ...

    @get(path="/_self_path/avatar")
    def self_avatar(self): ...

    @get(path="/_self_pathology")
    def pathology(self): ...

    @get(deprecated="use v2")
    def legacy_report(self): ...

    @get(deprecated="false")
    def fresh_report(self): ...

    @get(name="user.avatar")
    def avatar(self, id: int): ...

    def helper(self, id: int): ...

    @get()
    def _private(self): ...


@api_controller(
    prefix="orders",
    tag="Orders",
    user_open=False,
    options={"middleware": ["auth", "audit"], "timeout": {"read": 5, "write": 10}},
)
class OrderController:
    @get(
        options={"middleware": ["audit", "throttle"], "timeout": {"read": 1}},
        middleware=["trace"],
        user_open=False,
    )
    def index(self): ...

    @get()
    def show(self, id: int): ...


@api_controller(prefix="/legacy")
class LegacyController:
    @delete()
    def show(self, id: int): ...


@admin_controller(options={"middleware": ["auth"]})
class ReportController:
    @get()
    def index(self): ...


@api_controller(server="admin-http", service="billing")
class InvoiceController:
    @get()
    def index(self): ...


@api_controller()
@admin_controller()
class BothController:
    @get()
    def index(self): ...


@api_controller()
class DoubleController:
    @get()
    @post()
    def thing(self): ...


def resolve(cls, settings=None):
    meta = scan_class(cls)
    resolver = RouteResolver(settings or RouteSettings())
    return resolver.resolve_controller(meta, reflect_controller(meta.class_name, meta.cls))


def by_action(cls, settings=None):
    return {r.action: r for r in resolve(cls, settings).routes}


# ----------------------------
# Prefixes
# ----------------------------


def test_get_prefix_from_class_name():
    assert get_prefix("app.controllers.UserController") == "/users"
    assert get_prefix("app.controllers.user.UserController") == "/users"
    assert get_prefix("app.controllers.CategoryController") == "/categories"
    assert get_prefix("app.PersonController") == "/people"


def test_get_prefix_keeps_namespace_after_grouping_package():
    assert get_prefix("app.controllers.admin.user_post.UserPostController") == "/admin/user-posts"
    assert get_prefix("shop.Controller.v2.order.OrderController") == "/v2/orders"


def test_get_prefix_explicit_and_service():
    assert get_prefix("x.UserController", "v1/users") == "/v1/users"
    assert get_prefix("x.UserController", "/custom") == "/custom"
    assert get_prefix("app.controllers.UserController", "", "billing") == "/billing/users"


# ----------------------------
# Paths
# ----------------------------


def test_restful_paths():
    routes = by_action(UserController)
    assert routes["index"].path == "/users"
    assert routes["show"].path == "/users/{id}"
    assert routes["show"].methods == ("GET",)
    assert routes["store"].path == "/users"
    assert routes["update"].path == "/users/{id}"
    assert routes["destroy"].path == "/users/{id}"
    assert routes["destroy"].methods == ("DELETE",)
    assert routes["enable"].path == "/users/{id}/enable"
    assert all(routes[a].restful and not routes[a].smart_path for a in ("index", "show", "enable"))


def test_synthesized_filter_path():
    routes = by_action(UserController)
    for action in ("find_by_code", "findByCode"):
        assert routes[action].path == "/users/find-by-code/{code}"
        assert routes[action].smart_path
        assert not routes[action].restful


def test_explicit_paths():
    routes = by_action(UserController)
    assert routes["login"].path == "/users/login"
    assert routes["root"].path == "/users"
    assert routes["relative"].path == "/users/relative"
    assert routes["collapse"].path == "/users"
    assert routes["self_avatar"].path == "/users/avatar"
    assert routes["pathology"].path == "/users/_self_pathology"


def test_only_annotated_public_methods_are_routed():
    routes = by_action(UserController)
    assert "helper" not in routes
    assert "_private" not in routes


def test_every_path_is_normalized():
    for route in resolve(UserController).routes:
        assert route.path.startswith("/")
        assert "//" not in route.path
        assert route.path == "/" or not route.path.endswith("/")


def test_numeric_constraints_only_affect_synthesized_paths():
    routes = by_action(LegacyController, RouteSettings(numeric_constraints=True))
    assert routes["show"].path == r"/legacy/{id:\d+}/show"
    routes = by_action(UserController, RouteSettings(numeric_constraints=True))
    assert routes["show"].path == "/users/{id}"


# ----------------------------
# Metadata
# ----------------------------


def test_route_identity_fields():
    routes = by_action(UserController)
    class_name = qualified_name(UserController)
    assert routes["show"].controller == class_name
    assert routes["show"].name == f"{class_name}::show"
    assert routes["show"].server == "http"
    assert routes["avatar"].route_name == "user.avatar"
    assert routes["show"].route_name is None


def test_summaries_and_tags():
    routes = by_action(UserController)
    assert routes["index"].summary == "List resources"
    assert routes["login"].summary == "Sign in"
    assert routes["relative"].summary == "relative"
    assert routes["index"].tags == ("User",)


def test_deprecation_flag():
    routes = by_action(UserController)
    assert routes["legacy_report"].deprecated
    assert not routes["fresh_report"].deprecated
    assert not routes["index"].deprecated


def test_security_and_user_open_combination():
    users = by_action(UserController)
    assert users["index"].security
    assert not users["login"].security
    # method default is user-open
    assert users["index"].user_open

    orders = by_action(OrderController)
    assert not orders["index"].user_open
    assert orders["show"].user_open


def test_middleware_and_options_merge():
    route = by_action(OrderController)["index"]
    assert route.path == "/orders"
    assert route.tags == ("Orders",)
    assert route.middleware == ("auth", "audit", "throttle", "trace")
    assert route.options["middleware"] == route.middleware
    assert route.options["timeout"] == {"read": 1, "write": 10}

    show = by_action(OrderController)["show"]
    assert show.middleware == ("auth", "audit")
    assert show.options["timeout"] == {"read": 5, "write": 10}


def test_route_options_are_not_shared_with_annotations():
    show = by_action(OrderController)["show"]
    show.options["timeout"]["write"] = 99

    annotation = controller_annotations_of(OrderController)[ApiController]
    assert annotation.options["timeout"] == {"read": 5, "write": 10}
    assert by_action(OrderController)["show"].options["timeout"] == {"read": 5, "write": 10}


def test_server_and_service():
    route = by_action(InvoiceController)["index"]
    assert route.server == "admin-http"
    assert route.path == "/billing/invoices"


def test_admin_controller_prefix_and_middleware():
    settings = RouteSettings(admin_prefix="/admin", admin_middleware=["admin-auth"])
    route = by_action(ReportController, settings)["index"]
    assert route.path == "/admin/reports"
    assert route.middleware == ("auth", "admin-auth")

    plain = by_action(ReportController)["index"]
    assert plain.path == "/reports"
    assert plain.middleware == ("auth",)


# ----------------------------
# Mismatches and conflicts
# ----------------------------


def test_verb_mismatch_synthesizes_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="autoroute.resolver"):
        resolution = resolve(LegacyController)

    route = resolution.routes[0]
    assert route.path == "/legacy/{id}/show"
    assert route.smart_path
    assert route.restful

    assert len(resolution.warnings) == 1
    warning = resolution.warnings[0]
    assert (warning.action, warning.verb, warning.expected_verb) == ("show", "DELETE", "GET")
    assert "convention expects GET" in caplog.text


def test_mismatch_logging_can_be_disabled(caplog):
    with caplog.at_level(logging.WARNING, logger="autoroute.resolver"):
        resolution = resolve(LegacyController, RouteSettings(lint_convention_mismatch=False))
    assert len(resolution.warnings) == 1
    assert caplog.text == ""


def test_conflicting_controller_annotations():
    with pytest.raises(ConflictAnnotationError) as exc:
        resolve(BothController)
    assert exc.value.class_name == qualified_name(BothController)
    assert "BothController" in str(exc.value)


def test_several_mappings_on_one_method():
    with pytest.raises(ConflictAnnotationError, match="several mappings"):
        resolve(DoubleController)


def test_conflict_is_a_configuration_error():
    assert issubclass(ConflictAnnotationError, ConfigurationError)

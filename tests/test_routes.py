"""Tests for route table parsing and first-match routing."""

import pytest

from fhweb.errors import RouteConfigError, RouteNotFound
from fhweb.routes import (
    ControllerHandler,
    PageHandler,
    StaticHandler,
    load_routes,
    match_route,
    parse_route,
    prepare_routes,
)


# =========================================================================
# parse_route
# =========================================================================


def test_parse_page_route_defaults_to_get():
    route = parse_route({"url": "^/$", "page": "index"})
    assert route.methods == frozenset({"get"})
    assert route.handler == PageHandler(page="index")


def test_parse_lowercases_methods():
    route = parse_route({"url": "^/x$", "method": ["GET", "Post"], "static": "public"})
    assert route.methods == frozenset({"get", "post"})
    assert route.handler == StaticHandler(root="public")


def test_parse_single_method_string():
    route = parse_route({"url": "^/x$", "method": "put", "page": "x"})
    assert route.methods == frozenset({"put"})


def test_parse_controller_route():
    route = parse_route({"url": "^/api$", "controller": {"file": "api", "function": "list"}})
    assert route.handler == ControllerHandler(module_name="api", function_name="list")


@pytest.mark.parametrize("entry", [
    {"url": "^/$"},
    {"url": "^/$", "page": "a", "static": "b"},
    {"url": "^/$", "page": "a", "controller": {"file": "f", "function": "g"}},
])
def test_parse_requires_exactly_one_handler(entry):
    with pytest.raises(RouteConfigError):
        parse_route(entry)


def test_parse_rejects_incomplete_controller():
    with pytest.raises(RouteConfigError):
        parse_route({"url": "^/$", "controller": {"file": "api"}})


def test_parse_rejects_bad_regex():
    with pytest.raises(RouteConfigError):
        parse_route({"url": "^/(unclosed$", "page": "x"})


def test_parse_rejects_missing_url():
    with pytest.raises(RouteConfigError):
        parse_route({"page": "x"})


# =========================================================================
# match_route
# =========================================================================


def _routes(*entries):
    return [parse_route(e) for e in entries]


def test_first_match_wins_over_later_and_more_specific():
    routes = _routes(
        {"url": "^/blog", "page": "general"},
        {"url": "^/blog/post$", "page": "specific"},
    )
    assert match_route(routes, "/blog/post", "GET").handler.page == "general"


def test_method_must_match_too():
    routes = _routes(
        {"url": "^/form$", "page": "show"},
        {"url": "^/form$", "method": "post", "page": "submit"},
    )
    assert match_route(routes, "/form", "POST").handler.page == "submit"
    assert match_route(routes, "/form", "get").handler.page == "show"


def test_pattern_is_searched_not_anchored():
    routes = _routes({"url": "assets", "static": "public"})
    assert match_route(routes, "/static/assets/x.css", "GET")


def test_no_match_raises_route_not_found():
    routes = _routes({"url": "^/$", "page": "index"})
    with pytest.raises(RouteNotFound):
        match_route(routes, "/other", "GET")


def test_empty_table_raises_route_not_found():
    with pytest.raises(RouteNotFound):
        match_route([], "/", "GET")


# =========================================================================
# load_routes / prepare_routes
# =========================================================================


def test_load_routes_preserves_order(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text(
        "- url: '^/a'\n  page: a\n"
        "- url: '^/b'\n  page: b\n"
        "- url: '^/c'\n  page: c\n"
    )
    assert [r.handler.page for r in load_routes(path)] == ["a", "b", "c"]


def test_load_routes_accepts_routes_key(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text("routes:\n  - url: '^/$'\n    page: index\n")
    assert len(load_routes(path)) == 1


def test_load_routes_missing_file_is_empty(tmp_path):
    assert load_routes(tmp_path / "absent.yaml") == []


def test_load_routes_rejects_scalar(tmp_path):
    path = tmp_path / "routes.yaml"
    path.write_text("just a string\n")
    with pytest.raises(RouteConfigError):
        load_routes(path)


async def test_prepare_routes_reads_configured_table(config):
    routes = await prepare_routes(config)
    assert routes[0].url_pattern.pattern == r"^/favicon\.ico$"
    assert isinstance(routes[-1].handler, ControllerHandler)

"""
fhw-web Route Table

Loads the ordered route table from routes.yaml and matches requests
against it. Each entry maps a URL regex and a set of methods to exactly
one handler:

    - url: "^/$"
      page: index
    - url: "^/assets/"
      static: public
    - url: "^/login$"
      method: [get, post]
      controller: {file: auth, function: login}

The table is re-read for every request, so edits apply without a restart.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Union

import yaml

from fhweb.errors import RouteConfigError, RouteNotFound
from fhweb.journal import journal

if TYPE_CHECKING:
    from fhweb.config import Config

logger = logging.getLogger(__name__)

HANDLER_KEYS = ("static", "page", "controller")


@dataclass(frozen=True)
class StaticHandler:
    root: str


@dataclass(frozen=True)
class PageHandler:
    page: str


@dataclass(frozen=True)
class ControllerHandler:
    module_name: str
    function_name: str


Handler = Union[StaticHandler, PageHandler, ControllerHandler]


@dataclass(frozen=True)
class RouteDescriptor:
    """One entry of the route table."""

    url_pattern: re.Pattern
    methods: frozenset[str]
    handler: Handler

    def matches(self, path: str, method: str) -> bool:
        return bool(self.url_pattern.search(path)) and method.lower() in self.methods


def parse_route(entry: dict) -> RouteDescriptor:
    """Build a RouteDescriptor from one routes.yaml entry."""
    if not isinstance(entry, dict):
        raise RouteConfigError(f"Route entry must be a mapping, got {entry!r}")

    url = entry.get("url")
    if not isinstance(url, str):
        raise RouteConfigError(f"Route entry {entry!r} has no 'url' pattern")
    try:
        pattern = re.compile(url)
    except re.error as e:
        raise RouteConfigError(f"Invalid url pattern {url!r}: {e}") from e

    method = entry.get("method", ["get"])
    if isinstance(method, str):
        method = [method]
    methods = frozenset(m.lower() for m in method)

    present = [key for key in HANDLER_KEYS if entry.get(key) is not None]
    if len(present) != 1:
        raise RouteConfigError(
            f"Route {url!r} must define exactly one of {', '.join(HANDLER_KEYS)} "
            f"(found: {', '.join(present) or 'none'})"
        )

    kind = present[0]
    if kind == "static":
        handler = StaticHandler(root=str(entry["static"]))
    elif kind == "page":
        handler = PageHandler(page=str(entry["page"]))
    else:
        ctrl = entry["controller"]
        if not isinstance(ctrl, dict) or not ctrl.get("file") or not ctrl.get("function"):
            raise RouteConfigError(f"Route {url!r}: controller needs 'file' and 'function'")
        handler = ControllerHandler(module_name=str(ctrl["file"]), function_name=str(ctrl["function"]))

    return RouteDescriptor(url_pattern=pattern, methods=methods, handler=handler)


def load_routes(path: Path) -> list[RouteDescriptor]:
    """Read and validate the route table. A missing file yields no routes."""
    if not path.exists():
        logger.warning(f"Route table not found: {path}")
        return []

    with open(path) as f:
        raw = yaml.safe_load(f) or []
    if isinstance(raw, dict):
        raw = raw.get("routes") or []
    if not isinstance(raw, list):
        raise RouteConfigError(f"{path}: expected a list of routes")

    return [parse_route(entry) for entry in raw]


async def prepare_routes(config: "Config") -> list[RouteDescriptor]:
    """Fresh route table for one request."""
    return await asyncio.to_thread(load_routes, config.resolve(config.paths.routes))


def match_route(routes: list[RouteDescriptor], path: str, method: str) -> RouteDescriptor:
    """Return the first route whose pattern and method both match.

    Raises:
        RouteNotFound: If no route matches
    """
    for index, route in enumerate(routes):
        if route.matches(path, method):
            journal.route_match(index, route.url_pattern.pattern)
            return route

    journal.route_miss(method, path)
    raise RouteNotFound(f'Could not find a route for "{path}" with request method "{method}".')

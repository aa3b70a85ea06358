"""Shared fixtures for fhw-web tests."""

import asyncio
import textwrap
from pathlib import Path

import jinja2
import pytest

from fhweb.config import Config
from fhweb.controllers import ControllerRegistry
from fhweb.dispatch import Dispatcher
from fhweb.sessions import SessionStore
from fhweb.validator import Validator
from fhweb.web.server import WebServer

ROUTES_YAML = r"""
- url: '^/favicon\.ico$'
  page: index
- url: "^/$"
  page: index
- url: "^/first"
  page: first-a
- url: "^/first"
  page: first-b
- url: "^/assets/"
  static: public
- url: "^/docs/"
  page: "/"
- url: "^/only-get$"
  page: index
- url: '^/users/(?P<user>\w+)$'
  page: user
- url: "^/api/status$"
  method: [get, post]
  controller: {file: api, function: status}
- url: "^/api/async$"
  controller: {file: api, function: async_status}
- url: "^/login$"
  controller: {file: auth, function: login}
- url: "^/profile$"
  controller: {file: auth, function: profile}
- url: "^/counter$"
  controller: {file: auth, function: counter}
- url: "^/broken$"
  controller: {file: api, function: broken}
- url: "^/text$"
  controller: {file: api, function: text}
- url: "^/missing$"
  controller: {file: api, function: nope}
"""

PAGES = {
    "index.html": "<h1>{{ global.site }}</h1>",
    "first-a.html": "first route",
    "first-b.html": "second route",
    "profile.html": "<p>{{ page.a }}</p>",
    "user.html": "<p>user={{ request.user }}</p>",
    "docs/intro.html": "<p>intro of {{ global.site }}</p>",
    "docs/v1.2.html": "<p>release {{ global.site }}</p>",
}


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))


@pytest.fixture
def project(tmp_path):
    """A small project tree: routes, pages, static assets, global data."""
    _write(tmp_path / "routes.yaml", ROUTES_YAML)
    for name, body in PAGES.items():
        _write(tmp_path / "pages" / name, body)
    _write(tmp_path / "public" / "assets" / "style.css", "body { color: red; }")
    _write(tmp_path / "data" / "global.yaml", "site: Test Site\n")
    return tmp_path


@pytest.fixture
def config(project):
    return Config.from_dict({"paths": {"root": str(project)}})


@pytest.fixture
def registry():
    """Registry with the controllers the route table refers to."""
    registry = ControllerRegistry()

    @registry.controller("api")
    def status(frontmatter):
        return {"json": {"ok": True}}

    @registry.controller("api")
    async def async_status(frontmatter):
        await asyncio.sleep(0)
        return {"json": {"async": True}, "status": 202}

    @registry.controller("api")
    def broken(frontmatter):
        return {"data": {"a": 1}}

    @registry.controller("api")
    def text(frontmatter):
        return {"content": "plain"}

    @registry.controller("auth")
    def login(frontmatter):
        return {"redirect": "/login"}

    @registry.controller("auth")
    def profile(frontmatter):
        return {"page": "profile", "data": {"a": 1}, "status": 201}

    @registry.controller("auth")
    def counter(frontmatter):
        session = frontmatter["session"]
        session["count"] = session.get("count", 0) + 1
        return {"json": {"count": session["count"]}}

    return registry


@pytest.fixture
async def session_store():
    """In-memory SessionStore, opened and closed per test."""
    store = SessionStore()
    await store.open(Path(":memory:"))
    yield store
    await store.close()


@pytest.fixture
def jinja_env(config):
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(config.resolve(config.paths.pages))),
        autoescape=jinja2.select_autoescape(["html"]),
    )


@pytest.fixture
def dispatcher(config, jinja_env, registry, session_store):
    return Dispatcher(config, jinja_env, registry, session_store)


@pytest.fixture
def app(config, registry, session_store):
    """aiohttp app wired with the project fixtures."""
    return WebServer(config, registry, session_store, Validator(config.validator)).app


@pytest.fixture
async def client(aiohttp_client, app):
    """aiohttp test client wired to the app."""
    return await aiohttp_client(app)

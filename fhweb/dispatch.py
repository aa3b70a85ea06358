"""
fhw-web Handler Dispatcher

Runs the one handler a matched route names (static file, page template or
controller) and produces a PendingResponse for the response pipeline.

Static files, JSON and redirects are terminal: they are emitted on the
RequestContext directly and come back with ``html=False``. Pages come back
with their markup and are emitted by the pipeline after validation.
"""

import copy
import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import jinja2
from aiohttp import web

from fhweb.errors import NotImplementedFeature, ResponseAlreadySent
from fhweb.journal import journal
from fhweb.resources import load_global_frontmatter, resolve_page, resolve_static
from fhweb.results import Content, Json, Page, Redirect, coerce_result
from fhweb.routes import ControllerHandler, PageHandler, RouteDescriptor, StaticHandler
from fhweb.sessions import Session, save_session_data
from fhweb.templating import compile_page

if TYPE_CHECKING:
    from fhweb.config import Config
    from fhweb.controllers import ControllerRegistry
    from fhweb.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Per-request state, including the single terminal response."""

    path: str
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    session: Session | None = None
    response: web.StreamResponse | None = None

    @property
    def sent(self) -> bool:
        """True once a terminal response has been emitted."""
        return self.response is not None

    def emit(self, response: web.StreamResponse) -> web.StreamResponse:
        """Record the terminal response. Only one is allowed per request."""
        if self.sent:
            raise ResponseAlreadySent(
                f"A response for {self.method} {self.path} was already sent "
                f"(status {self.response.status})"
            )
        self.response = response
        if isinstance(response, web.FileResponse):
            # status is only known once aiohttp opens the file
            journal.handoff(self.path)
        else:
            journal.response(response.status, self.path)
        return response


@dataclass
class PendingResponse:
    """In-flight result threaded through the response pipeline.

    ``html`` is False when the handler already emitted the response.
    """

    html: str | bool
    status: int = 200
    path_to_file: str | None = None
    params: dict[str, Any] = field(default_factory=dict)


async def invoke(fn: Any, *args: Any) -> Any:
    """Call a sync or async controller and return its settled result."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Dispatcher:
    """Selects and runs the handler of a matched route."""

    def __init__(
        self,
        config: "Config",
        env: jinja2.Environment,
        registry: "ControllerRegistry",
        store: "SessionStore",
    ):
        self.config = config
        self.env = env
        self.registry = registry
        self.store = store

    async def dispatch(self, route: RouteDescriptor, ctx: RequestContext) -> PendingResponse:
        """Run exactly one handler for ``route``."""
        handler = route.handler

        if isinstance(handler, StaticHandler):
            path_to_file = resolve_static(self.config, ctx.path, handler.root)
            return self.serve_static(ctx, path_to_file)

        if isinstance(handler, PageHandler):
            path_to_file = resolve_page(self.config, ctx.path, handler.page)
            return self.serve_page(path_to_file, ctx.params, session=ctx.session)

        if isinstance(handler, ControllerHandler):
            return await self.invoke_controller(handler, ctx)

        raise TypeError(f"Unknown handler type: {type(handler).__name__}")

    def serve_static(self, ctx: RequestContext, path_to_file) -> PendingResponse:
        """Hand the file to the transport; status and not-found are its business."""
        journal.static(path_to_file)
        ctx.emit(web.FileResponse(path_to_file))
        return PendingResponse(html=False, path_to_file=str(path_to_file), params=ctx.params)

    def serve_page(
        self,
        path_to_file: str,
        params: dict,
        data: dict | None = None,
        status: int = 200,
        session: Session | None = None,
    ) -> PendingResponse:
        """Render a page template into a pending response."""
        frontmatter = {
            "request": params,
            "global": load_global_frontmatter(self.config),
            "page": data or {},
        }
        if session is not None:
            frontmatter["session"] = session

        html = compile_page(self.env, path_to_file, frontmatter)
        journal.page(path_to_file, status)
        return PendingResponse(html=html, status=status, path_to_file=path_to_file, params=params)

    async def invoke_controller(self, handler: ControllerHandler, ctx: RequestContext) -> PendingResponse:
        """Call a controller and turn its result into a pending response.

        The controller sees a copy of the request params and the live
        session. The session is saved as soon as the controller settles,
        before the result is emitted.
        """
        fn = self.registry.resolve(handler.module_name, handler.function_name)

        frontmatter = {
            "request": copy.deepcopy(ctx.params),
            "session": ctx.session,
            "global": load_global_frontmatter(self.config),
        }

        journal.controller(handler.module_name, handler.function_name)
        raw = await invoke(fn, frontmatter)

        if ctx.session is not None:
            await save_session_data(self.store, ctx.session)

        result = coerce_result(raw)

        if isinstance(result, Page):
            path_to_file = resolve_page(self.config, ctx.path, result.page)
            return self.serve_page(path_to_file, ctx.params, result.data, result.status)

        if isinstance(result, Json):
            journal.json(result.status)
            ctx.emit(web.json_response(result.json, status=result.status))
            return PendingResponse(html=False, status=result.status, params=ctx.params)

        if isinstance(result, Content):
            raise NotImplementedFeature("Serving plain text content is not implemented")

        if isinstance(result, Redirect):
            journal.redirect(result.location, result.status)
            ctx.emit(web.Response(status=result.status, headers={"Location": result.location}))
            return PendingResponse(html=False, status=result.status, params=ctx.params)

        raise TypeError(f"Unknown controller result: {type(result).__name__}")

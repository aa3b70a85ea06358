"""
Catch-all route — any method, any path

Runs the dispatch pipeline for every request that is not the favicon:
route table → params and session → handler → validation → emission,
with the error page as the single fallback.
"""

import logging

from aiohttp import web

from fhweb.dispatch import RequestContext
from fhweb.journal import journal
from fhweb.pipeline import respond_error, run_pipeline
from fhweb.routes import match_route, prepare_routes
from fhweb.sessions import parse_params

logger = logging.getLogger(__name__)

routes = web.RouteTableDef()


@routes.route("*", "/{tail:.*}")
async def handle_request(request: web.Request) -> web.StreamResponse:
    """Dispatch one request through the configured route table."""
    config = request.app["config"]
    dispatcher = request.app["dispatcher"]
    validator = request.app["validator"]

    journal.request(request.method, request.path)
    ctx = RequestContext(path=request.path, method=request.method)

    try:
        route_table = await prepare_routes(config)
        route = match_route(route_table, request.path, request.method)
        ctx.params, ctx.session = await parse_params(
            request, route, dispatcher.store, config.session.cookie,
        )
        pending = await dispatcher.dispatch(route, ctx)
        await run_pipeline(ctx, pending, config.validator, validator)
    except Exception as e:
        respond_error(ctx, e, dispatcher.env)

    session = ctx.session
    if session is not None and session.is_new and session.persisted:
        ctx.response.set_cookie(config.session.cookie, session.id, httponly=True, samesite="Lax")

    return ctx.response

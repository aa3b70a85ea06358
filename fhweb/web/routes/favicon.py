"""
Favicon route — GET /favicon.ico

Always answers 204 without a body. Configured routes never see this path;
projects keep their favicon in a subdirectory and link it explicitly.
"""

from aiohttp import web

from fhweb.journal import journal

routes = web.RouteTableDef()


@routes.get("/favicon.ico")
async def favicon(request: web.Request) -> web.Response:
    """Answer favicon requests with 204 No Content."""
    journal.favicon()
    return web.Response(status=204)

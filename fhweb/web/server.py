"""
fhw-web Web Server

aiohttp application serving the configured route table. One listener,
bound to ``config.port``; configuration edits reach the route table on the
next request but the listener keeps its port until restarted.
"""

import logging
from typing import TYPE_CHECKING

from aiohttp import web

from fhweb.dispatch import Dispatcher
from fhweb.journal import journal
from fhweb.templating import setup_templates

if TYPE_CHECKING:
    from fhweb.config import Config
    from fhweb.controllers import ControllerRegistry
    from fhweb.sessions import SessionStore
    from fhweb.validator import Validator

logger = logging.getLogger(__name__)


class WebServer:
    """Route-table driven page server."""

    def __init__(
        self,
        config: "Config",
        registry: "ControllerRegistry",
        session_store: "SessionStore",
        validator: "Validator",
    ):
        self.config = config
        self.host = config.host
        self.port = config.port
        self.app = web.Application()
        self._runner: web.AppRunner | None = None

        # Set up Jinja2 templates for pages and the error page
        env = setup_templates(self.app, config)

        # Store references in app for route handlers
        self.app["config"] = config
        self.app["validator"] = validator
        self.app["dispatcher"] = Dispatcher(config, env, registry, session_store)

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Register the favicon route ahead of the catch-all."""
        from fhweb.web.routes.favicon import routes as favicon_routes
        from fhweb.web.routes.pages import routes as page_routes

        self.app.router.add_routes(favicon_routes)
        self.app.router.add_routes(page_routes)

    async def start(self) -> None:
        """Start the web server."""
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        journal.start(f"listening on http://localhost:{self.port}/")
        logger.info(f"Server listening on http://{self.host}:{self.port}/")

    async def stop(self) -> None:
        """Stop the web server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Web server stopped")

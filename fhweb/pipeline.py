"""
fhw-web Response Pipeline

HTML validation → CSS validation → emission, in that order. Every stage
re-checks ``ctx.sent`` because static files, JSON and redirects complete
the response before the pipeline runs. Any failure ends up in
``respond_error``, which renders the error page unless a response is
already out.
"""

import logging
from typing import TYPE_CHECKING

import jinja2
from aiohttp import web

from fhweb.errors import ResourceNotFound, generate_error_page
from fhweb.journal import journal

if TYPE_CHECKING:
    from fhweb.config import ValidatorConfig
    from fhweb.dispatch import PendingResponse, RequestContext
    from fhweb.validator import Validator

logger = logging.getLogger(__name__)


def _has_html(ctx: "RequestContext", pending: "PendingResponse | None") -> bool:
    return not ctx.sent and pending is not None and bool(pending.html)


async def run_pipeline(
    ctx: "RequestContext",
    pending: "PendingResponse | None",
    config: "ValidatorConfig",
    validator: "Validator",
) -> None:
    """Validate and emit a pending response.

    Raises:
        ResourceNotFound: If nothing was emitted and there is no markup
        MarkupValidationError: If a validator rejects the page
    """
    if _has_html(ctx, pending) and config.html:
        pending = await validator.validate_html(pending)

    if _has_html(ctx, pending) and config.css:
        pending = await validator.validate_css(pending)

    if ctx.sent:
        return

    if pending is not None and pending.html:
        ctx.emit(web.Response(text=pending.html, status=pending.status or 200, content_type="text/html"))
    else:
        raise ResourceNotFound(
            f'Could not find resource "{ctx.path}" with request method "{ctx.method}".'
        )


def respond_error(
    ctx: "RequestContext",
    error: BaseException,
    env: jinja2.Environment | None = None,
) -> None:
    """Emit the error page for ``error``, or only log it once a response is out."""
    if ctx.sent:
        journal.error(
            f"Unexpected server error after response for {ctx.method} {ctx.path} was sent: "
            f"{type(error).__name__}: {error}"
        )
        logger.error("Post-emission failure", exc_info=error)
        return

    journal.error(f"{ctx.method} {ctx.path}: {type(error).__name__}: {error}")
    ctx.emit(web.Response(text=generate_error_page(error, env), status=500, content_type="text/html"))

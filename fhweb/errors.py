"""
fhw-web Errors

Exception hierarchy shared by the route table, dispatcher and response
pipeline. Every stage raises one of these; the error responder in
``fhweb.pipeline`` catches them exactly once and renders the error page.
"""

from pathlib import Path

import jinja2

TEMPLATES_DIR = Path(__file__).parent / "templates"
ERROR_TEMPLATE = "fhweb-error.html"


class FhwError(Exception):
    """Base for all fhw-web errors."""

    status = 500


class RouteNotFound(FhwError):
    """No route descriptor matches the request path and method."""

    status = 404


class ResourceNotFound(FhwError):
    """The pipeline reached emission without usable content."""

    status = 404


class FunctionNotFound(FhwError):
    """A route names a controller function that is not registered."""


class NotImplementedFeature(FhwError, NotImplementedError):
    """Raised for features that are declared but not supported."""


class ControllerContractError(FhwError):
    """A controller returned a value of unrecognized shape."""


class RouteConfigError(FhwError):
    """A route descriptor in the route table is invalid."""


class ResponseAlreadySent(FhwError):
    """A second terminal write was attempted on one request."""


class MarkupValidationError(FhwError):
    """The HTML or CSS validator rejected the rendered page."""

    def __init__(self, kind: str, messages: list[str] | None = None):
        self.kind = kind
        self.messages = messages or []
        summary = "; ".join(self.messages[:5]) or "validator unavailable"
        super().__init__(f"{kind.upper()} validation failed: {summary}")


_fallback_env: jinja2.Environment | None = None


def _error_env() -> jinja2.Environment:
    global _fallback_env
    if _fallback_env is None:
        _fallback_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=jinja2.select_autoescape(["html"]),
        )
    return _fallback_env


def generate_error_page(error: BaseException, env: jinja2.Environment | None = None) -> str:
    """Render the HTML error page for an unrecovered failure.

    ``env`` is the application's jinja2 environment when one is set up; the
    package template directory is used otherwise. The message is escaped.
    """
    template = (env or _error_env()).get_template(ERROR_TEMPLATE)
    return template.render(
        title=type(error).__name__,
        status=getattr(error, "status", 500),
        message=str(error) or repr(error),
    )

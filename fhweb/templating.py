"""
fhw-web Page Compilation

Pages are jinja2 templates in the configured pages directory. The
environment lives on the aiohttp app (aiohttp_jinja2) and also sees the
package templates, which hold the error page.
"""

from typing import TYPE_CHECKING

import aiohttp_jinja2
import jinja2
from aiohttp import web

from fhweb.errors import ResourceNotFound, TEMPLATES_DIR

if TYPE_CHECKING:
    from fhweb.config import Config


def setup_templates(app: web.Application, config: "Config") -> jinja2.Environment:
    """Install the jinja2 environment for pages on ``app``."""
    pages_dir = config.resolve(config.paths.pages)
    return aiohttp_jinja2.setup(
        app,
        loader=jinja2.FileSystemLoader([str(pages_dir), str(TEMPLATES_DIR)]),
        autoescape=jinja2.select_autoescape(["html"]),
        auto_reload=True,
    )


def compile_page(env: jinja2.Environment, path: str, frontmatter: dict) -> str:
    """Render the page template at ``path`` with ``frontmatter``."""
    try:
        template = env.get_template(path)
    except jinja2.TemplateNotFound as e:
        raise ResourceNotFound(f'Page template "{path}" does not exist') from e
    return template.render(**frontmatter)

"""
fhw-web Resource Utilities

Path resolution for static files and page templates, the global
frontmatter document, and the JSON data-document API for controllers.
"""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from fhweb.errors import ResourceNotFound

if TYPE_CHECKING:
    from fhweb.config import Config

logger = logging.getLogger(__name__)

PAGE_EXTENSION = ".html"


def to_absolute_path(config: "Config", relative: str | Path) -> Path:
    """Absolute path of a project-relative path."""
    return config.resolve(relative)


def _inside(root: Path, relative: str) -> Path:
    """Join ``relative`` onto ``root`` and refuse anything escaping it."""
    path = (root / relative.lstrip("/")).resolve()
    if not path.is_relative_to(root):
        raise ResourceNotFound(f'Path "{relative}" is outside of {root}')
    return path


def resolve_static(config: "Config", url_path: str, static_root: str) -> Path:
    """File path for a static request: the static root plus the URL path."""
    root = to_absolute_path(config, Path(config.paths.static) / static_root)
    return _inside(root, url_path)


def resolve_page(
    config: "Config",
    url_path: str,
    page: str,
    extension: str = PAGE_EXTENSION,
) -> str:
    """Template name of a page, relative to the pages directory.

    A ``page`` ending with "/" maps the request path into that directory
    ("/" itself maps to "index") and always gets ``extension``, so dots in
    the request path stay part of the name. Any other value names the
    template and gets ``extension`` only when it has no suffix of its own.
    """
    if page.endswith("/"):
        name = page + (url_path.strip("/") or "index") + extension
    else:
        name = page
        if not Path(name).suffix:
            name += extension
    name = name.lstrip("/")

    pages_root = to_absolute_path(config, config.paths.pages)
    _inside(pages_root, name)
    return name


def load_global_frontmatter(config: "Config") -> dict:
    """Global data shared with every page and controller.

    Read from the data directory on each call; an absent file yields {}.
    """
    path = to_absolute_path(config, Path(config.paths.data) / config.paths.global_frontmatter)
    if not path.exists():
        return {}
    with open(path) as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return data or {}


def _document_path(config: "Config", name: str) -> Path:
    if not name.endswith(".json"):
        name += ".json"
    return _inside(to_absolute_path(config, config.paths.data), name)


def load_json(config: "Config", name: str) -> Any:
    """Load a JSON document from the data directory."""
    path = _document_path(config, name)
    if not path.exists():
        raise ResourceNotFound(f'Data document "{name}" does not exist')
    with open(path) as f:
        return json.load(f)


def save_json(config: "Config", name: str, obj: Any) -> Path:
    """Write a JSON document to the data directory."""
    path = _document_path(config, name)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(obj, f, indent=2)
    logger.debug(f"Saved data document: {path}")
    return path

"""
fhw-web: a small route-table driven page server.

Controllers can keep JSON documents in the project's data directory:

    from fhweb import load_json, save_json

    def add_entry(frontmatter):
        entries = load_json("guestbook")
        entries.append(frontmatter["request"]["text"])
        save_json("guestbook", entries)
        return {"redirect": "/guestbook", "status": 303}
"""

from typing import Any

from fhweb import resources
from fhweb.config import active_config
from fhweb.results import Content, Json, Page, Redirect

__version__ = "0.3.0"

__all__ = ["Content", "Json", "Page", "Redirect", "load_json", "save_json", "start"]


def load_json(document_name: str) -> Any:
    """Load a JSON document from the data directory."""
    return resources.load_json(active_config(), document_name)


def save_json(document_name: str, obj: Any) -> None:
    """Save a JSON document to the data directory."""
    resources.save_json(active_config(), document_name, obj)


def start(user_config: dict | None = None) -> None:
    """Start the server with ``user_config`` merged over the defaults."""
    import asyncio

    from fhweb.main import serve

    asyncio.run(serve(user_config))

"""
Controller results.

A controller returns exactly one of Page, Json, Content or Redirect. Plain
dicts with exactly one of the keys ``page``, ``json``, ``content`` or
``redirect`` are accepted and converted at the adapter boundary.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from fhweb.errors import ControllerContractError

RESULT_KEYS = ("page", "json", "content", "redirect")


@dataclass(frozen=True)
class Page:
    page: str
    data: dict = field(default_factory=dict)
    status: int = 200


@dataclass(frozen=True)
class Json:
    json: Any
    status: int = 200


@dataclass(frozen=True)
class Content:
    content: Any


@dataclass(frozen=True)
class Redirect:
    location: str
    status: int = 301


ControllerResult = Union[Page, Json, Content, Redirect]

CONTRACT_HINT = (
    "Return value of controller does not fulfill the required syntax: expected exactly one of "
    "{page, data, status}, {json, status}, {content} or {redirect, status}."
)


def coerce_result(value: Any) -> ControllerResult:
    """Normalize a controller return value into a ControllerResult."""
    if isinstance(value, (Page, Json, Content, Redirect)):
        return value
    if not isinstance(value, dict):
        raise ControllerContractError(f"{CONTRACT_HINT} Got {type(value).__name__}.")

    present = [key for key in RESULT_KEYS if value.get(key) is not None]
    if len(present) != 1:
        raise ControllerContractError(f"{CONTRACT_HINT} Got keys: {sorted(value) or 'none'}.")

    kind = present[0]
    status = value.get("status")
    if kind == "page":
        return Page(page=value["page"], data=value.get("data") or {}, status=status or 200)
    if kind == "json":
        return Json(json=value["json"], status=status or 200)
    if kind == "content":
        return Content(content=value["content"])
    return Redirect(location=value["redirect"], status=status or 301)

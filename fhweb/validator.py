"""
fhw-web Markup Validator

Checks rendered pages against an HTML validator (Nu Html Checker JSON API)
and a CSS validator (W3C CSS validator JSON API). Enabled per config:

    validator:
      html: true
      css: true

A page with validator errors is rejected with MarkupValidationError;
warnings and info messages pass.
"""

import asyncio
import logging
import re
from typing import TYPE_CHECKING

import aiohttp

from fhweb.errors import MarkupValidationError
from fhweb.journal import journal

if TYPE_CHECKING:
    from fhweb.config import ValidatorConfig
    from fhweb.dispatch import PendingResponse

logger = logging.getLogger(__name__)

STYLE_BLOCK_RE = re.compile(r"<style[^>]*>(.*?)</style>", re.IGNORECASE | re.DOTALL)
STYLE_ATTR_RE = re.compile(r"""\sstyle\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)


def extract_css(html: str) -> str:
    """All CSS of a page: <style> blocks plus style attributes as rules."""
    parts = [block.strip() for block in STYLE_BLOCK_RE.findall(html)]
    parts.extend(f"* {{ {attr.strip()} }}" for _, attr in STYLE_ATTR_RE.findall(html))
    return "\n".join(part for part in parts if part)


class Validator:
    """HTML and CSS validation service."""

    def __init__(self, config: "ValidatorConfig"):
        self.config = config
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            logger.info(
                f"Validator started (html: {self.config.html_endpoint}, css: {self.config.css_endpoint})"
            )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.info("Validator stopped")

    async def validate_html(self, pending: "PendingResponse") -> "PendingResponse":
        """Reject ``pending`` if its markup has HTML errors."""
        if self._session is None:
            await self.start()

        try:
            async with self._session.post(
                self.config.html_endpoint,
                data=pending.html.encode(),
                headers={"Content-Type": "text/html; charset=utf-8"},
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if response.status != 200:
                    raise MarkupValidationError("html", [f"validator responded with {response.status}"])
                result = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            journal.validation_error("html", str(e) or type(e).__name__)
            raise MarkupValidationError("html", [f"validator request failed: {str(e) or type(e).__name__}"]) from e

        errors = [
            f"line {m.get('lastLine', '?')}: {m.get('message', '')}"
            for m in result.get("messages", [])
            if m.get("type") == "error"
        ]
        if errors:
            journal.validation_error("html", f"{len(errors)} error(s) in {pending.path_to_file}")
            raise MarkupValidationError("html", errors)

        journal.validated("html", pending.path_to_file)
        return pending

    async def validate_css(self, pending: "PendingResponse") -> "PendingResponse":
        """Reject ``pending`` if its inline CSS has errors. Pages without CSS pass."""
        css = extract_css(pending.html)
        if not css:
            return pending

        if self._session is None:
            await self.start()

        try:
            async with self._session.post(
                self.config.css_endpoint,
                data={"text": css, "output": "json", "profile": "css3"},
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if response.status != 200:
                    raise MarkupValidationError("css", [f"validator responded with {response.status}"])
                result = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            journal.validation_error("css", str(e) or type(e).__name__)
            raise MarkupValidationError("css", [f"validator request failed: {str(e) or type(e).__name__}"]) from e

        validation = result.get("cssvalidation", {})
        errors = [
            f"line {e.get('line', '?')}: {e.get('message', '').strip()}"
            for e in validation.get("errors", [])
        ]
        if errors or validation.get("validity") is False:
            journal.validation_error("css", f"{len(errors)} error(s) in {pending.path_to_file}")
            raise MarkupValidationError("css", errors)

        journal.validated("css", pending.path_to_file)
        return pending

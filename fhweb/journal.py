"""
fhw-web Request Journal

The journal is the operational log of the dispatch pipeline. Every request
leaves a short trail of events as it moves from the route table through a
handler to its terminal response.

Events:
- ➡️ REQUEST: Incoming request
- 🧭 ROUTE: Matching route found / no route matched
- 📄 PAGE, 📦 STATIC, ⚙️ CTRL: Handler selection
- 🔀 REDIRECT, 🧾 JSON: Terminal controller results
- ✅ VALID: Markup validation
- ❌ ERROR: Unrecovered failures
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path


class Event(Enum):
    """Event types for the request journal."""
    # Request lifecycle
    REQUEST = "➡️ REQUEST"
    RESPONSE = "⬅️ RESPONSE"
    FAVICON = "🔖 FAVICON"

    # Routing
    ROUTE_MATCH = "🧭 ROUTE"
    ROUTE_MISS = "🧭 NO.ROUTE"

    # Handlers
    STATIC = "📦 STATIC"
    PAGE = "📄 PAGE"
    CONTROLLER = "⚙️ CTRL"
    JSON = "🧾 JSON"
    REDIRECT = "🔀 REDIRECT"
    SESSION = "🍪 SESSION"

    # Validation
    VALIDATE = "✅ VALID"
    VALIDATE_ERROR = "✅ VAL.ERR"

    # System events
    SYSTEM_START = "⚡ START"
    SYSTEM_STOP = "⚡ STOP"
    SYSTEM_ERROR = "❌ ERROR"


class JournalFormatter(logging.Formatter):
    """Compact one-line formatter for the request journal."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        event = getattr(record, 'event', None)
        if event:
            prefix = event.value
        else:
            prefix = f"[{record.levelname}]"

        return f"{timestamp} {prefix} │ {record.getMessage()}"


class RequestJournal:
    """
    Operational log for request dispatch.

    Usage:
        from fhweb.journal import journal

        journal.request("GET", "/index")
        journal.route_match(0, "^/index$")
        journal.page("pages/index.html", 200)
    """

    def __init__(self, name: str = "fhweb.journal"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self._configured = False

    def configure(self, log_file: Path | None = None, console: bool = True) -> None:
        """Configure journal outputs."""
        if self._configured:
            return

        formatter = JournalFormatter()

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        # Don't propagate to root logger (avoid duplicate output)
        self.logger.propagate = False
        self._configured = True

    def _log(self, event: Event, message: str, level: int = logging.INFO) -> None:
        """Log an event."""
        if not self._configured:
            self.configure()
        self.logger.log(level, message, extra={'event': event})

    # === Request lifecycle ===

    def request(self, method: str, path: str) -> None:
        """Log an incoming request."""
        self._log(Event.REQUEST, f'Calling resource "{path}" with method {method}')

    def response(self, status: int, path: str) -> None:
        """Log the terminal response of a request."""
        self._log(Event.RESPONSE, f"{status} {path}")

    def handoff(self, path: str) -> None:
        """Log a file response handed to aiohttp, which sets its status."""
        self._log(Event.RESPONSE, f"file handed off {path}")

    def favicon(self) -> None:
        """Log the favicon advisory notice."""
        self._log(
            Event.FAVICON,
            "A favicon in the project's root directory will be ignored. "
            'Move it into a subdirectory like "assets" and define a route for it.',
            logging.WARNING,
        )

    # === Routing ===

    def route_match(self, index: int, pattern: str) -> None:
        """Log the matching route."""
        self._log(Event.ROUTE_MATCH, f"Found matching route #{index} ({pattern})")

    def route_miss(self, method: str, path: str) -> None:
        """Log that no route matched."""
        self._log(Event.ROUTE_MISS, f"No route for {method} {path}", logging.WARNING)

    # === Handlers ===

    def static(self, path: str) -> None:
        """Log a static file transmission."""
        self._log(Event.STATIC, str(path))

    def page(self, path: str, status: int = 200) -> None:
        """Log a page render."""
        self._log(Event.PAGE, f"{path} ({status})")

    def controller(self, module_name: str, function_name: str) -> None:
        """Log a controller invocation."""
        self._log(Event.CONTROLLER, f"{module_name}.{function_name}()")

    def json(self, status: int) -> None:
        """Log a JSON emission."""
        self._log(Event.JSON, f"status {status}")

    def redirect(self, location: str, status: int) -> None:
        """Log a redirect."""
        self._log(Event.REDIRECT, f"{status} → {location}")

    def session_saved(self, session_id: str) -> None:
        """Log a session persist."""
        self._log(Event.SESSION, f"saved {session_id[:8]}")

    # === Validation ===

    def validated(self, kind: str, path: str) -> None:
        """Log a successful markup validation."""
        self._log(Event.VALIDATE, f"{kind}: {path}")

    def validation_error(self, kind: str, message: str) -> None:
        """Log a validation rejection."""
        self._log(Event.VALIDATE_ERROR, f"{kind}: {message}", logging.WARNING)

    # === System events ===

    def start(self, component: str) -> None:
        """Log component started."""
        self._log(Event.SYSTEM_START, component)

    def stop(self, component: str) -> None:
        """Log component stopped."""
        self._log(Event.SYSTEM_STOP, component)

    def error(self, message: str) -> None:
        """Log system error."""
        self._log(Event.SYSTEM_ERROR, message, logging.ERROR)


# Global journal instance
journal = RequestJournal()

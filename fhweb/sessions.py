"""
fhw-web Sessions and Request Parameters

SQLite-backed session storage. A session is a plain dict identified by the
session cookie; controllers mutate it in place and the dispatcher persists
it after each controller call.

Tables:
- sessions: session id → JSON data
"""

import json
import logging
import secrets
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite
from aiohttp import web

from fhweb.journal import journal

if TYPE_CHECKING:
    from fhweb.routes import RouteDescriptor

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    id         TEXT PRIMARY KEY,
    data       TEXT DEFAULT '{}',
    created_at TEXT DEFAULT (datetime('now')),
    updated_at TEXT DEFAULT (datetime('now'))
);
"""


class Session(dict):
    """Session data with its id.

    ``is_new`` marks sessions without a cookie yet; ``persisted`` is set by
    the first save.
    """

    def __init__(self, session_id: str, data: dict | None = None, is_new: bool = False):
        super().__init__(data or {})
        self.id = session_id
        self.is_new = is_new
        self.persisted = not is_new


class SessionStore:
    """
    Async SQLite session store.

    Usage:
        store = SessionStore()
        await store.open(Path("data/sessions.db"))

        session = await store.load(cookie_value)
        session["user"] = "ada"
        await store.save(session)

        await store.close()
    """

    def __init__(self) -> None:
        self._db: aiosqlite.Connection | None = None
        self._db_path: Path | None = None

    async def open(self, db_path: Path, max_age_days: int | None = None) -> None:
        """Open the SQLite database and ensure schema exists.

        With ``max_age_days``, sessions untouched for that long are pruned.
        """
        self._db_path = db_path
        if str(db_path) != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(db_path))
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA_SQL)
        await self._db.commit()
        logger.info(f"Session store opened: {db_path}")
        if max_age_days:
            await self.prune(max_age_days)

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Session store closed")

    def new(self) -> Session:
        """Create a fresh, not yet persisted session."""
        return Session(secrets.token_urlsafe(24), is_new=True)

    async def load(self, session_id: str | None) -> Session:
        """Load a session by id. Unknown or missing ids yield a new session."""
        if not session_id:
            return self.new()
        async with self._db.execute(
            "SELECT data FROM sessions WHERE id = ?",
            (session_id,),
        ) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return self.new()
            return Session(session_id, json.loads(row["data"]))

    async def save(self, session: Session) -> None:
        """Persist session data (JSON-encoded)."""
        await self._db.execute(
            """INSERT INTO sessions (id, data) VALUES (?, ?)
               ON CONFLICT(id) DO UPDATE SET data = excluded.data, updated_at = datetime('now')""",
            (session.id, json.dumps(dict(session))),
        )
        await self._db.commit()
        session.persisted = True

    async def prune(self, max_age_days: int) -> int:
        """Delete sessions not updated within ``max_age_days``. Returns the count."""
        cursor = await self._db.execute(
            "DELETE FROM sessions WHERE updated_at < datetime('now', ?)",
            (f"-{int(max_age_days)} days",),
        )
        await self._db.commit()
        if cursor.rowcount:
            logger.info(f"Pruned {cursor.rowcount} stale sessions")
        return cursor.rowcount

    async def delete(self, session_id: str) -> None:
        """Delete a session."""
        await self._db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        await self._db.commit()


async def save_session_data(store: SessionStore, session: Session) -> None:
    """Persist a (possibly mutated) session."""
    await store.save(session)
    journal.session_saved(session.id)


async def _read_body(request: web.Request) -> dict[str, Any]:
    """Form fields or JSON object fields of the request body."""
    if not request.can_read_body:
        return {}
    if request.content_type == "application/json":
        try:
            body = await request.json()
        except json.JSONDecodeError:
            logger.debug(f"Ignoring malformed JSON body on {request.path}")
            return {}
        return body if isinstance(body, dict) else {}
    if request.content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.post()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return {}


async def parse_params(
    request: web.Request,
    route: "RouteDescriptor",
    store: SessionStore,
    cookie_name: str,
) -> tuple[dict[str, Any], Session]:
    """Request parameters and session for a matched route.

    Parameters merge, later winning: query string, request body, named
    groups of the route's url pattern.
    """
    params: dict[str, Any] = dict(request.query)
    params.update(await _read_body(request))

    match = route.url_pattern.search(request.path)
    if match:
        params.update({k: v for k, v in match.groupdict().items() if v is not None})

    session = await store.load(request.cookies.get(cookie_name))
    return params, session

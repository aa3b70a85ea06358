"""Tests for SessionStore persistence and request parameter parsing."""

from aiohttp.test_utils import make_mocked_request

from fhweb.routes import parse_route
from fhweb.sessions import Session, SessionStore, parse_params, save_session_data


async def test_load_without_id_creates_new_session(session_store):
    session = await session_store.load(None)
    assert session == {}
    assert session.is_new
    assert not session.persisted
    assert len(session.id) >= 24


async def test_unknown_id_creates_new_session(session_store):
    session = await session_store.load("does-not-exist")
    assert session.is_new
    assert session.id != "does-not-exist"


async def test_save_and_load_roundtrip(session_store):
    session = session_store.new()
    session["user"] = {"name": "ada", "roles": ["admin"]}
    await save_session_data(session_store, session)

    loaded = await session_store.load(session.id)
    assert loaded == {"user": {"name": "ada", "roles": ["admin"]}}
    assert not loaded.is_new
    assert session.persisted


async def test_save_overwrites_existing(session_store):
    session = Session("fixed", {"n": 1})
    await session_store.save(session)
    session["n"] = 2
    await session_store.save(session)
    assert (await session_store.load("fixed")) == {"n": 2}


async def test_delete(session_store):
    await session_store.save(Session("gone", {"a": 1}))
    await session_store.delete("gone")
    assert (await session_store.load("gone")).is_new


async def test_prune_drops_only_stale_sessions(session_store):
    await session_store.save(Session("fresh", {"a": 1}))
    await session_store.save(Session("stale", {"a": 2}))
    await session_store._db.execute(
        "UPDATE sessions SET updated_at = datetime('now', '-45 days') WHERE id = 'stale'"
    )

    assert await session_store.prune(30) == 1
    assert not (await session_store.load("fresh")).is_new
    assert (await session_store.load("stale")).is_new


async def test_open_prunes_stale_sessions(tmp_path):
    db_path = tmp_path / "data" / "sessions.db"
    store = SessionStore()
    await store.open(db_path)
    await store.save(Session("stale", {"a": 1}))
    await store._db.execute("UPDATE sessions SET updated_at = datetime('now', '-90 days')")
    await store._db.commit()
    await store.close()

    await store.open(db_path, max_age_days=30)
    try:
        assert (await store.load("stale")).is_new
    finally:
        await store.close()


async def test_parse_params_merges_query_and_url_groups(session_store):
    route = parse_route({"url": r"^/posts/(?P<slug>[\w-]+)$", "page": "post"})
    request = make_mocked_request("GET", "/posts/hello-world?page=2&slug=query")

    params, session = await parse_params(request, route, session_store, "fhw_session")

    assert params == {"page": "2", "slug": "hello-world"}
    assert session.is_new


async def test_parse_params_loads_session_from_cookie(session_store):
    await session_store.save(Session("known", {"user": "ada"}))
    route = parse_route({"url": "^/$", "page": "index"})
    request = make_mocked_request("GET", "/", headers={"Cookie": "fhw_session=known"})

    _, session = await parse_params(request, route, session_store, "fhw_session")

    assert session.id == "known"
    assert session == {"user": "ada"}

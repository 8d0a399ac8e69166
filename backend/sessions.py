"""Live game sessions behind the API.

Sessions are held in memory and looked up by session id. Each session takes
one command at a time: a command that arrives while another is still running
for the same session is refused with 409 instead of being queued.

A session leaves the registry when it is abandoned, once the response that
ended it has been built, or after IDLE_TIMEOUT seconds without a request.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import HTTPException

from anigame.catalog import Catalog, HttpCatalog, StaticCatalog
from anigame.config import Settings
from anigame.games import ChainGameController, ComparisonGameController
from anigame.games.chain import GAME_ID as CHAIN_GAME_ID
from anigame.models import ComparisonMode
from anigame.persistence import SESSION_TTL, SessionPersistence
from anigame.storage import Storage, slot_name

logger = logging.getLogger(__name__)

IDLE_TIMEOUT = SESSION_TTL  # seconds

_catalog: Catalog | None = None
_storage: Storage | None = None
_chain: dict[str, ChainGameController] = {}
_comparison: dict[str, ComparisonGameController] = {}
_last_seen: dict[str, float] = {}
_busy: set[str] = set()


def build_catalog(settings: Settings) -> Catalog:
    """Offline catalog from a JSON file when one is configured, else HTTP."""
    if settings.catalog_file:
        logger.info("Using static catalog from %s", settings.catalog_file)
        return StaticCatalog.from_file(settings.catalog_file)
    return HttpCatalog(settings.api_url, settings.search_url, settings.http_timeout)


def init_sessions(catalog: Catalog, storage: Storage) -> None:
    global _catalog, _storage
    _catalog = catalog
    _storage = storage
    _chain.clear()
    _comparison.clear()
    _last_seen.clear()
    _busy.clear()


def catalog() -> Catalog:
    if _catalog is None:
        raise RuntimeError("Sessions not initialised. Call init_sessions() first.")
    return _catalog


def storage() -> Storage:
    if _storage is None:
        raise RuntimeError("Sessions not initialised. Call init_sessions() first.")
    return _storage


def live_count() -> int:
    return len(_chain) + len(_comparison)


# ---------------------------------------------------------------------------
# Chain games
# ---------------------------------------------------------------------------

def new_chain(username: str) -> ChainGameController:
    persistence = SessionPersistence(storage(), slot=slot_name(CHAIN_GAME_ID, username))
    return ChainGameController(catalog(), persistence=persistence, username=username)


def register_chain(controller: ChainGameController) -> str:
    prune_idle()
    session_id = controller.session.session_id
    _chain[session_id] = controller
    _touch(session_id)
    return session_id


def get_chain(session_id: str) -> ChainGameController:
    controller = _chain.get(session_id)
    if controller is None:
        raise HTTPException(404, "Game not found")
    _touch(session_id)
    return controller


def drop_chain(session_id: str) -> ChainGameController:
    controller = _chain.pop(session_id, None)
    if controller is None:
        raise HTTPException(404, "Game not found")
    _last_seen.pop(session_id, None)
    return controller


# ---------------------------------------------------------------------------
# Comparison games
# ---------------------------------------------------------------------------

def new_comparison(mode: ComparisonMode, username: str) -> ComparisonGameController:
    return ComparisonGameController(catalog(), mode=mode, username=username)


def register_comparison(controller: ComparisonGameController) -> str:
    prune_idle()
    session_id = controller.session.session_id
    _comparison[session_id] = controller
    _touch(session_id)
    return session_id


def get_comparison(session_id: str) -> ComparisonGameController:
    controller = _comparison.get(session_id)
    if controller is None:
        raise HTTPException(404, "Game not found")
    _touch(session_id)
    return controller


def drop_comparison(session_id: str) -> ComparisonGameController:
    controller = _comparison.pop(session_id, None)
    if controller is None:
        raise HTTPException(404, "Game not found")
    _last_seen.pop(session_id, None)
    return controller


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------

def _touch(session_id: str) -> None:
    _last_seen[session_id] = time.monotonic()


def retire(session_id: str) -> None:
    """Forget a finished session. Its final state was already sent."""
    _chain.pop(session_id, None)
    _comparison.pop(session_id, None)
    _last_seen.pop(session_id, None)
    logger.debug("Retired finished session %s", session_id)


def prune_idle(now: float | None = None) -> int:
    """Drop sessions idle for longer than IDLE_TIMEOUT. Returns how many went."""
    now = time.monotonic() if now is None else now
    stale = [
        sid for sid, seen in _last_seen.items()
        if now - seen > IDLE_TIMEOUT and sid not in _busy
    ]
    for sid in stale:
        retire(sid)
    if stale:
        logger.info("Expired %d idle sessions", len(stale))
    return len(stale)


# ---------------------------------------------------------------------------
# One command at a time
# ---------------------------------------------------------------------------

@asynccontextmanager
async def exclusive(session_id: str):
    """Hold the session for one command; 409 if it is already held."""
    if session_id in _busy:
        logger.info("Rejected overlapping command for session %s", session_id)
        raise HTTPException(409, "Another command is in progress for this game")
    _busy.add(session_id)
    try:
        yield
    finally:
        _busy.discard(session_id)

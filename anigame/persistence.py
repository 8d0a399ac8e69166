"""Checkpoint and restore of chain-mode sessions.

One named slot holds at most one resumable session. A snapshot carries the
reference anime, the active challenge as {kind, params}, the used ids and
the round count, never a callable.

Load policy: a slot that is missing, unreadable, older than SESSION_TTL or
marked terminal is "no resumable session". Bad and stale slots are deleted
on the way out. Terminal sessions are never written; saving one clears the
slot instead.

Writes are best-effort. A failed write is logged and the game carries on.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import ValidationError

from anigame.challenges import challenge_from_params
from anigame.models import ChainSession, ChainSnapshot, SavedChallenge
from anigame.storage import Storage

logger = logging.getLogger(__name__)

SESSION_TTL = 2 * 60 * 60  # seconds
DEFAULT_SLOT = "anicom"


class SessionPersistence:
    """Save and resume one chain session in one storage slot.

    With the default slot there is a single resumable session for the whole
    data directory. The API passes a per-player slot instead (see
    anigame.storage.slot_name), so each player has their own resumable
    game rather than one shared system-wide.
    """

    def __init__(
        self,
        storage: Storage,
        slot: str = DEFAULT_SLOT,
        ttl: float = SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._slot = slot
        self._ttl = ttl
        self._clock = clock

    def snapshot(self, session: ChainSession) -> ChainSnapshot:
        if session.reference is None or session.challenge is None:
            raise ValueError("Cannot snapshot a session without an active round")
        return ChainSnapshot(
            session_id=session.session_id,
            reference=session.reference,
            challenge=SavedChallenge(kind=session.challenge.kind, params=session.challenge.params),
            used_ids=sorted(session.used_ids),
            rounds_completed=session.rounds_completed,
            score=session.score,
            terminal=session.terminal,
            saved_at=self._clock(),
        )

    def save(self, session: ChainSession) -> bool:
        """Checkpoint a live session. Returns False if nothing was written."""
        if session.terminal:
            self.clear()
            return False
        try:
            data = self.snapshot(session).model_dump(mode="json")
            self._storage.write_slot(self._slot, data)
        except (OSError, ValueError) as e:
            logger.warning("Could not persist session %s to slot %s: %s", session.session_id, self._slot, e)
            return False
        logger.debug("Saved session %s to slot %s", session.session_id, self._slot)
        return True

    def load(self) -> ChainSnapshot | None:
        """Return the resumable snapshot, or None."""
        try:
            raw = self._storage.read_slot(self._slot)
        except (OSError, ValueError) as e:
            logger.info("Discarding unreadable session in slot %s: %s", self._slot, e)
            self.clear()
            return None
        if raw is None:
            return None

        try:
            snapshot = ChainSnapshot.model_validate(raw)
            challenge_from_params(snapshot.challenge.kind, snapshot.challenge.params)
        except (ValidationError, ValueError) as e:
            logger.info("Discarding malformed session in slot %s: %s", self._slot, e)
            self.clear()
            return None

        if snapshot.terminal:
            logger.info("Discarding finished session in slot %s", self._slot)
            self.clear()
            return None

        age = self._clock() - snapshot.saved_at
        if age > self._ttl:
            logger.info("Discarding expired session in slot %s (age %.0fs)", self._slot, age)
            self.clear()
            return None

        return snapshot

    def restore(self) -> ChainSession | None:
        """Rebuild a live session from the slot, or None if nothing resumable."""
        snapshot = self.load()
        if snapshot is None:
            return None
        challenge = challenge_from_params(snapshot.challenge.kind, snapshot.challenge.params)
        return ChainSession(
            session_id=snapshot.session_id,
            reference=snapshot.reference,
            challenge=challenge,
            used_ids=set(snapshot.used_ids),
            rounds_completed=snapshot.rounds_completed,
            score=snapshot.score,
        )

    def clear(self) -> None:
        try:
            self._storage.delete_slot(self._slot)
        except OSError as e:
            logger.warning("Could not clear slot %s: %s", self._slot, e)

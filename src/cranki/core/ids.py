"""Identifier generation for new notes and cards."""

import logging
import secrets
import sqlite3
import time
from collections.abc import Callable

from cranki.core.models import Identity

logger = logging.getLogger(__name__)


def new_guid() -> str:
    """Random 64-bit GUID as lowercase hex."""
    return format(secrets.randbits(64), "x")


def new_identity(now: float | None = None) -> Identity:
    """Build an identity from the wall clock.

    ``id`` is the time in milliseconds and ``mod`` in seconds. Nothing
    guarantees uniqueness beyond the clock resolution; use
    ``IdentityGenerator`` when writing to a collection.
    """
    if now is None:
        now = time.time()
    return Identity(id=int(now * 1000), mod=int(now), guid=new_guid())


class IdentityGenerator:
    """Hands out identities that are unique within a collection.

    Ids are seeded from the largest note or card id already stored and never
    go backwards, even if the clock does. GUIDs are redrawn until they do not
    clash with an existing note.
    """

    def __init__(self, conn: sqlite3.Connection, clock: Callable[[], float] = time.time):
        self.conn = conn
        self.clock = clock
        self._last_id: int | None = None

    def _max_existing_id(self) -> int:
        row = self.conn.execute(
            """
            SELECT MAX(max_id) FROM (
                SELECT MAX(id) AS max_id FROM notes
                UNION ALL
                SELECT MAX(id) AS max_id FROM cards
            )
            """
        ).fetchone()
        return row[0] or 0

    def _guid_exists(self, guid: str) -> bool:
        row = self.conn.execute("SELECT 1 FROM notes WHERE guid = ?", (guid,)).fetchone()
        return row is not None

    def next(self) -> Identity:
        """Return the next identity.

        The largest stored id is read on the first call.
        """
        if self._last_id is None:
            self._last_id = self._max_existing_id()

        identity = new_identity(self.clock())
        if identity.id <= self._last_id:
            logger.debug("Clock id %d not above %d, bumping", identity.id, self._last_id)
            identity.id = self._last_id + 1
        self._last_id = identity.id

        while self._guid_exists(identity.guid):
            logger.debug("GUID %s already in use, drawing another", identity.guid)
            identity.guid = new_guid()

        return identity

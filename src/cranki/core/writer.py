"""Build and persist a new note together with its first card."""

import logging
import sqlite3
from collections.abc import Iterable

from cranki.core.checksum import field_checksum
from cranki.core.errors import DuplicateNoteError, NoteValidationError, StorageError
from cranki.core.ids import IdentityGenerator
from cranki.core.models import (
    FIELD_SEPARATOR,
    CardRecord,
    Deck,
    Identity,
    NoteModel,
    NoteRecord,
)

logger = logging.getLogger(__name__)

_NOTE_COLUMNS = ("id", "guid", "mid", "mod", "usn", "tags", "flds", "sfld", "csum", "flags", "data")
_CARD_COLUMNS = (
    "id",
    "nid",
    "did",
    "ord",
    "mod",
    "usn",
    "type",
    "queue",
    "due",
    "ivl",
    "factor",
    "reps",
    "lapses",
    "left",
    "odue",
    "odid",
    "flags",
    "data",
)


def _insert_sql(table: str, columns: tuple[str, ...]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table}({', '.join(columns)}) VALUES({placeholders})"


_INSERT_NOTE = _insert_sql("notes", _NOTE_COLUMNS)
_INSERT_CARD = _insert_sql("cards", _CARD_COLUMNS)


def validate_fields(model: NoteModel, fields: list[str], template_ord: int = 0) -> None:
    """Check field values against a model before anything is written.

    Raises:
        NoteValidationError: on a field count mismatch, a value containing the
            field separator, or a template slot the model does not have.
    """
    if len(fields) != model.fields:
        raise NoteValidationError(
            f"Model '{model.name}' expected {model.fields} fields but {len(fields)} were provided"
        )
    if not fields:
        raise NoteValidationError(f"Model '{model.name}' has no fields to fill")
    for position, value in enumerate(fields, start=1):
        if FIELD_SEPARATOR in value:
            raise NoteValidationError(f"Field {position} contains the reserved separator character")
    if template_ord < 0:
        raise NoteValidationError(f"Template ord {template_ord} is negative")
    # Cloze models render one card per cloze number from a single template
    if not model.cloze and model.templates and template_ord >= model.templates:
        raise NoteValidationError(
            f"Model '{model.name}' has {model.templates} card templates, "
            f"ord {template_ord} is out of range"
        )


def join_fields(fields: list[str]) -> str:
    return FIELD_SEPARATOR.join(fields)


def build_note(identity: Identity, model_id: int, fields: list[str]) -> NoteRecord:
    """Build the ``notes`` row; the first field is the sort field."""
    sort_field = fields[0]
    return NoteRecord(
        id=identity.id,
        guid=identity.guid,
        mid=model_id,
        mod=identity.mod,
        flds=join_fields(fields),
        sfld=sort_field,
        csum=field_checksum(sort_field),
    )


def build_card(identity: Identity, deck_id: int, template_ord: int = 0) -> CardRecord:
    """Build the ``cards`` row for a new card.

    The card reuses the note id, and ``due`` holds the note id so new cards
    are shown in creation order.
    """
    return CardRecord(
        id=identity.id,
        nid=identity.id,
        did=deck_id,
        ord=template_ord,
        mod=identity.mod,
        due=identity.id,
    )


class NoteWriter:
    """Writes notes and cards to an open collection."""

    def __init__(self, conn: sqlite3.Connection, ids: IdentityGenerator | None = None):
        self.conn = conn
        self.ids = ids or IdentityGenerator(conn)

    def write(
        self,
        model: NoteModel,
        deck: Deck,
        fields: list[str],
        template_ord: int = 0,
        allow_duplicate: bool = True,
        existing_fields: Iterable[str] = (),
    ) -> tuple[NoteRecord, CardRecord]:
        """Add a note and its card in a single transaction.

        Either both rows are stored or neither is.

        Raises:
            NoteValidationError: if the fields do not fit the model.
            DuplicateNoteError: if ``allow_duplicate`` is false and a note
                with the same fields exists.
            StorageError: if either insert fails.
        """
        validate_fields(model, fields, template_ord)
        if not allow_duplicate and join_fields(fields) in set(existing_fields):
            raise DuplicateNoteError(f"A note with fields {fields!r} already exists")

        try:
            identity = self.ids.next()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to allocate note id: {e}") from e

        note = build_note(identity, model.id, fields)
        card = build_card(identity, deck.id, template_ord)

        try:
            self.conn.execute("BEGIN")
            self.conn.execute(_INSERT_NOTE, [getattr(note, c) for c in _NOTE_COLUMNS])
            self.conn.execute(_INSERT_CARD, [getattr(card, c) for c in _CARD_COLUMNS])
            self.conn.execute("COMMIT")
        except sqlite3.Error as e:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise StorageError(f"Failed to write the new note: {e}") from e

        logger.debug("Wrote note %d (guid %s) with card in deck %d", note.id, note.guid, deck.id)
        return note, card

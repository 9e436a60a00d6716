"""Read note models, decks and usage counts from an Anki collection.

The collection keeps its note models and decks as JSON objects in the single
row of the ``col`` table, keyed by their ids written as strings. Counts come
from grouping the ``notes`` and ``cards`` tables. See
https://github.com/ankidroid/Anki-Android/wiki/Database-Structure
"""

import logging
import sqlite3

from pydantic import TypeAdapter, ValidationError

from cranki.core.errors import SchemaError
from cranki.core.models import Catalog, Deck, NoteModel, RawDeck, RawNoteModel

logger = logging.getLogger(__name__)

_MODELS_ADAPTER = TypeAdapter(dict[int, RawNoteModel])
_DECKS_ADAPTER = TypeAdapter(dict[int, RawDeck])


def decode_models(models_json: str) -> list[NoteModel]:
    """Decode the ``col.models`` blob. The whole blob is rejected on any error."""
    if not isinstance(models_json, (str, bytes)):
        raise SchemaError("The collection has no note models")
    try:
        raw = _MODELS_ADAPTER.validate_json(models_json)
    except ValidationError as e:
        raise SchemaError(f"Failed to decode note models: {e}") from e
    return [NoteModel.from_raw(model) for model in raw.values()]


def decode_decks(decks_json: str) -> list[Deck]:
    """Decode the ``col.decks`` blob. The whole blob is rejected on any error."""
    if not isinstance(decks_json, (str, bytes)):
        raise SchemaError("The collection has no decks")
    try:
        raw = _DECKS_ADAPTER.validate_json(decks_json)
    except ValidationError as e:
        raise SchemaError(f"Failed to decode decks: {e}") from e
    return [Deck.from_raw(deck) for deck in raw.values()]


def _fold_counts(rows: list[sqlite3.Row], items: list, attr: str, kind: str) -> None:
    """Add grouped counts onto the item with the matching id."""
    by_id = {item.id: item for item in items}
    for owner_id, count in rows:
        item = by_id.get(owner_id)
        if item is None:
            logger.debug("Ignoring %d rows for unknown %s id %s", count, kind, owner_id)
            continue
        setattr(item, attr, getattr(item, attr) + count)


def read_catalog(conn: sqlite3.Connection) -> Catalog:
    """Extract models, decks and existing note fields from a collection.

    Raises:
        SchemaError: if the metadata row is missing, a query fails, or the
            serialized models/decks cannot be decoded.
    """
    try:
        row = conn.execute("SELECT mod, usn, models, decks FROM col").fetchone()
        if row is None:
            raise SchemaError("The collection has no metadata row")
        logger.debug("Collection mod=%s usn=%s", row[0], row[1])

        models = decode_models(row[2])
        decks = decode_decks(row[3])

        card_counts = conn.execute("SELECT did, COUNT(*) AS count FROM cards GROUP BY did").fetchall()
        _fold_counts(card_counts, decks, "card_count", "deck")

        note_counts = conn.execute("SELECT mid, COUNT(*) AS count FROM notes GROUP BY mid").fetchall()
        _fold_counts(note_counts, models, "note_count", "model")

        existing_fields = [r[0] for r in conn.execute("SELECT flds FROM notes")]
    except sqlite3.Error as e:
        raise SchemaError(f"Failed to extract the required state from the database: {e}") from e

    logger.debug(
        "Read %d models, %d decks, %d notes", len(models), len(decks), len(existing_fields)
    )
    return Catalog(
        models=sorted(models, key=lambda m: m.name),
        decks=sorted(decks, key=lambda d: d.name),
        existing_fields=existing_fields,
    )

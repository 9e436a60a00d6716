"""Access to an Anki collection file."""

import logging
import sqlite3
from pathlib import Path

from cranki.core.collection import read_catalog
from cranki.core.errors import StorageError
from cranki.core.models import Catalog, CardRecord, NoteRecord
from cranki.core.writer import NoteWriter

logger = logging.getLogger(__name__)


def validate_database_path(path: Path | str) -> Path:
    """Check that ``path`` points at an existing regular file."""
    path = Path(path)
    if not path.exists():
        raise StorageError(f"No database found at the provided path ({path})")
    if not path.is_file():
        raise StorageError(f"The provided database path ({path}) does not point to a standard file")
    return path


class CollectionStore:
    """Owns the single SQLite connection used for one invocation."""

    def __init__(self, db_path: Path | str):
        self.db_path = validate_database_path(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Open the connection on first use."""
        if self._conn is None:
            try:
                # Autocommit mode: transactions are opened explicitly by the writer
                self._conn = sqlite3.connect(self.db_path, isolation_level=None)
            except sqlite3.Error as e:
                raise StorageError(f"Failed to open database file at path {self.db_path}: {e}") from e
            self._conn.row_factory = sqlite3.Row
            logger.debug("Opened collection %s", self.db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CollectionStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CrankiCollection:
    """Combined catalog reader and note writer for one collection."""

    def __init__(self, db_path: Path | str):
        self.store = CollectionStore(db_path)
        self._catalog: Catalog | None = None

    @property
    def catalog(self) -> Catalog:
        """Models, decks and counts, read once and cached."""
        if self._catalog is None:
            self._catalog = read_catalog(self.store.conn)
        return self._catalog

    def refresh(self) -> Catalog:
        """Re-read the catalog from the database."""
        self._catalog = None
        return self.catalog

    def add_note(
        self,
        deck_name: str,
        model_name: str,
        fields: list[str],
        template_ord: int = 0,
        allow_duplicate: bool = True,
    ) -> tuple[NoteRecord, CardRecord]:
        """Add a note with one card to the named deck using the named model.

        Raises:
            CatalogLookupError: if the deck or model does not exist.
            NoteValidationError: if the fields do not fit the model.
            StorageError: if the rows could not be written.
        """
        catalog = self.catalog
        deck = catalog.find_deck(deck_name)
        model = catalog.find_model(model_name)

        writer = NoteWriter(self.store.conn)
        result = writer.write(
            model,
            deck,
            fields,
            template_ord=template_ord,
            allow_duplicate=allow_duplicate,
            existing_fields=catalog.existing_fields,
        )
        self._catalog = None
        return result

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "CrankiCollection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

"""Core library for cranki."""

from cranki.core.checksum import field_checksum
from cranki.core.collection import read_catalog
from cranki.core.errors import (
    CatalogLookupError,
    CrankiError,
    DuplicateNoteError,
    NoteValidationError,
    SchemaError,
    StorageError,
)
from cranki.core.ids import IdentityGenerator, new_identity
from cranki.core.models import (
    FIELD_SEPARATOR,
    CardRecord,
    Catalog,
    Deck,
    Identity,
    NoteModel,
    NoteRecord,
)
from cranki.core.storage import CollectionStore, CrankiCollection, validate_database_path
from cranki.core.writer import NoteWriter

__all__ = [
    # Models
    "FIELD_SEPARATOR",
    "CardRecord",
    "Catalog",
    "Deck",
    "Identity",
    "NoteModel",
    "NoteRecord",
    # Errors
    "CatalogLookupError",
    "CrankiError",
    "DuplicateNoteError",
    "NoteValidationError",
    "SchemaError",
    "StorageError",
    # Services
    "IdentityGenerator",
    "field_checksum",
    "new_identity",
    "read_catalog",
    # Storage
    "CollectionStore",
    "CrankiCollection",
    "NoteWriter",
    "validate_database_path",
]

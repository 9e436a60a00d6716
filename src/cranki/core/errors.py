"""Error types raised by the cranki core."""


class CrankiError(Exception):
    """Base class for errors raised while reading or writing a collection."""


class SchemaError(CrankiError):
    """The collection metadata is missing or could not be decoded."""


class CatalogLookupError(CrankiError, LookupError):
    """A deck or model name does not exist in the collection."""

    def __init__(self, kind: str, name: str, valid_names: list[str]):
        self.kind = kind
        self.name = name
        self.valid_names = valid_names
        super().__init__(f"The provided {kind} name '{name}' was not found in the database.")


class NoteValidationError(CrankiError, ValueError):
    """Field values were rejected before anything was written."""


class DuplicateNoteError(NoteValidationError):
    """A note with identical fields already exists."""


class StorageError(CrankiError):
    """Opening the collection or persisting rows failed."""

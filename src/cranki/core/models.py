"""Pydantic models for collection metadata and the rows cranki writes."""

from pydantic import BaseModel, Field

from cranki.core.errors import CatalogLookupError

# Anki joins note fields with the ASCII unit separator
FIELD_SEPARATOR = "\x1f"

# usn of -1 marks a row as modified locally and not yet synced
USN_PENDING = -1

MODEL_TYPE_CLOZE = 1


# ============================================================================
# Raw JSON shapes stored in the col table
# ============================================================================


class RawField(BaseModel):
    """One entry of a model's ``flds`` list."""

    name: str
    ord: int


class RawNoteModel(BaseModel):
    """A note model as serialized in ``col.models``."""

    id: int
    name: str
    did: int | None  # null for models that were never used to add a note
    flds: list[RawField]
    tmpls: list[dict] = Field(default_factory=list)
    type: int = 0  # 1 for cloze models


class RawDeck(BaseModel):
    """A deck as serialized in ``col.decks``."""

    id: int
    name: str


# ============================================================================
# Catalog
# ============================================================================


class NoteModel(BaseModel):
    """A note model ("note type") with its usage counter."""

    id: int
    name: str
    deck_id: int
    fields: int
    templates: int = 0
    cloze: bool = False
    note_count: int = 0

    @classmethod
    def from_raw(cls, raw: RawNoteModel) -> "NoteModel":
        return cls(
            id=raw.id,
            name=raw.name,
            deck_id=raw.did or 0,
            fields=len(raw.flds),
            templates=len(raw.tmpls),
            cloze=raw.type == MODEL_TYPE_CLOZE,
        )


class Deck(BaseModel):
    """A deck with the number of cards it holds."""

    id: int
    name: str
    card_count: int = 0

    @classmethod
    def from_raw(cls, raw: RawDeck) -> "Deck":
        return cls(id=raw.id, name=raw.name)


class Catalog(BaseModel):
    """Everything read from a collection before a note is added."""

    models: list[NoteModel] = Field(default_factory=list)
    decks: list[Deck] = Field(default_factory=list)
    existing_fields: list[str] = Field(default_factory=list)

    def find_model(self, name: str) -> NoteModel:
        """Return the model called ``name``.

        Raises:
            CatalogLookupError: listing every model name when none matches.
        """
        for model in self.models:
            if model.name == name:
                return model
        raise CatalogLookupError("model", name, [m.name for m in self.models])

    def find_deck(self, name: str) -> Deck:
        """Return the deck called ``name``.

        Raises:
            CatalogLookupError: listing every deck name when none matches.
        """
        for deck in self.decks:
            if deck.name == name:
                return deck
        raise CatalogLookupError("deck", name, [d.name for d in self.decks])


# ============================================================================
# Rows written by cranki
# ============================================================================


class Identity(BaseModel):
    """Identifiers shared by a new note and its card."""

    id: int  # milliseconds since epoch
    mod: int  # seconds since epoch
    guid: str


class NoteRecord(BaseModel):
    """A row of the ``notes`` table."""

    id: int
    guid: str
    mid: int
    mod: int
    usn: int = USN_PENDING
    tags: str = ""
    flds: str
    sfld: str
    csum: int
    flags: int = 0
    data: str = ""

    @property
    def field_values(self) -> list[str]:
        """Split ``flds`` back into the individual field values."""
        return self.flds.split(FIELD_SEPARATOR)


class CardRecord(BaseModel):
    """A row of the ``cards`` table in the new, never studied state."""

    id: int
    nid: int
    did: int
    ord: int = 0
    mod: int
    usn: int = USN_PENDING
    type: int = 0
    queue: int = 0
    due: int
    ivl: int = 0
    factor: int = 0
    reps: int = 0
    lapses: int = 0
    left: int = 0
    odue: int = 0
    odid: int = 0
    flags: int = 0
    data: int = 0

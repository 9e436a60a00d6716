"""Tests for opening a collection and adding notes through the facade."""

import sqlite3

import pytest

from cranki.core.errors import CatalogLookupError, NoteValidationError, SchemaError, StorageError
from cranki.core.storage import CollectionStore, CrankiCollection, validate_database_path


@pytest.fixture
def collection(collection_path):
    with CrankiCollection(collection_path) as col:
        yield col


class TestValidateDatabasePath:
    def test_existing_file(self, collection_path):
        assert validate_database_path(str(collection_path)) == collection_path

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageError, match="No database found"):
            validate_database_path(tmp_path / "missing.anki2")

    def test_directory(self, tmp_path):
        with pytest.raises(StorageError, match="standard file"):
            validate_database_path(tmp_path)


class TestCollectionStore:
    def test_connection_is_lazy_and_reused(self, collection_path):
        store = CollectionStore(collection_path)
        assert store._conn is None
        assert store.conn is store.conn
        store.close()
        assert store._conn is None

    def test_context_manager_closes(self, collection_path):
        with CollectionStore(collection_path) as store:
            conn = store.conn
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_rows_by_name(self, collection_path):
        with CollectionStore(collection_path) as store:
            row = store.conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchone()
            assert row["name"]


class TestCrankiCollection:
    def test_basic_scenario(self, collection):
        """Adding a Basic note stores both rows and bumps the model count."""
        before = collection.catalog.find_model("Basic").note_count

        note, card = collection.add_note("Default", "Basic", ["Front text", "Back text"])

        assert note.sfld == "Front text"
        assert note.flds == "Front text\x1fBack text"
        assert card.due == note.id
        assert card.nid == note.id
        assert collection.catalog.find_model("Basic").note_count == before + 1

    def test_rows_visible_to_new_connection(self, collection, collection_path):
        note, _ = collection.add_note("French", "Basic", ["maison", "house"])
        conn = sqlite3.connect(collection_path)
        try:
            flds = conn.execute("SELECT flds FROM notes WHERE id = ?", (note.id,)).fetchone()[0]
            did = conn.execute("SELECT did FROM cards WHERE nid = ?", (note.id,)).fetchone()[0]
        finally:
            conn.close()
        assert flds == "maison\x1fhouse"
        assert did == collection.catalog.find_deck("French").id

    def test_catalog_refreshed_after_write(self, collection):
        cards_before = sum(d.card_count for d in collection.catalog.decks)
        collection.add_note("French", "Basic", ["a", "b"])
        assert sum(d.card_count for d in collection.catalog.decks) == cards_before + 1
        assert "a\x1fb" in collection.catalog.existing_fields

    def test_unknown_deck(self, collection):
        with pytest.raises(CatalogLookupError) as exc_info:
            collection.add_note("NoSuchDeck", "Basic", ["a", "b"])
        assert exc_info.value.valid_names == ["Default", "French"]

    def test_unknown_model(self, collection):
        with pytest.raises(CatalogLookupError, match="model"):
            collection.add_note("Default", "Cloze", ["a", "b"])

    def test_field_count_mismatch_writes_nothing(self, collection):
        total = len(collection.catalog.existing_fields)
        for fields in (["one", "two"], ["one", "two", "three", "four"]):
            with pytest.raises(NoteValidationError):
                collection.add_note("Default", "Vocab", fields)
        assert len(collection.refresh().existing_fields) == total

    def test_duplicate_check(self, collection):
        with pytest.raises(NoteValidationError):
            collection.add_note("French", "Basic", ["chat", "cat"], allow_duplicate=False)

    def test_not_a_collection(self, tmp_path):
        path = tmp_path / "plain.db"
        sqlite3.connect(path).close()
        with CrankiCollection(path) as col:
            with pytest.raises(SchemaError):
                col.catalog

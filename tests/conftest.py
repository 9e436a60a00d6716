"""Shared fixtures: small Anki collections built from scratch."""

import json
import sqlite3
from pathlib import Path

import pytest

BASIC_ID = 1342697561419
THREE_FIELD_ID = 1342697561420
DEFAULT_DECK_ID = 1
FRENCH_DECK_ID = 1500000000000

SCHEMA = """
CREATE TABLE col (
    id integer primary key,
    crt integer not null,
    mod integer not null,
    scm integer not null,
    ver integer not null,
    dty integer not null,
    usn integer not null,
    ls integer not null,
    conf text not null,
    models text not null,
    decks text not null,
    dconf text not null,
    tags text not null
);
CREATE TABLE notes (
    id integer primary key,
    guid text not null,
    mid integer not null,
    mod integer not null,
    usn integer not null,
    tags text not null,
    flds text not null,
    sfld integer not null,
    csum integer not null,
    flags integer not null,
    data text not null
);
CREATE TABLE cards (
    id integer primary key,
    nid integer not null,
    did integer not null,
    ord integer not null,
    mod integer not null,
    usn integer not null,
    type integer not null,
    queue integer not null,
    due integer not null,
    ivl integer not null,
    factor integer not null,
    reps integer not null,
    lapses integer not null,
    left integer not null,
    odue integer not null,
    odid integer not null,
    flags integer not null,
    data text not null
);
"""


def _model(model_id: int, name: str, field_names: list[str], did: int | None = DEFAULT_DECK_ID) -> dict:
    return {
        "id": model_id,
        "name": name,
        "did": did,
        "type": 0,
        "sortf": 0,
        "flds": [{"name": n, "ord": i, "sticky": False} for i, n in enumerate(field_names)],
        "tmpls": [{"name": "Card 1", "ord": 0, "qfmt": "{{Front}}", "afmt": "{{Back}}"}],
        "css": ".card {}",
    }


DEFAULT_MODELS = {
    str(BASIC_ID): _model(BASIC_ID, "Basic", ["Front", "Back"]),
    str(THREE_FIELD_ID): _model(THREE_FIELD_ID, "Vocab", ["Word", "Meaning", "Example"], did=None),
}

DEFAULT_DECKS = {
    str(DEFAULT_DECK_ID): {"id": DEFAULT_DECK_ID, "name": "Default", "collapsed": False},
    str(FRENCH_DECK_ID): {"id": FRENCH_DECK_ID, "name": "French", "collapsed": False},
}

# (note id, model id, fields, deck id of its card)
DEFAULT_NOTES = [
    (100, BASIC_ID, ["chat", "cat"], FRENCH_DECK_ID),
    (101, BASIC_ID, ["chien", "dog"], FRENCH_DECK_ID),
    (102, THREE_FIELD_ID, ["hund", "dog", "Der Hund bellt"], DEFAULT_DECK_ID),
]


def insert_note(conn: sqlite3.Connection, note_id: int, mid: int, fields: list[str], did: int) -> None:
    conn.execute(
        "INSERT INTO notes VALUES (?, ?, ?, 0, 0, '', ?, ?, 0, 0, '')",
        (note_id, f"guid{note_id}", mid, "\x1f".join(fields), fields[0]),
    )
    conn.execute(
        "INSERT INTO cards VALUES (?, ?, ?, 0, 0, 0, 0, 0, ?, 0, 0, 0, 0, 0, 0, 0, 0, '')",
        (note_id, note_id, did, note_id),
    )


def build_collection(
    path: Path,
    models: dict | str | None = None,
    decks: dict | str | None = None,
    notes: list | None = None,
    with_col_row: bool = True,
) -> Path:
    """Create a minimal collection file at ``path``."""
    models = DEFAULT_MODELS if models is None else models
    decks = DEFAULT_DECKS if decks is None else decks
    notes = DEFAULT_NOTES if notes is None else notes

    conn = sqlite3.connect(path)
    conn.executescript(SCHEMA)
    if with_col_row:
        conn.execute(
            "INSERT INTO col VALUES (1, 0, 1600000000000, 0, 11, 0, 0, 0, '{}', ?, ?, '{}', '{}')",
            (
                models if isinstance(models, str) else json.dumps(models),
                decks if isinstance(decks, str) else json.dumps(decks),
            ),
        )
    for note_id, mid, fields, did in notes:
        insert_note(conn, note_id, mid, fields, did)
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def make_collection(tmp_path):
    """Factory building a collection in the test's temp directory."""

    def _make(name: str = "collection.anki2", **kwargs) -> Path:
        return build_collection(tmp_path / name, **kwargs)

    return _make


@pytest.fixture
def collection_path(make_collection) -> Path:
    """The default collection: Basic and Vocab models, Default and French decks."""
    return make_collection()


@pytest.fixture
def conn(collection_path):
    """Autocommit connection to the default collection."""
    connection = sqlite3.connect(collection_path, isolation_level=None)
    connection.row_factory = sqlite3.Row
    yield connection
    connection.close()

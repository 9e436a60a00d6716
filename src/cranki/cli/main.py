"""Main CLI entry point for cranki."""

import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cranki.config import Configuration, default_config_path, load_configuration, save_configuration
from cranki.core import (
    Catalog,
    CatalogLookupError,
    CrankiCollection,
    CrankiError,
)

load_dotenv()

app = typer.Typer(
    name="cranki",
    help="A simple command-line tool for interacting with Anki database files.",
    epilog="For other Anki-related software, see the official website @ https://apps.ankiweb.net/",
    no_args_is_help=True,
)

console = Console()


@dataclass
class CliState:
    """Options resolved by the top-level callback."""

    config: Configuration
    config_path: Path
    store_config: bool


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    database_file: Path | None = typer.Option(
        None,
        "--database-file",
        "-f",
        envvar="CRANKI_DATABASE",
        help="The path to the anki database (usually with the *.anki2 extension). "
        "Overwrites the stored value in the config file",
    ),
    deck: str | None = typer.Option(
        None,
        "--deck",
        "-d",
        envvar="CRANKI_DECK",
        help="The name of the deck to modify. Overwrites the stored value in the config file",
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        envvar="CRANKI_MODEL",
        help="The name of the model to use. Overwrites the stored value in the config file",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="CRANKI_CONFIG",
        help="The config file path to use",
    ),
    no_store_config: bool = typer.Option(
        False,
        "--no-store-config",
        "-n",
        help="Don't write a config file (one is written when stored values change)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Add notes to an Anki collection from the command line."""
    _configure_logging(verbose)

    config_path = config or default_config_path()
    stored = load_configuration(config_path)
    merged, dirty = stored.merge(
        database_path=str(database_file) if database_file is not None else None,
        deck_name=deck,
        model_name=model,
    )
    ctx.obj = CliState(config=merged, config_path=config_path, store_config=dirty and not no_store_config)


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _open_collection(state: CliState) -> CrankiCollection:
    """Open the configured collection or exit with an error."""
    path = state.config.database_path
    if path is None:
        rprint(
            "[red]Database path was not provided as an argument "
            "and could not be loaded from the config file[/red]"
        )
        raise typer.Exit(1)
    try:
        return CrankiCollection(path)
    except CrankiError as e:
        rprint(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


def _remember(state: CliState) -> None:
    """Persist changed defaults once a command has succeeded."""
    if not state.store_config:
        return
    try:
        path = save_configuration(state.config_path, state.config)
    except OSError as e:
        rprint(
            f"[yellow]Failed to write configuration to "
            f"'{escape(str(state.config_path))}': {escape(str(e))}[/yellow]"
        )
        return
    rprint(f"[dim]Configuration successfully written to '{escape(str(path))}'[/dim]")


def _remember_if_known(state: CliState, catalog: Catalog) -> None:
    """Persist changed defaults only when the deck and model names exist."""
    if not state.store_config:
        return
    deck_name = state.config.deck_name
    model_name = state.config.model_name
    if deck_name is not None and deck_name not in {d.name for d in catalog.decks}:
        rprint(f"[yellow]Not storing unknown deck name '{escape(deck_name)}'[/yellow]")
        return
    if model_name is not None and model_name not in {m.name for m in catalog.models}:
        rprint(f"[yellow]Not storing unknown model name '{escape(model_name)}'[/yellow]")
        return
    _remember(state)


def _print_valid_names(kind: str, catalog: Catalog) -> None:
    """List the decks or models a user can choose from, with their counts."""
    if kind == "deck":
        entries = [(d.name, f"{d.card_count} existing cards") for d in catalog.decks]
    else:
        entries = [(m.name, f"{m.note_count} existing notes") for m in catalog.models]

    if not entries:
        rprint(f"[yellow]The database contains no {kind}s![/yellow]")
        return

    rprint(f"Valid {kind} names are:")
    for name, count in entries:
        rprint(f'    "{escape(name)}"    [dim]({count})[/dim]')


# ============================================================================
# ADD command
# ============================================================================


@app.command()
def add(
    ctx: typer.Context,
    fields: list[str] = typer.Argument(..., help="Field values, in the order the model defines them"),
    template_ord: int = typer.Option(0, "--ord", help="Card template to render (0 is the first)"),
    no_duplicates: bool = typer.Option(
        False,
        "--no-duplicates",
        help="Refuse to add a note whose fields match an existing note",
    ),
) -> None:
    """Add a new card to the database."""
    state = _state(ctx)

    for kind, name in (("deck", state.config.deck_name), ("model", state.config.model_name)):
        if name is None:
            rprint(
                f"[red]{kind.capitalize()} name was not provided as an argument "
                "and could not be loaded from the config file[/red]"
            )
            raise typer.Exit(1)

    with _open_collection(state) as collection:
        try:
            catalog = collection.catalog
            rprint(f"Adding: {escape(repr(fields))}")
            note, card = collection.add_note(
                state.config.deck_name,
                state.config.model_name,
                fields,
                template_ord=template_ord,
                allow_duplicate=not no_duplicates,
            )
        except CatalogLookupError as e:
            rprint(f"[red]{escape(str(e))}[/red]")
            _print_valid_names(e.kind, catalog)
            raise typer.Exit(1)
        except CrankiError as e:
            rprint(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)

    rprint("[green]New entry successfully added to the database[/green]")
    rprint(f"  Note ID: {note.id}")
    rprint(f"  GUID: {note.guid}")
    rprint(f"  Card due: {card.due}")
    _remember(state)


# ============================================================================
# Listing commands
# ============================================================================


def _load_catalog(state: CliState) -> Catalog:
    with _open_collection(state) as collection:
        try:
            return collection.catalog
        except CrankiError as e:
            rprint(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)


@app.command()
def decks(ctx: typer.Context) -> None:
    """List the decks in the database with their card counts."""
    state = _state(ctx)
    catalog = _load_catalog(state)

    table = Table(title="Decks")
    table.add_column("Name", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("ID", style="dim")
    for deck in catalog.decks:
        marker = " *" if deck.name == state.config.deck_name else ""
        table.add_row(escape(deck.name) + marker, str(deck.card_count), str(deck.id))
    console.print(table)
    _remember_if_known(state, catalog)


@app.command()
def models(ctx: typer.Context) -> None:
    """List the note models in the database with their field and note counts."""
    state = _state(ctx)
    catalog = _load_catalog(state)

    table = Table(title="Models")
    table.add_column("Name", style="cyan")
    table.add_column("Fields", justify="right")
    table.add_column("Notes", justify="right")
    table.add_column("ID", style="dim")
    for model in catalog.models:
        marker = " *" if model.name == state.config.model_name else ""
        table.add_row(
            escape(model.name) + marker, str(model.fields), str(model.note_count), str(model.id)
        )
    console.print(table)
    _remember_if_known(state, catalog)


if __name__ == "__main__":
    app()

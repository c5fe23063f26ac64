"""Command-line interface for NextShelf."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from nextshelf import __version__
from nextshelf.config import get_config
from nextshelf.errors import InvalidArgumentError, NextShelfError, get_friendly_message
from nextshelf.logging_config import configure_logging

if TYPE_CHECKING:
    from nextshelf.boxsets import CollectionEvent, CollectionManager
    from nextshelf.library import InMemoryLibrary, LibrarySnapshot
    from nextshelf.models import User
    from nextshelf.output import ReportFormatter

T = TypeVar("T")

# Load environment variables from .env file
load_dotenv()

console = Console()

DEFAULT_SNAPSHOT = "nextshelf-snapshot.json"


@click.group()
@click.version_option(version=__version__, prog_name="nextshelf")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (no progress, only results)")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSON logs to this file",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, log_file: Path | None) -> None:
    """NextShelf - Continue-watching lists and box-set collapsing for your library."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    cfg = get_config()
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = cfg.logging.level
    if log_file is None and cfg.logging.file:
        log_file = Path(cfg.logging.file)
    configure_logging(level, log_file)


def _fail(error: Exception) -> NoReturn:
    """Print a friendly error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(get_friendly_message(error))}")
    sys.exit(1)


@contextmanager
def _progress(quiet: bool) -> Iterator[Callable[[str, int, int], None]]:
    """Yield a progress callback backed by a rich progress bar."""
    if quiet:
        yield lambda stage, current, total: None
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Connecting to Plex...", total=None)

        def progress_callback(stage: str, current: int, total: int) -> None:
            progress.update(task, description=stage, completed=current, total=total or None)

        yield progress_callback


def _export_from_plex(quiet: bool, library_names: list[str] | None = None) -> LibrarySnapshot:
    """Export a snapshot from the configured Plex server."""
    from nextshelf.plex import PlexClient

    cfg = get_config()
    if library_names is None:
        library_names = cfg.plex.libraries or None

    with _progress(quiet) as progress_callback:
        plex = PlexClient(url=cfg.plex.url, token=cfg.plex.token)
        plex.connect()
        progress_callback(f"Connected to {plex.server_name}", 0, 0)
        return plex.export_snapshot(library_names, progress_callback=progress_callback)


def _load_library(snapshot_path: Path | None, quiet: bool) -> InMemoryLibrary:
    """Load the library from a snapshot file, or live from Plex."""
    from nextshelf.library import load_snapshot

    if snapshot_path is not None:
        return load_snapshot(snapshot_path).to_library()
    return _export_from_plex(quiet).to_library()


def _get_user(library: InMemoryLibrary, user_id: str | None) -> User:
    """Get the requested user, or the first user in the library."""
    if user_id is not None:
        user = library.get_user_by_id(user_id)
        if user is None:
            raise InvalidArgumentError(f"User not found: {user_id}")
        return user

    users = library.users
    if not users:
        raise InvalidArgumentError("The library has no users")
    return users[0]


def _output(formatter: ReportFormatter, format: str) -> None:
    if format == "json":
        click.echo(formatter.to_json())
    elif format == "csv":
        click.echo(formatter.to_csv(), nl=False)
    else:
        formatter.to_text()


snapshot_option = click.option(
    "--snapshot",
    "-s",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Library snapshot file (default: export live from Plex)",
)

format_option = click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json", "csv"]),
    default="text",
    help="Output format",
)


@main.command()
@snapshot_option
@click.option("--user", "-u", "user_id", default=None, help="User id (default: first user)")
@click.option("--series", "series_id", default=None, help="Only this series (item id)")
@click.option("--parent", "parent_id", default=None, help="Only series under this folder")
@click.option("--rewatch/--no-rewatch", default=None, help="Continue already watched series")
@click.option(
    "--disable-first-episode/--enable-first-episode",
    default=None,
    help="Never suggest the first episode of an unstarted series",
)
@click.option(
    "--cutoff-days",
    type=int,
    default=None,
    help="Hide series idle for longer than this (default: from config or 365, 0 = no cutoff)",
)
@click.option("--start", "start_index", type=click.IntRange(min=0), default=None)
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Page size")
@click.option("--no-total", is_flag=True, help="Do not count every result")
@click.option(
    "--specials-within-seasons/--no-specials-within-seasons",
    default=None,
    help="Offer specials at their aired position",
)
@format_option
@click.pass_context
def nextup(
    ctx: click.Context,
    snapshot: Path | None,
    user_id: str | None,
    series_id: str | None,
    parent_id: str | None,
    rewatch: bool | None,
    disable_first_episode: bool | None,
    cutoff_days: int | None,
    start_index: int | None,
    limit: int | None,
    no_total: bool,
    specials_within_seasons: bool | None,
    format: str,
) -> None:
    """Show the next episode to watch for each series in progress."""
    from nextshelf.nextup import NEVER_STARTED, NextUpQuery, NextUpService
    from nextshelf.output import NextUpFormatter
    from nextshelf.plex import PlexError

    quiet = ctx.obj.get("quiet", False)
    cfg = get_config().nextup

    if cutoff_days is None:
        cutoff_days = cfg.max_days_for_next_up
    if specials_within_seasons is None:
        specials_within_seasons = cfg.display_specials_within_seasons

    cutoff = (
        datetime.now(UTC) - timedelta(days=cutoff_days) if cutoff_days > 0 else NEVER_STARTED
    )

    try:
        library = _load_library(snapshot, quiet)
        user = _get_user(library, user_id)
        service = NextUpService(
            library,
            library.playback,
            library,
            display_specials_within_seasons=specials_within_seasons,
        )
        result = service.resolve_next_up(
            NextUpQuery(
                user_id=user.id,
                series_id=series_id,
                parent_id=parent_id,
                enable_rewatching=cfg.enable_rewatching if rewatch is None else rewatch,
                disable_first_episode=(
                    cfg.disable_first_episode
                    if disable_first_episode is None
                    else disable_first_episode
                ),
                next_up_date_cutoff=cutoff,
                start_index=start_index,
                limit=limit if limit is not None else cfg.limit,
                enable_total_record_count=not no_total,
            )
        )
    except (NextShelfError, PlexError) as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    _output(NextUpFormatter(result, user), format)


@main.command()
@snapshot_option
@click.option("--user", "-u", "user_id", default=None, help="User id (default: first user)")
@click.option("--parent", "parent_id", default=None, help="Only items under this folder")
@format_option
@click.pass_context
def collapse(
    ctx: click.Context,
    snapshot: Path | None,
    user_id: str | None,
    parent_id: str | None,
    format: str,
) -> None:
    """List movies and series with collection members folded into their collection."""
    from nextshelf.boxsets import collapse_collections
    from nextshelf.models import BoxSet, Episode, Folder
    from nextshelf.output import CollapsedItemsFormatter
    from nextshelf.plex import PlexError

    quiet = ctx.obj.get("quiet", False)

    try:
        library = _load_library(snapshot, quiet)
        user = _get_user(library, user_id)

        if parent_id is not None:
            if library.get_item_by_id(parent_id) is None:
                raise InvalidArgumentError(f"Folder not found: {parent_id}")
            scope = {parent_id}
        else:
            excluded = set(user.latest_item_excludes)
            scope = {
                folder.id
                for folder in library.get_user_root_folders(user)
                if folder.id not in excluded
            }

        items = [
            item
            for item in library.items
            if not isinstance(item, (Folder, BoxSet, Episode)) and item.is_under(scope)
        ]
        collapsed = collapse_collections(items, user, library)
    except (NextShelfError, PlexError) as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    _output(CollapsedItemsFormatter(collapsed, len(items)), format)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_SNAPSHOT,
    show_default=True,
    help="Snapshot file to write",
)
@click.option("--library", "-l", "libraries", multiple=True, help="Library name (repeatable)")
@click.pass_context
def export(ctx: click.Context, output: Path, libraries: tuple[str, ...]) -> None:
    """Export Plex libraries and watch state to a snapshot file."""
    from nextshelf.library import save_snapshot
    from nextshelf.plex import PlexError

    quiet = ctx.obj.get("quiet", False)

    try:
        snapshot = _export_from_plex(quiet, list(libraries) or None)
    except (NextShelfError, PlexError) as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Export cancelled.[/yellow]")
        sys.exit(130)

    save_snapshot(snapshot, output)
    console.print(
        f"[green]Exported {len(snapshot.items)} items from {snapshot.source}:[/green] {output}"
    )


@main.group()
def collections() -> None:
    """Create and edit collections in a snapshot file."""
    pass


def _print_event(event: CollectionEvent) -> None:
    from nextshelf.output import format_event

    console.print(format_event(event))


def _edit_collections(snapshot_path: Path, change: Callable[[CollectionManager], T]) -> T:
    """Apply a collection change to a snapshot and write it back.

    Events are printed once the snapshot has been saved.
    """
    from nextshelf.boxsets import CollectionManager
    from nextshelf.library import LibrarySnapshot, load_snapshot, save_snapshot

    events: list[CollectionEvent] = []
    try:
        snapshot = load_snapshot(snapshot_path)
        library = snapshot.to_library()
        result = change(CollectionManager(library, events.append))
        save_snapshot(LibrarySnapshot.from_library(library, source=snapshot.source), snapshot_path)
    except NextShelfError as e:
        _fail(e)

    for event in events:
        _print_event(event)
    return result


@collections.command(name="create")
@click.option(
    "--snapshot",
    "-s",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Snapshot file to edit",
)
@click.option("--name", "-n", required=True, help="Collection name")
@click.option("--visible-to", "user_ids", multiple=True, help="Restrict to user id (repeatable)")
@click.option("--locked", is_flag=True, help="Lock the collection's metadata")
@click.argument("item_ids", nargs=-1)
def collections_create(
    snapshot: Path,
    name: str,
    user_ids: tuple[str, ...],
    locked: bool,
    item_ids: tuple[str, ...],
) -> None:
    """Create a collection from ITEM_IDS."""
    from nextshelf.boxsets import CollectionCreationOptions

    options = CollectionCreationOptions(
        name=name,
        item_ids=list(item_ids),
        user_ids=list(user_ids),
        is_locked=locked,
    )
    _edit_collections(snapshot, lambda manager: manager.create_collection(options))


@collections.command(name="add")
@click.option(
    "--snapshot",
    "-s",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Snapshot file to edit",
)
@click.argument("collection_id")
@click.argument("item_ids", nargs=-1, required=True)
def collections_add(snapshot: Path, collection_id: str, item_ids: tuple[str, ...]) -> None:
    """Add ITEM_IDS to the collection COLLECTION_ID."""
    event = _edit_collections(
        snapshot, lambda manager: manager.add_to_collection(collection_id, item_ids)
    )
    if event is None:
        console.print("[dim]All items are already in the collection.[/dim]")


@collections.command(name="remove")
@click.option(
    "--snapshot",
    "-s",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Snapshot file to edit",
)
@click.argument("collection_id")
@click.argument("item_ids", nargs=-1, required=True)
def collections_remove(snapshot: Path, collection_id: str, item_ids: tuple[str, ...]) -> None:
    """Remove ITEM_IDS from the collection COLLECTION_ID."""
    _edit_collections(
        snapshot, lambda manager: manager.remove_from_collection(collection_id, item_ids)
    )


@main.group()
def config() -> None:
    """Manage NextShelf configuration."""
    pass


@config.command(name="show")
def config_show() -> None:
    """Show current configuration."""
    from nextshelf.config import get_config_path

    cfg = get_config()
    config_file = get_config_path()

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    if config_file:
        console.print(f"[dim]Config file:[/dim] {config_file}")
    else:
        console.print("[dim]Config file:[/dim] (none - using defaults)")
    console.print()

    # Plex
    console.print("[bold]Plex:[/bold]")
    url = cfg.plex.url or "(from PLEX_URL env)"
    token = "(set)" if cfg.plex.token else "(from PLEX_TOKEN env)"
    console.print(f"  URL: {url}")
    console.print(f"  Token: {token}")
    if cfg.plex.libraries:
        console.print(f"  Libraries: {', '.join(cfg.plex.libraries)}")
    else:
        console.print("  Libraries: (all movie and TV libraries)")
    console.print()

    # Next up
    console.print("[bold]Next up:[/bold]")
    console.print(f"  Specials within seasons: {cfg.nextup.display_specials_within_seasons}")
    console.print(f"  Max days for next up: {cfg.nextup.max_days_for_next_up}")
    console.print(f"  Rewatching: {cfg.nextup.enable_rewatching}")
    console.print(f"  Disable first episode: {cfg.nextup.disable_first_episode}")
    console.print(f"  Limit: {cfg.nextup.limit if cfg.nextup.limit is not None else '(none)'}")
    console.print()

    # Logging
    console.print("[bold]Logging:[/bold]")
    console.print(f"  Level: {cfg.logging.level}")
    console.print(f"  File: {cfg.logging.file or '(none)'}")


@config.command(name="path")
def config_path() -> None:
    """Show configuration file paths."""
    from nextshelf.config import find_config_file, get_config_paths

    console.print("[bold]Configuration paths (in priority order):[/bold]")
    config_file = find_config_file()

    for path in get_config_paths():
        if path.exists():
            if path == config_file:
                console.print(f"  [green]{path}[/green] (active)")
            else:
                console.print(f"  {path} (exists)")
        else:
            console.print(f"  [dim]{path}[/dim]")

    console.print()
    console.print("[bold]Other paths:[/bold]")
    console.print(f"  .env file: {Path.cwd() / '.env'}")


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite existing config file")
@click.option(
    "--path",
    "target",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write (default: ~/.nextshelf/nextshelf.ini)",
)
def config_init(force: bool, target: Path | None) -> None:
    """Create a default configuration file."""
    from nextshelf.config import get_config_dir, save_default_config

    config_path = target or get_config_dir() / "nextshelf.ini"

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("Use --force to overwrite.")
        sys.exit(1)

    save_default_config(config_path)
    console.print(f"[green]Created config file:[/green] {config_path}")
    console.print("Edit this file to customize your settings.")


if __name__ == "__main__":
    main()

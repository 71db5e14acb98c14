"""Storyweave CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, cast

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from storyweave.catalog import (
    MANUAL_KINDS,
    NONE_LABEL,
    load_catalogs,
    owned_manual_id,
    resolve_manual_name,
)
from storyweave.config import (
    CONFIG_FILE,
    ConfigError,
    ProjectConfig,
    load_project_config,
    write_project_config,
)
from storyweave.diagram import event_label, render_mermaid
from storyweave.graph.errors import StorylineError
from storyweave.graph.layout import compute_levels
from storyweave.models.storyline import CONTENT_KINDS, Storyline
from storyweave.observability import close_file_logging, configure_logging, get_logger
from storyweave.session import EditingSession
from storyweave.storage import JsonStorylineRepository, StorageError

if TYPE_CHECKING:
    from storyweave.models.storyline import BattleContent, ContentKind, StoryEvent

# Load environment variables from .env file
load_dotenv()

log = get_logger(__name__)

app = typer.Typer(
    name="sw",
    help="Storyweave: edit and check branching storyline graphs.",
    no_args_is_help=True,
)
console = Console()

ProjectOption = Annotated[
    Path,
    typer.Option(
        "--project",
        "-p",
        help="Project directory (default: current directory).",
        envvar="STORYWEAVE_PROJECT",
    ),
]
StorylineArg = Annotated[str, typer.Argument(help="Storyline id")]

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        bool,
        typer.Option("--log", help="Enable file logging to {project}/logs/debug.jsonl."),
    ] = False,
) -> None:
    """Storyweave: edit and check branching storyline graphs."""
    global _verbose, _log_enabled
    _verbose = verbose
    _log_enabled = log_file

    # File logging is configured once the project is known
    configure_logging(verbosity=verbose)


def _configure_project_logging(project_path: Path) -> None:
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


# ---------------------------------------------------------------------------
# Project helpers
# ---------------------------------------------------------------------------


def _load_config(project_path: Path) -> ProjectConfig:
    try:
        return load_project_config(project_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _open_repository(project_path: Path) -> tuple[ProjectConfig, JsonStorylineRepository]:
    _configure_project_logging(project_path)
    config = _load_config(project_path)
    return config, JsonStorylineRepository(config.data_path(project_path))


def _open_session(project_path: Path, storyline_id: str) -> EditingSession:
    """Load a storyline into an editing session, exiting on failure."""
    config, repository = _open_repository(project_path)
    try:
        storyline = repository.load(storyline_id)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    if storyline is None:
        console.print(f"[red]Error:[/red] Storyline '{storyline_id}' not found")
        raise typer.Exit(1)
    return EditingSession(storyline, repository, layout=config.layout)


def _save_or_exit(session: EditingSession) -> None:
    """Save the session, printing blocking errors and exiting if it fails."""
    result = session.save()
    if not result.ok:
        console.print("[red]Not saved:[/red]")
        for error in result.errors:
            console.print(f"  [red]✗[/red] {error}")
        raise typer.Exit(1)
    for warning in session.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")


def _print_storyline_error(error: StorylineError) -> None:
    console.print(f"[red]Error:[/red] {error.to_feedback()}")


def _parse_kind(kind: str) -> ContentKind:
    if kind not in CONTENT_KINDS:
        console.print(
            f"[red]Error:[/red] Unknown kind '{kind}'. Choose from: {', '.join(CONTENT_KINDS)}"
        )
        raise typer.Exit(1)
    return kind  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def version() -> None:
    """Show version information."""
    from storyweave import __version__

    console.print(f"Storyweave v{__version__}")


def _init_project(name: str, parent_dir: Path) -> Path:
    """Create a project directory with config and an empty data directory.

    Raises:
        typer.Exit: If the directory already exists.
    """
    parent_dir.mkdir(parents=True, exist_ok=True)

    project_path = parent_dir / name
    if project_path.exists():
        console.print(f"[red]Error:[/red] Directory '{project_path}' already exists")
        raise typer.Exit(1)

    project_path.mkdir(parents=True)
    config = ProjectConfig(name=name)
    write_project_config(project_path, config)
    (project_path / config.data_dir).mkdir()
    return project_path


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Project name")],
    path: Annotated[
        Path,
        typer.Option("--path", help="Parent directory for the project."),
    ] = Path(),
) -> None:
    """Initialize a new storyline project.

    Creates a project directory with the necessary structure:
    - storyweave.yaml: Project configuration
    - data/: Storyline and catalog files
    """
    project_path = _init_project(name, path)

    console.print(f"[green]✓[/green] Created project: [bold]{name}[/bold]")
    console.print(f"  Location: {project_path.absolute()}")
    console.print()
    console.print("Next steps:")
    console.print(f"  cd {project_path}")
    console.print('  sw new "My storyline"')


@app.command("list")
def list_storylines(project: ProjectOption = Path()) -> None:
    """List stored storylines."""
    _, repository = _open_repository(project)
    try:
        items = repository.list()
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if not items:
        console.print("[dim]No storylines yet.[/dim]")
        return

    table = Table(title="Storylines")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    for item in items:
        table.add_row(item.id, item.name or "-")
    console.print(table)


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Storyline name")],
    kind: Annotated[
        str,
        typer.Option("--kind", "-k", help="Content kind of the start event."),
    ] = "decision",
    event_name: Annotated[
        str,
        typer.Option("--event-name", help="Name of the start event."),
    ] = "Start",
    project: ProjectOption = Path(),
) -> None:
    """Create a storyline with a single start event."""
    content_kind = _parse_kind(kind)
    config, repository = _open_repository(project)
    session = EditingSession(Storyline(name=name), repository, layout=config.layout)
    event = session.add_event(content_kind, event_name)
    session.update_event(event.id, node_type="start")
    _save_or_exit(session)

    console.print(f"[green]✓[/green] Created storyline [bold]{name}[/bold]")
    console.print(f"  ID: {session.storyline.id}")
    console.print(f"  Start event: {event.id}")


@app.command()
def show(storyline_id: StorylineArg, project: ProjectOption = Path()) -> None:
    """Show the events of a storyline with their status markers."""
    session = _open_session(project, storyline_id)
    storyline = session.storyline
    diagram = session.diagram

    table = Table(title=f"Storyline: {storyline.name or '(unnamed)'}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Node")
    table.add_column("Targets")
    table.add_column("Status")

    targets_by_source: dict[str, list[str]] = {}
    for edge in diagram.edges:
        targets_by_source.setdefault(edge.source, []).append(f"{edge.label}→{edge.target}")

    for index, (event, node) in enumerate(zip(storyline.events, diagram.nodes, strict=True)):
        markers = []
        if node.is_start:
            markers.append("[green]start[/green]")
        if node.is_unreachable:
            markers.append("[yellow]unreachable[/yellow]")
        if node.has_invalid_refs:
            markers.append("[red]invalid refs[/red]")
        table.add_row(
            str(index + 1),
            event.id,
            event_label(event, index),
            event.content.type,
            event.node_type,
            ", ".join(targets_by_source.get(event.id, [])) or "-",
            " ".join(markers) or "-",
        )

    console.print()
    console.print(table)
    _print_problems(session)


def _print_problems(session: EditingSession) -> None:
    for error in session.errors:
        console.print(f"[red]✗[/red] {error}")
    for warning in session.warnings:
        console.print(f"[yellow]![/yellow] {warning}")


@app.command()
def validate(storyline_id: StorylineArg, project: ProjectOption = Path()) -> None:
    """Check a storyline. Exits with status 1 if it cannot be saved."""
    session = _open_session(project, storyline_id)
    validation = session.validation

    icons = {
        "pass": "[green]✓[/green]",
        "warn": "[yellow]![/yellow]",
        "fail": "[red]✗[/red]",
    }
    for check in validation.report.checks:
        console.print(f"{icons[check.severity]} {check.name}: {check.message}")
    for refs in validation.invalid_refs.values():
        for ref in refs:
            console.print(f"    {ref.event_id}: {ref.target_label} -> {ref.target_id}")

    console.print()
    console.print(validation.report.summary)
    if not validation.can_save:
        raise typer.Exit(1)


@app.command()
def layout(storyline_id: StorylineArg, project: ProjectOption = Path()) -> None:
    """Show computed diagram positions."""
    session = _open_session(project, storyline_id)
    storyline = session.storyline
    positions = session.positions
    levels = compute_levels(
        storyline, session.edges, per_level=session.layout.unreachable_per_level
    )
    level_of = {eid: index for index, row in enumerate(levels) for eid in row}

    table = Table(title="Layout")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Level", justify="right")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    for index, event in enumerate(storyline.events):
        pos = positions[event.id]
        table.add_row(
            event.id, event_label(event, index), str(level_of[event.id]), str(pos.x), str(pos.y)
        )
    console.print(table)


@app.command()
def edges(storyline_id: StorylineArg, project: ProjectOption = Path()) -> None:
    """List the transition edges derived from a storyline."""
    session = _open_session(project, storyline_id)

    table = Table(title="Edges")
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Handle", no_wrap=True)
    table.add_column("Target", style="cyan", no_wrap=True)
    table.add_column("Label")
    for edge in session.edges:
        table.add_row(edge.source, edge.handle_id, edge.target, edge.label)
    console.print(table)


@app.command()
def diagram(
    storyline_id: StorylineArg,
    no_labels: Annotated[
        bool, typer.Option("--no-labels", help="Omit handle labels on edges.")
    ] = False,
    project: ProjectOption = Path(),
) -> None:
    """Print the storyline diagram as Mermaid markup."""
    session = _open_session(project, storyline_id)
    # Markup contains brackets; print it verbatim
    console.print(render_mermaid(session.diagram, no_labels=no_labels), markup=False)


@app.command("add-event")
def add_event(
    storyline_id: StorylineArg,
    kind: Annotated[str, typer.Option("--kind", "-k", help="Content kind.")] = "decision",
    name: Annotated[str, typer.Option("--name", "-n", help="Event name.")] = "",
    project: ProjectOption = Path(),
) -> None:
    """Append a new event to a storyline."""
    content_kind = _parse_kind(kind)
    session = _open_session(project, storyline_id)
    event = session.add_event(content_kind, name)
    _save_or_exit(session)
    console.print(f"[green]✓[/green] Added {content_kind} event {event.id}")


@app.command("delete-event")
def delete_event(
    storyline_id: StorylineArg,
    event_id: Annotated[str, typer.Argument(help="Event id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
    project: ProjectOption = Path(),
) -> None:
    """Delete an event and clear every transition that pointed at it."""
    session = _open_session(project, storyline_id)
    if not session.storyline.has_event(event_id):
        console.print(f"[yellow]Nothing to delete:[/yellow] no event '{event_id}'")
        return
    confirmed = yes or typer.confirm(f"Delete event '{event_id}'?", default=False)
    if not confirmed:
        console.print("[dim]Cancelled.[/dim]")
        raise typer.Exit(0)

    try:
        session.delete_event(event_id, confirm=True)
    except StorylineError as e:
        _print_storyline_error(e)
        raise typer.Exit(1) from e
    _save_or_exit(session)
    console.print(f"[green]✓[/green] Deleted event {event_id}")


@app.command()
def connect(
    storyline_id: StorylineArg,
    source: Annotated[str, typer.Argument(help="Source event id")],
    handle: Annotated[str, typer.Argument(help="Handle: next, win, lose, or opt:<option id>")],
    target: Annotated[str, typer.Argument(help="Target event id")],
    project: ProjectOption = Path(),
) -> None:
    """Connect a source handle to a target event."""
    session = _open_session(project, storyline_id)
    before = session.storyline
    session.connect(source, handle, target)
    if session.storyline is before:
        console.print(
            f"[red]Rejected:[/red] cannot connect {source}:{handle} to {target} "
            "(unknown event or handle)"
        )
        raise typer.Exit(1)
    _save_or_exit(session)
    console.print(f"[green]✓[/green] Connected {source}:{handle} → {target}")


@app.command()
def disconnect(
    storyline_id: StorylineArg,
    source: Annotated[str, typer.Argument(help="Source event id")],
    handle: Annotated[str, typer.Argument(help="Handle: next, win, lose, or opt:<option id>")],
    project: ProjectOption = Path(),
) -> None:
    """Clear the target of a source handle."""
    session = _open_session(project, storyline_id)
    before = session.storyline
    session.disconnect(source, handle)
    if session.storyline is before:
        console.print(f"[red]Rejected:[/red] no handle {source}:{handle}")
        raise typer.Exit(1)
    _save_or_exit(session)
    console.print(f"[green]✓[/green] Disconnected {source}:{handle}")


@app.command("assign-enemy")
def assign_enemy(
    storyline_id: StorylineArg,
    event_id: Annotated[str, typer.Argument(help="Battle event id")],
    enemy_id: Annotated[str, typer.Argument(help="Enemy id from the catalog, or '' to reset")],
    project: ProjectOption = Path(),
) -> None:
    """Snapshot a catalog enemy into a battle event."""
    session = _open_session(project, storyline_id)
    config = _load_config(project)
    try:
        catalogs = load_catalogs(config.data_path(project))
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        session.assign_enemy(event_id, enemy_id, catalogs["enemy"])
    except StorylineError as e:
        _print_storyline_error(e)
        raise typer.Exit(1) from e
    _save_or_exit(session)

    event = cast("StoryEvent", session.storyline.get_event(event_id))
    enemy = cast("BattleContent", event.content).enemy
    enemy_name = enemy.get("name") or "-"
    console.print(f"[green]✓[/green] {event_id} now fights [bold]{enemy_name}[/bold]")
    for kind in MANUAL_KINDS:
        name = resolve_manual_name(catalogs, kind, owned_manual_id(enemy.get(kind)))
        console.print(f"  {kind.replace('_', ' ').title()}: {name}")
    traits = [resolve_manual_name(catalogs, "trait", t) for t in enemy.get("traits") or []]
    console.print(f"  Traits: {', '.join(traits) or NONE_LABEL}")


@app.command()
def status(project: ProjectOption = Path()) -> None:
    """Show project configuration and storyline health."""
    config, repository = _open_repository(project)
    console.print(f"Project: [bold]{config.name}[/bold]")
    config_state = "found" if (project / CONFIG_FILE).exists() else "defaults"
    console.print(f"Config: {CONFIG_FILE} ({config_state})")
    console.print(f"Data: {config.data_path(project)}")

    try:
        items = repository.list()
        storylines = [repository.load(item.id) for item in items]
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    table = Table(title="Storylines")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Events", justify="right")
    table.add_column("Status", style="bold")
    for item, storyline in zip(items, storylines, strict=True):
        if storyline is None:
            continue
        session = EditingSession(storyline, layout=config.layout)
        if not session.can_save:
            state = f"[red]✗[/red] {len(session.errors)} error(s)"
        elif session.warnings:
            state = f"[yellow]![/yellow] {len(session.warnings)} warning(s)"
        else:
            state = "[green]✓[/green] ok"
        table.add_row(item.id, item.name or "-", str(len(storyline.events)), state)

    console.print()
    console.print(table)
    log.debug("status_reported", storylines=len(items))

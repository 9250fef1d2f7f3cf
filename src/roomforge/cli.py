"""RoomForge CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from roomforge.bundle import (
    BundleFormat,
    BundleNotFoundError,
    BundleParseError,
    BundleReader,
    BundleWriteError,
    BundleWriter,
    build_bundle,
    parse_dialogue,
    rehydrate,
)
from roomforge.config import (
    CONFIG_FILENAME,
    ProjectConfig,
    ProjectConfigError,
    create_default_config,
    load_project_config,
    save_project_config,
)
from roomforge.observability import close_file_logging, configure_logging, get_logger
from roomforge.runtime import build_runtime_payload, write_runtime_payload
from roomforge.store import ContentStore, MalformedImportError, dangling_references

# Load environment variables from .env file
load_dotenv()

log = get_logger(__name__)

app = typer.Typer(
    name="rf",
    help="RoomForge: author point-and-click adventure content.",
    no_args_is_help=True,
)
console = Console()

# Default directory for projects
DEFAULT_PROJECTS_DIR = Path("projects")

# Failures that mean the project content can't be used as-is
_CONTENT_ERRORS = (
    BundleNotFoundError,
    BundleParseError,
    BundleWriteError,
    MalformedImportError,
    ProjectConfigError,
)

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False
_projects_dir: Path = DEFAULT_PROJECTS_DIR

ProjectOption = Annotated[
    Path | None,
    typer.Option(
        "--project",
        "-p",
        help="Project directory. Can be a path or name (looks in --projects-dir).",
    ),
]


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
    log_to_file: Annotated[
        bool,
        typer.Option("--log", help="Enable file logging to {project}/logs/debug.jsonl."),
    ] = False,
    projects_dir: Annotated[
        Path,
        typer.Option(
            "--projects-dir",
            "-d",
            help="Base directory for projects (default: ./projects).",
            envvar="RF_PROJECTS_DIR",
        ),
    ] = DEFAULT_PROJECTS_DIR,
) -> None:
    """RoomForge: author point-and-click adventure content."""
    global _verbose, _log_enabled, _projects_dir
    _verbose = verbose
    _log_enabled = log_to_file
    _projects_dir = projects_dir

    # File logging is configured later, once the project is known
    configure_logging(verbosity=verbose)


def _configure_project_logging(project_path: Path) -> None:
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


def _resolve_project_path(project: Path | None) -> Path:
    """Resolve project path from argument.

    Resolution order:
    1. If project is None, use current directory
    2. If project exists as given, use it
    3. If project is a name (no path separators), look in _projects_dir
    """
    if project is None:
        return Path()

    if project.exists():
        return project

    if len(project.parts) == 1:
        projects_path = _projects_dir / project
        if projects_path.exists():
            return projects_path

    return project


def _require_project(project_path: Path) -> ProjectConfig:
    """Load project.yaml, exit with error if it's missing or unreadable."""
    if not (project_path / CONFIG_FILENAME).exists():
        console.print(
            f"[red]Error:[/red] No {CONFIG_FILENAME} found. "
            "Run 'rf init <name>' first or use --project."
        )
        raise typer.Exit(1)
    try:
        config = load_project_config(project_path)
    except ProjectConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    _configure_project_logging(project_path)
    return config


def _load_store(project_path: Path, config: ProjectConfig) -> ContentStore:
    reader = BundleReader(config.content_path(project_path), config.format)
    return rehydrate(reader.read())


def _fail(error: Exception) -> typer.Exit:
    log.error("command_failed", error_type=type(error).__name__, error=str(error))
    console.print(f"[red]Error:[/red] {error}")
    return typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from roomforge import __version__

    console.print(f"RoomForge v{__version__}")


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Project name")],
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            help="Parent directory for the project (default: --projects-dir).",
        ),
    ] = None,
    fmt: Annotated[
        str,
        typer.Option("--format", "-f", help="Bundle format: yaml or json."),
    ] = "yaml",
) -> None:
    """Initialize a new adventure project.

    Creates a project directory with:
    - project.yaml: Project configuration
    - content/: An empty content bundle
    """
    if fmt not in ("yaml", "json"):
        console.print(f"[red]Error:[/red] Unsupported format '{fmt}' (expected yaml or json)")
        raise typer.Exit(1)

    parent_dir = path if path is not None else _projects_dir
    project_path = parent_dir / name
    if project_path.exists():
        console.print(f"[red]Error:[/red] Directory '{project_path}' already exists")
        raise typer.Exit(1)

    config = create_default_config(name, fmt=fmt)  # type: ignore[arg-type]
    store = ContentStore()
    store.update_game_meta({"title": name})
    try:
        save_project_config(config, project_path)
        BundleWriter(config.content_path(project_path), config.format).write(
            build_bundle(store, config.format)
        )
    except _CONTENT_ERRORS as e:
        raise _fail(e) from e

    console.print(f"[green]✓[/green] Created project: [bold]{name}[/bold]")
    console.print(f"  Location: {project_path.absolute()}")


@app.command()
def status(project: ProjectOption = None) -> None:
    """Show content counts for the current project."""
    project_path = _resolve_project_path(project)
    config = _require_project(project_path)
    try:
        store = _load_store(project_path, config)
    except _CONTENT_ERRORS as e:
        raise _fail(e) from e

    table = Table(title=f"Project: {config.name} ({store.game.title})")
    table.add_column("Collection", style="cyan")
    table.add_column("Count", justify="right", style="bold")
    for label, count in (
        ("Rooms", len(store.rooms)),
        ("NPCs", len(store.npcs)),
        ("Items", len(store.items)),
        ("Puzzles", len(store.puzzles)),
        ("Dialogues", len(store.dialogues)),
    ):
        table.add_row(label, str(count))

    console.print()
    console.print(table)
    console.print(f"  Start room: {store.game.start_room or '-'}")
    console.print()


@app.command()
def export(
    project: ProjectOption = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory (default: the project content dir)."),
    ] = None,
    fmt: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Bundle format: yaml or json (default: project format)."),
    ] = None,
) -> None:
    """Re-export the project content as a normalized bundle.

    Fields equal to their defaults are dropped and dangling dialogue
    references are cleared.
    """
    project_path = _resolve_project_path(project)
    config = _require_project(project_path)
    out_format: BundleFormat = fmt or config.format  # type: ignore[assignment]
    if out_format not in ("yaml", "json"):
        console.print(f"[red]Error:[/red] Unsupported format '{out_format}' (expected yaml or json)")
        raise typer.Exit(1)

    out_dir = out if out is not None else config.content_path(project_path)
    try:
        store = _load_store(project_path, config)
        written = BundleWriter(out_dir, out_format).write(build_bundle(store, out_format))
    except _CONTENT_ERRORS as e:
        raise _fail(e) from e

    console.print(f"[green]✓[/green] Exported {len(written)} files to {out_dir}")


@app.command()
def build(
    project: ProjectOption = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory (default: the project build dir)."),
    ] = None,
) -> None:
    """Build the runtime payload (game.json) for the playback engine."""
    project_path = _resolve_project_path(project)
    config = _require_project(project_path)
    out_dir = out if out is not None else config.build_path(project_path)
    try:
        store = _load_store(project_path, config)
        path = write_runtime_payload(build_runtime_payload(store), out_dir)
    except _CONTENT_ERRORS as e:
        raise _fail(e) from e

    console.print(f"[green]✓[/green] Wrote {path}")


@app.command()
def check(project: ProjectOption = None) -> None:
    """Report dialogue choices and links that point at missing nodes.

    Exits with status 1 when any are found.
    """
    project_path = _resolve_project_path(project)
    config = _require_project(project_path)
    try:
        bundle = BundleReader(config.content_path(project_path), config.format).read()
        trees = {
            dialogue_id: parse_dialogue(dialogue_id, raw)
            for dialogue_id, raw in bundle.dialogues.items()
        }
    except _CONTENT_ERRORS as e:
        raise _fail(e) from e

    table = Table(title="Dangling dialogue references")
    table.add_column("Dialogue", style="cyan")
    table.add_column("Node")
    table.add_column("Choice", justify="right")
    table.add_column("Target", style="red")

    found = 0
    for dialogue_id, tree in trees.items():
        for ref in dangling_references(tree):
            found += 1
            choice = "-" if ref.choice_index is None else str(ref.choice_index)
            table.add_row(dialogue_id, ref.node_key or "-", choice, ref.target)

    if not found:
        console.print(f"[green]✓[/green] {len(trees)} dialogue trees, no dangling references")
        return

    console.print(table)
    raise typer.Exit(1)

"""Command-line interface for sortfs."""

import logging
import os
import sys
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .config import Settings, worker_count
from .errors import CanonicalizeError, OutputError, SortfsError
from .listing import Lister
from .models import SortAttribute, WalkConfig
from .render import RenderOptions, Renderer
from .styles import StyleTable

app = typer.Typer(
    name="sortfs",
    help="List a directory tree, most recently changed entries first.",
    rich_markup_mode="rich",
    add_completion=False,
)
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"[cyan]sortfs[/cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


def parse_max_depth(value: Optional[str]) -> Optional[int]:
    """Depth cutoff from the command line; anything invalid means unbounded."""
    if value is None:
        return None
    try:
        depth = int(value)
    except ValueError:
        depth = -1
    if depth < 0:
        logger.warning(f"Ignoring invalid --max-depth {value!r}, walking without a depth limit")
        return None
    return depth


def canonicalize(target: str) -> str:
    """Absolute, symlink-free form of ``target``; it must exist."""
    try:
        return str(Path(target).resolve(strict=True))
    except (OSError, RuntimeError) as e:
        raise CanonicalizeError(f"cannot canonicalize {target}: {e}") from e


def write_lines(lines: Iterable[str], stream: BinaryIO) -> int:
    """Write one line per path as raw bytes; stops at the first failure."""
    count = 0
    try:
        for line in lines:
            stream.write(os.fsencode(line) + b"\n")
            count += 1
        stream.flush()
    except OSError as e:
        raise OutputError(f"cannot write output: {e}") from e
    return count


def _discard_stdout():
    """Point stdout at devnull so the interpreter's final flush cannot fail again."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError) as e:
        logger.debug(f"Could not detach stdout: {e}")


@app.command()
def main(
    directory: str = typer.Argument(
        ".",
        help="Directory to walk through (defaults to current directory)",
    ),
    fragment: Optional[str] = typer.Argument(
        None,
        help="Only list paths starting with DIRECTORY/FRAGMENT (path completion)",
    ),
    sort_by: SortAttribute = typer.Option(
        SortAttribute.MODIFIED,
        "--sort-by",
        "-s",
        case_sensitive=False,
        help="Sort by an attribute (defaults to modified)",
    ),
    dirs_only: bool = typer.Option(False, "--dirs-only", "-d", help="Show directories only"),
    full_path: bool = typer.Option(False, "--full-path", "-f", help="Print canonical absolute paths"),
    color: bool = typer.Option(False, "--color", "-c", help="Colorize path components using LS_COLORS"),
    prefix_target: bool = typer.Option(
        False,
        "--prefix-target",
        "-p",
        help="Prefix paths with DIRECTORY as typed (ignored with --full-path)",
    ),
    max_depth: Optional[str] = typer.Option(
        None,
        "--max-depth",
        "-m",
        metavar="N",
        help="Do not descend more than N levels below DIRECTORY",
    ),
    hidden: bool = typer.Option(True, "--hidden/--no-hidden", help="Include dotfiles"),
    follow: bool = typer.Option(False, "--follow", "-L", help="Follow symbolic links"),
    no_ignore: bool = typer.Option(False, "--no-ignore", help="Do not read ignore files"),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Gitignore-style override pattern; prefix with ! to force inclusion",
    ),
    ignore_file: Optional[List[str]] = typer.Option(
        None,
        "--ignore-file",
        help="Additional ignore file, patterns relative to DIRECTORY",
    ),
    threads: Optional[int] = typer.Option(None, "--threads", "-j", min=1, help="Number of walker threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log diagnostics to stderr"),
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """List entries under DIRECTORY, newest first."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr,
        )
    
    try:
        settings = Settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}", highlight=False)
        raise typer.Exit(1)
    target = directory or "."
    
    try:
        root = canonicalize(target) if full_path else target
    except CanonicalizeError as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)
    # Trailing separators would leak into joined child paths
    root = root.rstrip(os.sep) or os.sep
    
    config = WalkConfig(
        root=root,
        dirs_only=dirs_only,
        max_depth=parse_max_depth(max_depth),
        hidden_visible=hidden,
        follow_symlinks=follow,
        literal_prefix_filter=fragment or None,
        worker_count=threads or worker_count(settings),
        respect_ignore_files=not no_ignore,
        custom_ignore_filename=settings.custom_ignore_filename,
        overrides=list(exclude or []),
        extra_ignore_files=list(ignore_file or []),
        symlink_depth_limit=settings.symlink_depth_limit,
    )
    
    try:
        items = Lister(config, settings, sort_by).scan()
    except SortfsError as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)
    
    renderer = Renderer(
        RenderOptions(
            root=root,
            target=target,
            full_path=full_path,
            prefix_target=prefix_target and not full_path,
            color=color,
        ),
        StyleTable.from_environment(settings.ls_colors) if color else None,
    )
    
    try:
        write_lines(renderer.lines(items), sys.stdout.buffer)
    except OutputError as e:
        logger.debug(str(e))
        _discard_stdout()
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

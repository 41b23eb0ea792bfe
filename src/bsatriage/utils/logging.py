"""Console output and logging for bsatriage.

All messages go to stderr through one rich Console so that pileup lines
written to stdout stay clean.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path
    from typing import TypeVar

    T = TypeVar("T")

PACKAGE_LOGGER = "bsatriage"

console = Console(stderr=True)

_handler: RichHandler | None = None

# Tag and rich style of the one-line user messages
_MESSAGE_STYLES = {
    "INFO": "blue",
    "WARNING": "yellow",
    "ERROR": "red",
    "SUCCESS": "green",
}


def setup_logging(
    level: int = logging.INFO,
    show_time: bool = True,
    show_path: bool = False,
) -> None:
    """Route log records to a rich handler on stderr.

    The handler is attached to the root logger on the first call. Every
    call sets the level of the root and package loggers, so a later
    ``--verbose`` run switches to debug output.

    Args:
        level: Logging level (default: INFO).
        show_time: Whether to show timestamps.
        show_path: Whether to show the emitting source file.
    """
    global _handler

    if _handler is None:
        _handler = RichHandler(
            console=console,
            show_time=show_time,
            show_path=show_path,
            rich_tracebacks=True,
            markup=True,
        )
        _handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(_handler)

    logging.getLogger().setLevel(level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Comparing bulks")
    """
    if _handler is None:
        setup_logging()

    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def track_progress(
    iterable: Iterable[T],
    total: int | None = None,
    description: str = "Processing",
) -> Iterator[T]:
    """Yield from an iterable while showing a transient progress bar.

    Example:
        >>> for contig_id in track_progress(ids, total=len(ids), description="Comparing"):
        ...     compare(contig_id)
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task(description, total=total)
        for item in iterable:
            yield item
            progress.advance(task)


def _print_message(tag: str, message: str) -> None:
    style = _MESSAGE_STYLES[tag]
    console.print(f"[{style}]{tag}:[/{style}] {message}")


def print_info(message: str) -> None:
    """Print an info message to stderr."""
    _print_message("INFO", message)


def print_warning(message: str) -> None:
    _print_message("WARNING", message)


def print_error(message: str) -> None:
    _print_message("ERROR", message)


def print_success(message: str) -> None:
    _print_message("SUCCESS", message)


def print_stats(stats: dict[str, int | float | str], title: str = "Statistics") -> None:
    """Print key figures as a two-column table.

    Integers get thousands separators and floats three decimals.

    Args:
        stats: Figure names mapped to values, in display order.
        title: Table title.
    """
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for key, value in stats.items():
        if isinstance(value, bool):
            text = "yes" if value else "no"
        elif isinstance(value, int):
            text = f"{value:,}"
        elif isinstance(value, float):
            text = f"{value:,.3f}"
        else:
            text = str(value)
        table.add_row(key, text)

    console.print(table)


def log_step(step: int, total: int, description: str) -> None:
    """Announce a pipeline step as ``[step/total] description``.

    Example:
        >>> log_step(1, 4, "Loading assembly")
        [1/4] Loading assembly
    """
    console.print(f"[bold cyan][{step}/{total}][/bold cyan] {description}")


def print_file_created(path: str | Path) -> None:
    """Print the location of a written output file."""
    console.print(f"  [dim]Created:[/dim] {path}")

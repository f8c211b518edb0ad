"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all user-facing CLI
output: colored status lines, spinners and per-collection summaries.
Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from ..file_mapper.models import CollectionUploadResult, DownloadResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Download completed")
        >>> with handler.spinner("Fetching collections..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for a single long-running step.

        Example:
            >>> with handler.spinner("Downloading Handbook..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_download_summary(self, collection_name: str, result: DownloadResult) -> None:
        """Display the outcome of one collection download.

        Args:
            collection_name: Display name of the collection
            result: Counts returned by the download reconciler
        """
        if result.deleted_count > 0:
            self.info(
                f"  Cleaned up {result.deleted_count} unused file(s) from {collection_name}"
            )
        if result.attachments_downloaded > 0:
            self.info(
                f"  Downloaded {result.attachments_downloaded} attachment(s) for {collection_name}"
            )
        self.success(f"Downloaded {result.written_count} document(s) from {collection_name}")

    def print_upload_summary(self, collection_name: str, result: CollectionUploadResult) -> None:
        """Display the tallies of one collection upload.

        Failed documents are listed individually before the tally line.

        Args:
            collection_name: Display name of the collection
            result: Tallies and errors returned by the upload reconciler
        """
        for file_path, error in result.errors:
            self.error(f"Failed: {file_path}")
            self.console.print(f"    {error}", style="red")

        tally = (
            f"{collection_name}: Created {result.created}, Updated {result.updated}, "
            f"Skipped {result.skipped}, Errors {result.error_count}"
        )
        if result.failed:
            self.error(tally)
        else:
            self.success(tally)

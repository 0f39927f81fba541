"""Console reporter using Rich library for formatted CLI output.

Shows a header when an upload starts, a line per stored part and a
summary table once the upload completed or was aborted.
"""

import threading

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from multipart_uploader.models import PartPlan, PartResult, TransferMode, UploadResult
from multipart_uploader.reporters.base import Reporter


def format_bytes(size: int) -> str:
    """Human-readable binary size, e.g. 5242880 -> '5.0 MiB'."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-part output (only show summary)
    """

    def __init__(self, quiet: bool = False):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = Console(legacy_windows=True)
        self.quiet = quiet
        self._lock = threading.Lock()
        self._part_count = 0
        self._parts_done = 0
        self._bytes_done = 0

    def on_upload_start(self, key: str, plan: PartPlan, mode: TransferMode) -> None:
        """Displays a header with the object key and the part plan."""
        self._part_count = plan.part_count
        self._parts_done = 0
        self._bytes_done = 0

        self.console.print()
        self.console.print(
            Rule(f"[bold cyan]Uploading: {key}[/bold cyan]", style="cyan", characters="-")
        )
        self.console.print(
            f"  {format_bytes(plan.total_size)} in {plan.part_count} parts "
            f"of ~{format_bytes(plan.part_size)} ([dim]{mode.value}[/dim])"
        )

    def on_part_complete(self, key: str, part: PartResult, size: int) -> None:
        """Displays progress for a stored part.

        May be called from worker threads.
        """
        with self._lock:
            self._parts_done += 1
            self._bytes_done += size
            done = self._parts_done

        if self.quiet:
            return

        self.console.print(
            f"  [green][OK][/green] part {part.part_number} "
            f"({format_bytes(size)}) [dim]{done}/{self._part_count}[/dim]"
        )

    def on_upload_complete(self, result: UploadResult) -> None:
        """Displays a summary table of the upload."""
        if result.success:
            status = "[bold green]COMPLETED[/bold green]"
        else:
            status = "[bold red]ABORTED[/bold red]" if result.upload_id else "[bold red]FAILED[/bold red]"

        table = Table(
            show_header=False,
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", no_wrap=True)

        table.add_row("Key", result.key)
        table.add_row("Status", status)
        if result.upload_id:
            table.add_row("Upload ID", result.upload_id)
        table.add_row("Parts", str(len(result.parts)))
        table.add_row("Uploaded", format_bytes(result.bytes_uploaded))
        table.add_row("Duration", f"{result.duration_seconds:.1f}s")
        if result.error is not None:
            table.add_row("Error", f"[red]{type(result.error).__name__}[/red]: {result.error}")

        self.console.print()
        self.console.print(table)
        self.console.print()

"""Console output for the CLI.

Provides a Console class that wraps rich for consistent output.
All CLI output should go through this module.
"""

from typing import TYPE_CHECKING, Any

from rich.console import Console as RichConsole
from rich.table import Table

if TYPE_CHECKING:
    from mintcache.application.driver import CycleReport
    from mintcache.domain.reconcile import ForkRepair
    from mintcache.domain.sync import SyncResult


class Console:
    """CLI output manager wrapping rich.

    Status messages go to stdout, errors to stderr.
    """

    def __init__(
        self,
        *,
        force_terminal: bool | None = None,
        quiet: bool = False,
    ) -> None:
        self._console = RichConsole(force_terminal=force_terminal, stderr=False)
        self._err_console = RichConsole(force_terminal=force_terminal, stderr=True)
        self._quiet = quiet

    # -------------------------------------------------------------------------
    # Status messages
    # -------------------------------------------------------------------------

    def success(self, message: str) -> None:
        self._console.print(f"[green]✓[/green] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        """Print an error message to stderr."""
        self._err_console.print(f"[red]✗[/red] {message}")
        if hint:
            self._err_console.print(f"  [dim]{hint}[/dim]")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def info(self, message: str) -> None:
        """Print an info message (suppressed in quiet mode)."""
        if not self._quiet:
            self._console.print(f"[dim]{message}[/dim]")

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console (pass-through to rich)."""
        self._console.print(*args, **kwargs)

    # -------------------------------------------------------------------------
    # Structured output
    # -------------------------------------------------------------------------

    def table(
        self,
        rows: list[dict[str, Any]],
        columns: list[tuple[str, str]],  # (key, header)
        *,
        title: str | None = None,
    ) -> None:
        table = Table(title=title, show_header=True, header_style="bold")
        for _, header in columns:
            table.add_column(header)
        for row in rows:
            table.add_row(*(str(row.get(key, "")) for key, _ in columns))
        self._console.print(table)

    def fork_report(self, repairs: list["ForkRepair"]) -> None:
        self.table(
            [
                {
                    "kind": str(r.kind),
                    "block": r.last_correct_block or "-",
                    "deleted": len(r.deleted),
                }
                for r in repairs
            ],
            [("kind", "Kind"), ("block", "Last correct block"), ("deleted", "Removed")],
            title="Fork check",
        )

    def sync_report(self, results: list["SyncResult"]) -> None:
        if not results:
            self.warning("No remote sources configured")
            return
        self.table(
            [
                {
                    "remote": r.remote,
                    "kind": str(r.kind),
                    "fetched": "failed" if r.failed else r.fetched,
                    "inserted": r.inserted,
                    "repaired": r.repaired,
                    "errors": r.errors,
                }
                for r in results
            ],
            [
                ("remote", "Remote"),
                ("kind", "Kind"),
                ("fetched", "Fetched"),
                ("inserted", "New"),
                ("repaired", "Repaired"),
                ("errors", "Errors"),
            ],
            title="Sync",
        )

    def cycle_report(self, report: "CycleReport") -> None:
        self.fork_report(report.repairs)
        self.sync_report(report.syncs)
        self.success(f"{report.dispatched} of {report.selected} due token(s) processed")

    def status(self, message: str):
        """Return a status context manager for long operations.

        Usage:
            with console.status("Loading..."):
                do_something()
        """
        return self._console.status(message)


# Module-level default instance for convenience
_default: Console | None = None


def get_console() -> Console:
    """Get the default console instance."""
    global _default
    if _default is None:
        _default = Console()
    return _default

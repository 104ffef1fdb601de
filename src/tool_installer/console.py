"""Rich console output for the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tool_installer import __version__
from tool_installer.types import InstallOutcome, InstallResult, RunReport

if TYPE_CHECKING:
    from tool_installer.detector import Platform
    from tool_installer.registry import ToolSpec


OUTCOME_STYLES = {
    InstallOutcome.ALREADY_PRESENT: ("[dim]✓[/dim]", "dim", "already present"),
    InstallOutcome.INSTALLED: ("[green]✓[/green]", "green", "installed"),
    InstallOutcome.FAILED: ("[red]✗[/red]", "red", "failed"),
    InstallOutcome.SKIPPED: ("[yellow]-[/yellow]", "yellow", "skipped"),
    InstallOutcome.PLANNED: ("[blue]+[/blue]", "blue", "would install"),
}


class TUI:
    """Text User Interface for tool-installer (non-interactive)."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize TUI.

        Args:
            console: Console to print to. A new stdout console if None.
        """
        self.console = console or Console()

    def show_welcome(self, platform: Platform, dry_run: bool = False) -> None:
        """Display the run banner."""
        mode = " [yellow](dry run)[/yellow]" if dry_run else ""
        self.console.print(
            Panel(
                f"[bold blue]Tool Installer[/bold blue] v{__version__}{mode}\n"
                f"Detected: {platform}",
                title="Bootstrap",
                border_style="blue",
            )
        )

    def show_progress(self, spec: ToolSpec) -> None:
        """Announce that a tool is being installed."""
        self.console.print(f"[blue]=>[/blue] Installing {spec.name}...")

    def show_result(self, result: InstallResult) -> None:
        """Print a one-line result as soon as a tool finishes."""
        icon, _, label = OUTCOME_STYLES[result.outcome]
        line = f"{icon} {result.tool}: {label}"
        if result.detail and result.outcome is not InstallOutcome.PLANNED:
            line += f" ({result.detail})"
        self.console.print(line)

    def show_report(self, report: RunReport) -> None:
        """Display the final summary table.

        Args:
            report: Completed run report.
        """
        if not len(report):
            self.console.print("[yellow]No tools to provision[/yellow]")
            return

        title = "Planned Actions" if report.dry_run else "Summary"
        table = Table(title=title)
        table.add_column("Tool", style="cyan")
        table.add_column("Outcome")
        table.add_column("Detail", overflow="fold")

        for result in report:
            _, style, label = OUTCOME_STYLES[result.outcome]
            table.add_row(result.tool, f"[{style}]{label}[/{style}]", result.detail or "")

        self.console.print(table)

        counts = report.by_outcome()
        summary = ", ".join(
            f"{count} {OUTCOME_STYLES[outcome][2]}" for outcome, count in counts.items()
        )
        if report.success:
            self.show_success(f"Done: {summary}")
        else:
            self.show_error(f"Finished with failures: {summary}")
            self.show_info("Re-run to retry; installed tools will be skipped.")

    def show_tools(self, specs: list[ToolSpec]) -> None:
        """Display the tools available on this platform."""
        if not specs:
            self.console.print("[yellow]No tools available on this platform[/yellow]")
            return

        table = Table(title="Available Tools")
        table.add_column("Name", style="cyan")
        table.add_column("Strategy")
        table.add_column("Depends On")
        table.add_column("Description")

        for spec in specs:
            table.add_row(
                spec.name,
                spec.strategy.kind,
                ", ".join(spec.depends_on),
                spec.description,
            )

        self.console.print(table)

    def show_success(self, message: str) -> None:
        """Show success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        """Show error message.

        Args:
            message: Error message.
        """
        self.console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        """Show warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_info(self, message: str) -> None:
        """Show info message.

        Args:
            message: Info message.
        """
        self.console.print(f"[blue]i[/blue] {message}")

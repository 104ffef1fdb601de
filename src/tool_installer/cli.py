"""CLI command using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from tool_installer.context import AppContext

import typer
from rich.console import Console
from rich.logging import RichHandler

from tool_installer import __version__
from tool_installer.console import TUI
from tool_installer.context import create_context
from tool_installer.errors import CyclicDependencyError, ManifestError, UnsupportedPlatformError
from tool_installer.orchestrator import Orchestrator

app = typer.Typer(
    name="tool-installer",
    help="Idempotent bootstrap of CLI tools for a fresh machine",
    add_completion=False,
)

console = Console()
tui = TUI(console)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"tool-installer v{__version__}")
        raise typer.Exit()


def _parse_tools(tools_arg: str | None) -> list[str]:
    """Parse comma-separated tool names into a list."""
    if not tools_arg:
        return []
    return [t.strip() for t in tools_arg.split(",") if t.strip()]


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_context(
    config: Path | None,
    manifest: Path | None,
    install_dir: Path | None,
    timeout: float | None,
) -> AppContext:
    """Create the application context.

    Raises:
        typer.Exit: If the config file or manifest is invalid.
    """
    try:
        return create_context(
            config_path=config,
            manifest=manifest,
            install_dir=install_dir,
            timeout=timeout,
        )
    except ManifestError as e:
        tui.show_error(str(e))
        raise typer.Exit(EXIT_FATAL) from e


@app.command()
def main(
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Report planned actions without installing")
    ] = False,
    only: Annotated[
        str | None,
        typer.Option("--only", help="Only these tools and their dependencies (comma-separated)"),
    ] = None,
    skip: Annotated[
        str | None, typer.Option("--skip", help="Tools to leave out (comma-separated)")
    ] = None,
    manifest: Annotated[
        Path | None, typer.Option("--manifest", "-m", help="Tool manifest (YAML)")
    ] = None,
    install_dir: Annotated[
        Path | None, typer.Option("--install-dir", help="Directory for downloaded binaries")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", "-t", min=0.1, help="Per-tool timeout in seconds")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file (YAML)")
    ] = None,
    list_tools: Annotated[
        bool, typer.Option("--list", "-l", help="List tools available on this platform and exit")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    _context=None,
) -> None:
    """Install the configured CLI tools, skipping those already present.

    Exit status is 0 when every tool is present or installed, 1 when any tool
    failed, and 2 when nothing could be attempted.
    """
    _configure_logging(verbose)
    ctx = _context or _load_context(config, manifest, install_dir, timeout)

    try:
        platform = ctx.detector()
    except UnsupportedPlatformError as e:
        tui.show_error(str(e))
        raise typer.Exit(EXIT_FATAL) from e

    try:
        specs = ctx.registry.build_specs(
            platform, only=_parse_tools(only), skip=_parse_tools(skip)
        )
    except ValueError as e:
        tui.show_error(str(e))
        raise typer.Exit(EXIT_FAILED) from e

    if list_tools:
        tui.show_tools(specs)
        return

    tui.show_welcome(platform, dry_run=dry_run)
    orchestrator = Orchestrator(
        detector=ctx.detector,
        timeout=ctx.config.timeout,
        on_result=tui.show_result,
        on_start=tui.show_progress,
    )
    try:
        report = orchestrator.run(specs, dry_run=dry_run, platform=platform)
    except CyclicDependencyError as e:
        tui.show_error(str(e))
        raise typer.Exit(EXIT_FATAL) from e
    except KeyboardInterrupt as e:
        tui.show_warning("Interrupted; re-run to continue where this run stopped.")
        raise typer.Exit(EXIT_INTERRUPTED) from e

    console.print()
    tui.show_report(report)
    if report.exit_code != EXIT_OK:
        raise typer.Exit(report.exit_code)


if __name__ == "__main__":
    app()

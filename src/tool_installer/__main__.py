"""Allow `python -m tool_installer`."""

from tool_installer.cli import app

app()

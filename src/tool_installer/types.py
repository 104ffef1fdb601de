"""Shared data types for tool installer."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum

__all__ = ["InstallOutcome", "InstallResult", "RunReport"]


class InstallOutcome(str, Enum):
    """Terminal state of a single tool within a run."""

    ALREADY_PRESENT = "already_present"
    INSTALLED = "installed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PLANNED = "planned"


@dataclass(frozen=True)
class InstallResult:
    """Result of provisioning one tool.

    Attributes:
        tool: Tool name as declared in the manifest.
        outcome: Terminal state reached by the tool.
        detail: Human-readable detail (required when the tool failed).
    """

    tool: str
    outcome: InstallOutcome
    detail: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not self.tool:
            raise ValueError("tool cannot be empty")
        if self.outcome is InstallOutcome.FAILED and not self.detail:
            raise ValueError("failed outcome requires a detail message")

    @property
    def failed(self) -> bool:
        """True if this tool failed."""
        return self.outcome is InstallOutcome.FAILED


@dataclass(frozen=True)
class RunReport:
    """Ordered record of per-tool outcomes for one run."""

    results: tuple[InstallResult, ...] = ()
    dry_run: bool = False

    @property
    def success(self) -> bool:
        """True iff no tool failed."""
        return not any(r.failed for r in self.results)

    @property
    def exit_code(self) -> int:
        """Process exit code for this report."""
        return 0 if self.success else 1

    def get(self, tool: str) -> InstallResult | None:
        """Get the result for a tool by name.

        Args:
            tool: Tool name.

        Returns:
            The tool's result, or None if it was not part of the run.
        """
        for result in self.results:
            if result.tool == tool:
                return result
        return None

    def by_outcome(self) -> dict[InstallOutcome, int]:
        """Count results per outcome."""
        return dict(Counter(r.outcome for r in self.results))

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

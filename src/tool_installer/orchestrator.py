"""Run orchestration: detect, order, install, report."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from tool_installer.detector import Platform, detect
from tool_installer.errors import InstallError
from tool_installer.registry import ToolSpec, resolve_order
from tool_installer.types import InstallOutcome, InstallResult, RunReport

logger = logging.getLogger(__name__)

# Dependency outcomes that prevent a dependent from being attempted.
BLOCKING_OUTCOMES = (InstallOutcome.FAILED, InstallOutcome.SKIPPED)


class Orchestrator:
    """Provisions tools one at a time in dependency order.

    Per-tool failures are recorded and the run continues; only platform
    detection and dependency-cycle errors abort a run.
    """

    def __init__(
        self,
        detector: Callable[[], Platform] = detect,
        timeout: float | None = None,
        on_result: Callable[[InstallResult], None] | None = None,
        on_start: Callable[[ToolSpec], None] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            detector: Platform detection function.
            timeout: Per-tool install timeout in seconds (None for no limit).
            on_result: Called with each result as soon as it is recorded.
            on_start: Called before a tool's install begins.
        """
        self.detector = detector
        self.timeout = timeout
        self.on_result = on_result
        self.on_start = on_start

    def run(
        self,
        specs: Sequence[ToolSpec],
        dry_run: bool = False,
        platform: Platform | None = None,
    ) -> RunReport:
        """Provision specs and report every tool's outcome.

        Args:
            specs: Tool specs in declaration order.
            dry_run: Check presence and report planned installs without
                installing anything.
            platform: Already-detected platform. Detected once if None.

        Returns:
            RunReport in install order.

        Raises:
            UnsupportedPlatformError: If the host is not supported.
            CyclicDependencyError: If the specs' dependencies form a cycle.
        """
        if platform is None:
            platform = self.detector()
        logger.info("Provisioning %d tool(s) on %s", len(specs), platform)

        ordered = resolve_order(specs)
        outcomes: dict[str, InstallOutcome] = {}
        results: list[InstallResult] = []
        for spec in ordered:
            result = self._provision(spec, outcomes, dry_run)
            outcomes[spec.name] = result.outcome
            results.append(result)
            if self.on_result is not None:
                self.on_result(result)

        report = RunReport(results=tuple(results), dry_run=dry_run)
        logger.info("Run finished: %s", {k.value: v for k, v in report.by_outcome().items()})
        return report

    def _provision(
        self,
        spec: ToolSpec,
        outcomes: dict[str, InstallOutcome],
        dry_run: bool,
    ) -> InstallResult:
        for dep in spec.depends_on:
            outcome = outcomes.get(dep)
            if outcome in BLOCKING_OUTCOMES:
                logger.warning("Skipping %s: dependency %s %s", spec.name, dep, outcome.value)
                return InstallResult(
                    spec.name, InstallOutcome.SKIPPED, f"dependency '{dep}' {outcome.value}"
                )

        try:
            if spec.is_installed():
                logger.debug("%s already present", spec.name)
                return InstallResult(spec.name, InstallOutcome.ALREADY_PRESENT)
        except Exception as e:
            logger.exception("Presence check failed for %s", spec.name)
            return InstallResult(spec.name, InstallOutcome.FAILED, f"presence check failed: {e}")

        if dry_run:
            return InstallResult(spec.name, InstallOutcome.PLANNED, spec.strategy.describe())

        if self.on_start is not None:
            self.on_start(spec)
        logger.info("Installing %s via %s", spec.name, spec.strategy.kind)
        try:
            spec.install(timeout=self.timeout)
        except InstallError as e:
            logger.error("Installation failed for %s: %s", spec.name, e)
            return InstallResult(spec.name, InstallOutcome.FAILED, str(e))
        except Exception as e:
            logger.exception("Installation failed for %s", spec.name)
            return InstallResult(spec.name, InstallOutcome.FAILED, f"unexpected error: {e}")

        return InstallResult(spec.name, InstallOutcome.INSTALLED)

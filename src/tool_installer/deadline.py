"""Time budget shared by the steps of one install."""

from __future__ import annotations

import time
from collections.abc import Callable

from tool_installer.errors import InstallError, InstallErrorKind


class Deadline:
    """Overall time budget shared by the steps of one install.

    Each step reads `remaining()` right before it starts, so time spent by
    earlier steps is charged against later ones.
    """

    def __init__(
        self,
        timeout: float | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._expires = clock() + timeout if timeout is not None else None

    def remaining(self) -> float | None:
        """Seconds left in the budget, or None if unbounded.

        Raises:
            InstallError: If the budget is already spent.
        """
        if self._expires is None:
            return None
        left = self._expires - self._clock()
        if left <= 0:
            raise InstallError(
                InstallErrorKind.TIMEOUT, f"install exceeded timeout of {self.timeout:g}s"
            )
        return left

"""
Consecutive fetch failure tracking for degraded-mode reporting.
"""
from __future__ import annotations

from loguru import logger


class FailureCounter:
    def __init__(self, *, threshold: int = 3) -> None:
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold}")
        self.threshold = threshold
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def record_failure(self) -> bool:
        """
        Count one more consecutive failure. Returns True exactly when the
        threshold is reached, in which case the counter starts over at zero.
        """
        self._count += 1
        if self._count >= self.threshold:
            logger.warning("Consecutive failure threshold reached ({}). Resetting counter.", self.threshold)
            self._count = 0
            return True
        return False

    def record_success(self) -> None:
        if self._count:
            logger.debug("Fetch recovered after {} failure(s)", self._count)
        self._count = 0

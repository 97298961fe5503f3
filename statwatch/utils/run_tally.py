"""
Per-run counters for the monitor loop.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class RunTally:
    ticks: int = 0
    successes: int = 0
    failures: int = 0
    alerts: int = 0
    degraded_notices: int = 0

    def record_success(self, alerts: int) -> None:
        self.ticks += 1
        self.successes += 1
        self.alerts += alerts

    def record_failure(self, degraded: bool) -> None:
        self.ticks += 1
        self.failures += 1
        if degraded:
            self.degraded_notices += 1

    def snapshot(self) -> Dict[str, int]:
        return asdict(self)

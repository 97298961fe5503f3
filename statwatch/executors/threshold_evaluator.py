"""
Threshold evaluation of a single ServerStats snapshot.
"""
from __future__ import annotations

from typing import Callable, List

from loguru import logger
from pydantic import BaseModel

from ..utils.stats_client import ServerStats

BYTES_PER_MB = 1024 * 1024
BITS_PER_MBIT = 1_000_000


class AlertThresholds(BaseModel):
    load_average: int = 30
    memory_percent: int = 80
    disk_percent: int = 90
    network_percent: int = 90


def _div(a: int, b: int) -> int:
    # Integer division truncating toward zero; // floors for negative operands
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _usage_percent(used: int, total: int) -> int:
    return _div(used * 100, total)


def evaluate(stats: ServerStats, thresholds: AlertThresholds | None = None) -> List[str]:
    """
    Return the alert lines for ``stats`` in rule order: load, memory, disk, network.
    A resource whose total is not positive is treated as not reported.
    """
    th = thresholds or AlertThresholds()
    lines: List[str] = []

    if stats.load_average > th.load_average:
        lines.append(f"Load Average is too high: {stats.load_average}")

    if stats.total_memory > 0:
        mem_pct = _usage_percent(stats.used_memory, stats.total_memory)
        if mem_pct > th.memory_percent:
            lines.append(f"Memory usage too high: {mem_pct}%")

    if stats.total_disk > 0:
        if _usage_percent(stats.used_disk, stats.total_disk) > th.disk_percent:
            free_mb = _div(stats.total_disk - stats.used_disk, BYTES_PER_MB)
            lines.append(f"Free disk space is too low: {free_mb} Mb left")

    if stats.total_network > 0:
        if _usage_percent(stats.used_network, stats.total_network) > th.network_percent:
            free_mbit = _div(stats.total_network - stats.used_network, BITS_PER_MBIT)
            lines.append(f"Network bandwidth usage high: {free_mbit} Mbit/s available")

    return lines


class ThresholdEvaluator:
    def __init__(self, *, thresholds: AlertThresholds | None = None, emit: Callable[[str], None]) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self._emit = emit

    def check(self, stats: ServerStats) -> int:
        """Emit every alert line for ``stats`` and return how many fired."""
        lines = evaluate(stats, self.thresholds)
        for line in lines:
            self._emit(line)
        if lines:
            logger.debug("Alerts fired: {}", len(lines))
        return len(lines)

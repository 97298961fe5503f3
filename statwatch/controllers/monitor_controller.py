"""
Monitor loop controller.

Polls the stats endpoint, evaluates each snapshot against the alert thresholds and
reports degraded mode after repeated consecutive fetch failures.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger
from pydantic import BaseModel

from ..controllers.failure_counter import FailureCounter
from ..executors.threshold_evaluator import AlertThresholds, ThresholdEvaluator
from ..utils.run_tally import RunTally
from ..utils.stats_client import DEFAULT_STATS_URL, FetchError, StatsClient

DEGRADED_NOTICE = "Unable to fetch server statistics after multiple attempts."


class MonitorConfig(BaseModel):
    stats_url: str = DEFAULT_STATS_URL
    poll_interval: float = 1.0
    request_timeout: float = 5.0
    failure_threshold: int = 3
    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    thresholds: AlertThresholds = AlertThresholds()


def print_line(line: str) -> None:
    print(line, flush=True)


class MonitorController:
    """Owns the stats client, the evaluator and the consecutive failure counter."""

    def __init__(
        self,
        config: MonitorConfig,
        *,
        client: Optional[StatsClient] = None,
        emit: Callable[[str], None] = print_line,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.client = client or StatsClient(config.stats_url, timeout=config.request_timeout)
        self.evaluator = ThresholdEvaluator(thresholds=config.thresholds, emit=emit)
        self.failures = FailureCounter(threshold=config.failure_threshold)
        self.tally = RunTally()
        self._emit = emit
        self._sleep = sleep

    def on_tick(self) -> bool:
        """
        Single fetch-and-evaluate step, without the trailing sleep.
        Returns True when the fetch succeeded.
        """
        try:
            stats = self.client.fetch()
        except FetchError as e:
            logger.warning("Stats fetch failed | kind={} detail={}", e.kind.value, e.detail)
            self._emit(f"Error: {e.detail}")
            degraded = self.failures.record_failure()
            if degraded:
                self._emit(DEGRADED_NOTICE)
            self.tally.record_failure(degraded)
            return False

        alerts = self.evaluator.check(stats)
        self.failures.record_success()
        self.tally.record_success(alerts)
        return True

    def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Tick forever, sleeping poll_interval between ticks regardless of outcome.
        ``max_ticks`` bounds the loop for callers that need it to end.
        """
        logger.info(
            "Monitoring {} | poll_interval={}s timeout={}s",
            self.config.stats_url,
            self.config.poll_interval,
            self.config.request_timeout,
        )
        done = 0
        while max_ticks is None or done < max_ticks:
            self.on_tick()
            done += 1
            self._sleep(self.config.poll_interval)

    def stop(self) -> None:
        logger.info("Stopping monitor | tally={} latency={}", self.tally.snapshot(), self.client.latency_summary())
        self.client.close()

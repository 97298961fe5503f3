import sys
import unittest
from pathlib import Path

# Ensure the repository root is on sys.path so 'statwatch' can be imported
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from statwatch.executors.threshold_evaluator import (  # noqa: E402
    AlertThresholds,
    ThresholdEvaluator,
    evaluate,
)
from statwatch.utils.stats_client import ServerStats, parse_stats_body  # noqa: E402


class TestEvaluate(unittest.TestCase):
    def check_body(self, body, expected):
        self.assertEqual(evaluate(parse_stats_body(body)), expected)

    def test_quiet_snapshot(self):
        self.check_body("5,1000,500,1000,500,1000,500", [])

    def test_load_average(self):
        self.check_body("31,100,10,100,10,100,10", ["Load Average is too high: 31"])
        self.check_body("30,100,10,100,10,100,10", [])

    def test_memory(self):
        self.check_body("10,100,81,100,10,100,10", ["Memory usage too high: 81%"])
        self.check_body("10,100,80,100,10,100,10", [])

    def test_memory_percent_truncates_after_scaling(self):
        # 80.9% truncates to 80 and must not fire
        self.check_body("10,1000,809,100,10,100,10", [])

    def test_disk_reports_free_megabytes(self):
        self.check_body(
            "10,100,10,10737418240,10200547328,100,10",
            ["Free disk space is too low: 512 Mb left"],
        )

    def test_disk_small_free_space_truncates_to_zero(self):
        self.check_body(
            "10,100,10,1048576000,1048000000,100,10",
            ["Free disk space is too low: 0 Mb left"],
        )

    def test_network_reports_free_megabits(self):
        self.check_body(
            "10,100,10,100,10,1000000000,950000000",
            ["Network bandwidth usage high: 50 Mbit/s available"],
        )

    def test_all_rules_fire_in_order(self):
        self.check_body(
            "40,100,90,100,95,1000000000,999000000",
            [
                "Load Average is too high: 40",
                "Memory usage too high: 90%",
                "Free disk space is too low: 0 Mb left",
                "Network bandwidth usage high: 1 Mbit/s available",
            ],
        )

    def test_zero_totals_skip_rules(self):
        self.assertEqual(evaluate(ServerStats(0, 0, 999, 0, 999, 0, 999)), [])

    def test_used_above_total_is_not_an_error(self):
        self.assertEqual(
            evaluate(ServerStats(0, 100, 150, 0, 0, 0, 0)),
            ["Memory usage too high: 150%"],
        )

    def test_negative_free_space_truncates_toward_zero(self):
        # used exceeds total by 1.5 MiB: -1.5 truncates to -1, not -2
        total = 10 * 1024 * 1024
        used = total + 1024 * 1024 + 512 * 1024
        self.assertEqual(
            evaluate(ServerStats(0, 0, 0, total, used, 0, 0)),
            ["Free disk space is too low: -1 Mb left"],
        )

    def test_deterministic(self):
        stats = ServerStats(40, 100, 90, 100, 95, 1000000000, 999000000)
        self.assertEqual(evaluate(stats), evaluate(stats))

    def test_custom_thresholds(self):
        th = AlertThresholds(load_average=5)
        self.assertEqual(evaluate(ServerStats(6, 0, 0, 0, 0, 0, 0), th), ["Load Average is too high: 6"])


class TestThresholdEvaluator(unittest.TestCase):
    def test_check_emits_lines_and_counts(self):
        lines = []
        ev = ThresholdEvaluator(emit=lines.append)
        fired = ev.check(ServerStats(31, 100, 81, 0, 0, 0, 0))
        self.assertEqual(fired, 2)
        self.assertEqual(lines, ["Load Average is too high: 31", "Memory usage too high: 81%"])

    def test_check_quiet(self):
        lines = []
        ev = ThresholdEvaluator(emit=lines.append)
        self.assertEqual(ev.check(ServerStats(1, 100, 1, 100, 1, 100, 1)), 0)
        self.assertEqual(lines, [])


if __name__ == "__main__":
    unittest.main()

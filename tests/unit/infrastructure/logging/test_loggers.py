"""Unit tests for logger implementations.

Tests verify that:
1. ConsoleLogger and NullLogger implement LoggerPort
2. ConsoleLogger respects its verbosity level
3. ConsoleLogger keeps run statistics
"""

from io import StringIO
import unittest

from rich.console import Console

from qc_reconcile.application.ports.services import LoggerPort
from qc_reconcile.domain.entities.comparison import (
    ComparisonStatus,
    ComparisonSummary,
    MatchStatistics,
)
from qc_reconcile.infrastructure.logging import (
    ConsoleLogger,
    LogContext,
    LogLevel,
    NullLogger,
)


def _summary():
    return ComparisonSummary(
        object_name="ADSL",
        status=ComparisonStatus.FAIL,
        severity_counts={"Fail": 2},
        kind_counts={"value:value-mismatch": 2},
        statistics=MatchStatistics(matched_pairs=40),
    )


class TestLoggerPort(unittest.TestCase):
    def test_console_logger_implements_loggerport(self):
        self.assertIsInstance(ConsoleLogger(), LoggerPort)

    def test_null_logger_implements_loggerport(self):
        self.assertIsInstance(NullLogger(), LoggerPort)


class TestConsoleLogger(unittest.TestCase):
    """Test ConsoleLogger output and statistics."""

    def setUp(self):
        self.output = StringIO()
        self.console = Console(file=self.output, force_terminal=False, width=200)

    def _logger(self, verbosity=0):
        return ConsoleLogger(console=self.console, verbosity=verbosity)

    def test_verbose_messages_hidden_by_default(self):
        logger = self._logger()
        logger.verbose("loading adsl.csv")
        logger.debug("details")
        self.assertEqual(self.output.getvalue(), "")

    def test_verbose_messages_shown_with_verbosity(self):
        logger = self._logger(verbosity=LogLevel.VERBOSE)
        logger.verbose("loading adsl.csv")
        self.assertIn("loading adsl.csv", self.output.getvalue())

    def test_warnings_and_errors_are_counted(self):
        logger = self._logger()
        logger.warning("label differs")
        logger.error("file not found")
        stats = logger.get_stats()
        self.assertEqual(stats["warnings"], 1)
        self.assertEqual(stats["errors"], 1)
        self.assertIn("file not found", self.output.getvalue())

    def test_comparison_statistics(self):
        logger = self._logger(verbosity=LogLevel.VERBOSE)
        logger.log_comparison_start(
            "ADSL", left_name="ADSL", left_rows=40, right_name="QC_ADSL", right_rows=40
        )
        logger.log_comparison_complete(_summary())
        stats = logger.get_stats()
        self.assertEqual(stats["comparisons"], 1)
        self.assertEqual(stats["records_compared"], 40)
        self.assertEqual(stats["findings"], 2)
        self.assertIn("2 finding(s)", self.output.getvalue())

    def test_transitions(self):
        logger = self._logger(verbosity=LogLevel.VERBOSE)
        logger.log_transition("ADSL", "compared", "closed", "auto_close")
        self.assertEqual(logger.get_stats()["transitions"], 1)
        self.assertIn("compared → closed", self.output.getvalue())

    def test_debug_prefix_is_escaped(self):
        logger = self._logger(verbosity=LogLevel.DEBUG)
        logger.set_context(study_id="STUDY01", object_name="ADSL")
        logger.debug("checking keys")
        self.assertIn("[STUDY01:ADSL] checking keys", self.output.getvalue())

    def test_final_stats_only_when_verbose(self):
        logger = self._logger()
        logger.log_final_stats()
        self.assertEqual(self.output.getvalue(), "")
        verbose = self._logger(verbosity=LogLevel.VERBOSE)
        verbose.log_final_stats()
        self.assertIn("Run Statistics", self.output.getvalue())

    def test_reset_stats(self):
        logger = self._logger()
        logger.error("boom")
        logger.reset_stats()
        self.assertEqual(logger.get_stats()["errors"], 0)


class TestLogContext(unittest.TestCase):
    def test_elapsed_is_non_negative(self):
        self.assertGreaterEqual(LogContext(object_name="ADSL").elapsed_ms(), 0.0)


class TestNullLogger(unittest.TestCase):
    def test_everything_is_silent(self):
        logger = NullLogger()
        logger.info("x")
        logger.warning("x")
        logger.error("x")
        logger.log_transition("ADSL", None, "registered", "register")
        logger.log_comparison_complete(_summary())
        logger.log_final_stats()

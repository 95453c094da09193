"""Tests for the --fail-on gate and exit codes."""

import pytest

from extenscan.gate import EXIT_SUCCESS, decide
from extenscan.models import Package, ScanResult, Severity, Source, Vulnerability


def _result(*severities):
    return ScanResult(vulnerabilities=[
        Vulnerability(id=f"V{i}", package_id="pkg", severity=sev, title="t")
        for i, sev in enumerate(severities)
    ])


@pytest.fixture
def result_with_high():
    return _result(Severity.HIGH)


@pytest.fixture
def result_with_medium():
    return _result(Severity.MEDIUM)


@pytest.fixture
def result_clean():
    return ScanResult()


class TestNoThreshold:
    def test_no_fail_on_always_passes(self, result_with_high):
        assert decide(result_with_high) == EXIT_SUCCESS
        assert decide(result_with_high, None) == 0
        assert decide(result_with_high, "") == 0


class TestThreshold:
    def test_clean_passes(self, result_clean):
        assert decide(result_clean, "low") == 0

    def test_high_at_high(self, result_with_high):
        assert decide(result_with_high, "high") == 3

    def test_high_below_critical_threshold(self, result_with_high):
        assert decide(result_with_high, "critical") == 0

    def test_medium_below_high_threshold(self, result_with_medium):
        assert decide(result_with_medium, "high") == 0

    def test_medium_at_low_threshold(self, result_with_medium):
        assert decide(result_with_medium, "low") == 4

    def test_most_severe_decides(self):
        result = _result(Severity.LOW, Severity.CRITICAL, Severity.MEDIUM)
        assert decide(result, "low") == 2

    def test_low_code(self):
        assert decide(_result(Severity.LOW), "low") == 5

    def test_unknown_never_trips(self):
        assert decide(_result(Severity.UNKNOWN), "low") == 0

    def test_threshold_is_case_insensitive(self, result_with_high):
        assert decide(result_with_high, "HIGH") == 3

    def test_health_score_is_irrelevant(self):
        # Many medium findings sink the score but stay under a high threshold.
        result = _result(*[Severity.MEDIUM] * 20)
        result.packages = [Package(id="pkg", name="pkg", version="1.0.0", source=Source.NPM)]
        assert result.health_score == 0
        assert decide(result, "high") == 0

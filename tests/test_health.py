"""Tests for the scan health score."""

import pytest

from extenscan.health import health_indicator, health_score
from extenscan.models import OutdatedInfo, Severity, Vulnerability


def _vuln(severity, vid="V1"):
    return Vulnerability(id=vid, package_id="pkg", severity=severity, title="t")


class TestHealthScore:
    def test_no_packages(self):
        assert health_score([], [], 0) == 100

    def test_no_packages_ignores_findings(self):
        assert health_score([_vuln(Severity.CRITICAL)], [], 0) == 100

    def test_clean(self):
        assert health_score([], [], 10) == 100

    def test_one_critical(self):
        assert health_score([_vuln(Severity.CRITICAL)], [], 1) == 75

    @pytest.mark.parametrize("severity,expected", [
        (Severity.HIGH, 85),
        (Severity.MEDIUM, 92),
        (Severity.LOW, 97),
        (Severity.UNKNOWN, 95),
    ])
    def test_penalties(self, severity, expected):
        assert health_score([_vuln(severity)], [], 1) == expected

    def test_outdated_penalties(self):
        outdated = [
            OutdatedInfo("a", "1.0.0", "2.0.0"),   # major
            OutdatedInfo("b", "1.0.0", "1.1.0"),   # minor
            OutdatedInfo("c", "weird", "other"),   # unparsable counts as minor
        ]
        assert health_score([], outdated, 3) == 100 - 5 - 2 - 2

    def test_clamped_at_zero(self):
        vulns = [_vuln(Severity.CRITICAL, f"V{i}") for i in range(5)]
        assert health_score(vulns, [], 5) == 0

    def test_accepts_iterables(self):
        assert health_score(iter([_vuln(Severity.LOW)]), iter([]), 1) == 97


class TestIndicator:
    @pytest.mark.parametrize("score,label", [
        (100, "Excellent"), (90, "Excellent"), (89, "Good"), (70, "Good"),
        (69, "Fair"), (50, "Fair"), (49, "Poor"), (25, "Poor"),
        (24, "Critical"), (0, "Critical"),
    ])
    def test_labels(self, score, label):
        assert health_indicator(score) == label

"""Gate — ``--fail-on`` threshold and exit codes.

Exit codes:
    0 — pass (no threshold, or nothing at/above it)
    1 — runtime error (raised by the CLI, not decided here)
    2 — critical vulnerability found
    3 — high vulnerability found
    4 — medium vulnerability found
    5 — low vulnerability found

Only raw vulnerability severities are considered; the health score never
affects the exit code.
"""

from __future__ import annotations

from extenscan.models import ScanResult, Severity

EXIT_SUCCESS = 0
EXIT_ERROR = 1

EXIT_CODES = {
    Severity.CRITICAL: 2,
    Severity.HIGH: 3,
    Severity.MEDIUM: 4,
    Severity.LOW: 5,
}

FAIL_ON_CHOICES = ["critical", "high", "medium", "low"]


def decide(result: ScanResult, fail_on: str | None = None) -> int:
    """Return the exit code for *result* under the *fail_on* threshold."""
    if not fail_on:
        return EXIT_SUCCESS

    threshold = Severity.from_str(fail_on)
    present = {v.severity for v in result.vulnerabilities}

    for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW):
        if severity < threshold:
            break
        if severity in present:
            return EXIT_CODES[severity]

    return EXIT_SUCCESS

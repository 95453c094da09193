"""Scan-level health score (0–100).

Starts at 100 and deducts per vulnerability (by severity) and per outdated
package (more for major-version updates).  The running total may go
negative; only the final value is clamped.  A scan with no packages scores
100 by convention.

The score is descriptive only; exit codes are decided from raw severities
(see :mod:`extenscan.gate`).
"""

from __future__ import annotations

from typing import Iterable

from extenscan.models import OutdatedInfo, Severity, Vulnerability
from extenscan.versions import is_major_update

VULNERABILITY_PENALTY = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
    Severity.UNKNOWN: 5,
}

MAJOR_UPDATE_PENALTY = 5
MINOR_UPDATE_PENALTY = 2


def health_score(
    vulnerabilities: Iterable[Vulnerability],
    outdated: Iterable[OutdatedInfo],
    package_count: int,
) -> int:
    """Aggregate vulnerabilities and outdated records into one 0–100 score."""
    if package_count == 0:
        return 100

    score = 100
    for vuln in vulnerabilities:
        score -= VULNERABILITY_PENALTY[vuln.severity]

    for info in outdated:
        if is_major_update(info.current_version, info.latest_version):
            score -= MAJOR_UPDATE_PENALTY
        else:
            score -= MINOR_UPDATE_PENALTY

    return max(0, min(100, score))


def health_indicator(score: int) -> str:
    """Return a one-word rating for *score*."""
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Fair"
    if score >= 25:
        return "Poor"
    return "Critical"

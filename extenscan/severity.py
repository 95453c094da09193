"""CVSS score → severity tier.

Numeric base scores follow the CVSS v3 qualitative bands.  Vector strings
(``CVSS:3.1/AV:N/...``) are classified by a rough heuristic on the three
impact metrics only; this is an approximation, not the CVSS base-score
formula:

- any of ``/C:H``, ``/I:H``, ``/A:H`` → HIGH
- else any of ``/C:L``, ``/I:L``, ``/A:L`` → MEDIUM
- else → LOW
"""

from __future__ import annotations

from typing import Iterable

from extenscan.models import Severity

_HIGH_IMPACT = ("/C:H", "/I:H", "/A:H")
_LOW_IMPACT = ("/C:L", "/I:L", "/A:L")


def _parse_float(raw: str) -> float | None:
    # float() tolerates surrounding whitespace and "_" separators; reject both.
    if raw != raw.strip() or "_" in raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def classify_cvss(raw_score: str) -> Severity:
    """Map a numeric CVSS score or a CVSS vector string to a :class:`Severity`."""
    score = _parse_float(raw_score)
    if score is not None:
        if score >= 9.0:
            return Severity.CRITICAL
        if score >= 7.0:
            return Severity.HIGH
        if score >= 4.0:
            return Severity.MEDIUM
        if score > 0.0:
            return Severity.LOW
        # zero, negative and NaN
        return Severity.UNKNOWN

    if "CVSS:" in raw_score:
        if any(metric in raw_score for metric in _HIGH_IMPACT):
            return Severity.HIGH
        if any(metric in raw_score for metric in _LOW_IMPACT):
            return Severity.MEDIUM
        return Severity.LOW

    return Severity.UNKNOWN


def classify_scores(raw_scores: Iterable[str]) -> Severity:
    """Return the first non-UNKNOWN classification among *raw_scores*."""
    for raw in raw_scores:
        severity = classify_cvss(raw)
        if severity != Severity.UNKNOWN:
            return severity
    return Severity.UNKNOWN

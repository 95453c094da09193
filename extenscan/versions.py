"""Version comparison and update classification.

``is_newer`` prefers strict semantic-version ordering.  When either side is
not valid semver it falls back to plain inequality, so any textual
difference counts as newer (except when the installed version is
``"unknown"``).  That fallback can report differently-formatted but equal
versions as updates; callers rely on it staying that way.
"""

from __future__ import annotations

import semver


def strip_v(version: str) -> str:
    """Drop a single leading ``v`` / ``V``."""
    if version[:1] in ("v", "V"):
        return version[1:]
    return version


def _parse_semver(version: str) -> semver.Version | None:
    try:
        return semver.Version.parse(strip_v(version))
    except (ValueError, TypeError):
        return None


def is_newer(latest: str, current: str) -> bool:
    """True when *latest* should be reported as an update over *current*."""
    latest_ver = _parse_semver(latest)
    current_ver = _parse_semver(current)
    if latest_ver is not None and current_ver is not None:
        return latest_ver > current_ver

    if current == "unknown":
        return False

    return latest != current


# ---------------------------------------------------------------------------
# Major / minor / patch bucketing
# ---------------------------------------------------------------------------


def _component(version: str, index: int) -> int | None:
    """Return the *index*-th dot-separated component as an unsigned int."""
    parts = strip_v(version).split(".")
    if index >= len(parts):
        return None
    part = parts[index]
    if not part.isascii() or not part.isdigit():
        return None
    return int(part)


def is_major_update(current: str, latest: str) -> bool:
    """True when the leading numeric component of *latest* exceeds *current*'s."""
    current_major = _component(current, 0)
    latest_major = _component(latest, 0)
    if current_major is None or latest_major is None:
        return False
    return latest_major > current_major


def classify_update(current: str, latest: str) -> str:
    """Label an update as ``"MAJOR"``, ``"minor"`` or ``"patch"`` for display.

    ``patch`` is also the bucket for anything that cannot be parsed.
    """
    if is_major_update(current, latest):
        return "MAJOR"

    current_major = _component(current, 0)
    latest_major = _component(latest, 0)
    current_minor = _component(current, 1)
    latest_minor = _component(latest, 1)
    if (
        current_minor is not None
        and latest_minor is not None
        and current_major == latest_major
        and latest_minor > current_minor
    ):
        return "minor"

    return "patch"

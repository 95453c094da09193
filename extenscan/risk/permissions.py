"""Permission catalog — risk tier, description and warning per extension permission.

The catalog ships as ``risk/catalog/permissions.yml`` with one section per
tier::

    critical:
      debugger:
        description: Access browser debugger
        warning: Can read and modify all data on all websites
    high:
      ...

It is loaded once at import time and exposed read-only.  Lookup order is
critical → high → medium → low; anything else is an unknown, low-risk
permission.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

# ---------------------------------------------------------------------------
# Risk level
# ---------------------------------------------------------------------------


class RiskLevel(enum.IntEnum):
    """Permission / issue risk — ordered so higher value == more dangerous."""

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def score(self) -> int:
        return _LEVEL_SCORES[self]

    def __str__(self) -> str:
        return self.name.lower()


_LEVEL_SCORES = {
    RiskLevel.NONE: 0,
    RiskLevel.LOW: 5,
    RiskLevel.MEDIUM: 20,
    RiskLevel.HIGH: 50,
    RiskLevel.CRITICAL: 100,
}


# ---------------------------------------------------------------------------
# Permission risk
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PermissionRisk:
    """Risk assessment for one declared permission."""

    name: str
    level: RiskLevel
    description: str
    warning: str | None = None


# ---------------------------------------------------------------------------
# Catalog loader
# ---------------------------------------------------------------------------

_CATALOG_PATH = Path(__file__).resolve().parent / "catalog" / "permissions.yml"

# Tiers in lookup order.
_TIERS = (
    ("critical", RiskLevel.CRITICAL),
    ("high", RiskLevel.HIGH),
    ("medium", RiskLevel.MEDIUM),
    ("low", RiskLevel.LOW),
)


def _load_catalog(path: Path) -> Mapping[RiskLevel, Mapping[str, tuple[str, str]]]:
    """Read the YAML catalog into ``{level: {name: (description, warning)}}``."""
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    tables: dict[RiskLevel, Mapping[str, tuple[str, str]]] = {}
    for section, level in _TIERS:
        entries = raw.get(section) or {}
        table: dict[str, tuple[str, str]] = {}
        for name, entry in entries.items():
            if not isinstance(entry, dict):
                continue
            table[str(name)] = (
                str(entry.get("description", "")),
                str(entry.get("warning", "")),
            )
        tables[level] = MappingProxyType(table)
    return MappingProxyType(tables)


CATALOG = _load_catalog(_CATALOG_PATH)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def lookup_permission(name: str) -> PermissionRisk:
    """Return the :class:`PermissionRisk` for permission *name*."""
    for _, level in _TIERS:
        entry = CATALOG[level].get(name)
        if entry is not None:
            description, warning = entry
            return PermissionRisk(
                name=name,
                level=level,
                description=description,
                warning=warning,
            )

    # Unrecognised permissions count as low risk.
    return PermissionRisk(
        name=name,
        level=RiskLevel.LOW,
        description=f"Unknown permission: {name}",
        warning=None,
    )


def permissions_at(level: RiskLevel) -> list[str]:
    """Return the catalogued permission names for *level*, in catalog order."""
    table = CATALOG.get(level)
    return list(table) if table else []

"""Scanner registry — built-in scanners plus the ``extenscan.scanners`` entry points."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points

from extenscan.errors import ExtenscanError
from extenscan.models import Source
from extenscan.scanners.base import Scanner
from extenscan.scanners.chromium import ChromiumScanner
from extenscan.scanners.firefox import FirefoxScanner
from extenscan.scanners.homebrew import HomebrewScanner
from extenscan.scanners.npm import NpmScanner
from extenscan.scanners.vscode import VscodeScanner

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "extenscan.scanners"


def builtin_scanners() -> list[Scanner]:
    """Return one instance of every built-in scanner, in display order."""
    return [
        VscodeScanner(),
        ChromiumScanner(Source.CHROME),
        ChromiumScanner(Source.EDGE),
        FirefoxScanner(),
        ChromiumScanner(Source.BRAVE),
        ChromiumScanner(Source.ARC, platforms=("macos",)),
        ChromiumScanner(Source.OPERA),
        ChromiumScanner(Source.VIVALDI),
        ChromiumScanner(Source.CHROMIUM),
        NpmScanner(),
        HomebrewScanner(),
    ]


def _load_entry_point_scanners() -> list[Scanner]:
    """Load scanners registered under the ``extenscan.scanners`` group."""
    scanners: list[Scanner] = []
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            obj = ep.load()
            scanner = obj() if isinstance(obj, type) else obj
        except Exception as exc:  # noqa: BLE001 - third-party code
            logger.warning("Skipping scanner entry point %r: %s", ep.name, exc)
            continue
        if not isinstance(scanner, Scanner):
            logger.warning("Entry point %r is not a Scanner; skipped", ep.name)
            continue
        scanners.append(scanner)
    return scanners


def all_scanners() -> list[Scanner]:
    """Built-ins followed by entry-point scanners."""
    return builtin_scanners() + _load_entry_point_scanners()


def select_scanners(names: list[str] | None = None) -> list[Scanner]:
    """Return the scanners named in *names* (all of them when empty).

    Raises ``ExtenscanError`` for a name no scanner answers to.
    """
    available = all_scanners()
    if not names:
        return available

    by_name = {s.name: s for s in available}
    selected: list[Scanner] = []
    for name in names:
        key = name.strip().lower()
        if key not in by_name:
            known = ", ".join(sorted(by_name))
            raise ExtenscanError(f"Unknown source '{name}'. Available: {known}")
        if by_name[key] not in selected:
            selected.append(by_name[key])
    return selected

"""Homebrew formulae (and casks on macOS) via ``brew info --json=v2``."""

from __future__ import annotations

import json
import logging
import subprocess

from extenscan.models import Package, PackageMetadata, Source
from extenscan.scanners.base import BaseScanner
from extenscan.scanners.paths import current_platform

logger = logging.getLogger(__name__)

BREW_TIMEOUT = 120


def _brew_info(*args: str) -> dict:
    """Run ``brew info --json=v2 <args>``; ``{}`` on any failure."""
    cmd = ["brew", "info", "--json=v2", *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=BREW_TIMEOUT)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("homebrew: cannot run brew: %s", exc)
        return {}
    if result.returncode != 0:
        logger.warning("homebrew: %s exited with %d", " ".join(cmd), result.returncode)
        return {}
    try:
        data = json.loads(result.stdout)
    except ValueError as exc:
        logger.warning("homebrew: cannot parse brew output: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def parse_formulae(info: dict) -> list[Package]:
    packages: list[Package] = []
    for formula in info.get("formulae") or []:
        if not isinstance(formula, dict) or not formula.get("name"):
            continue
        installed = formula.get("installed") or []
        if installed and isinstance(installed[0], dict) and installed[0].get("version"):
            version = installed[0]["version"]
        else:
            version = formula.get("version") or "unknown"

        packages.append(Package(
            id=formula.get("full_name") or formula["name"],
            name=formula["name"],
            version=version,
            source=Source.HOMEBREW,
            metadata=PackageMetadata(
                description=formula.get("desc"),
                homepage=formula.get("homepage"),
                license=formula.get("license"),
            ),
        ))
    return packages


def parse_casks(info: dict) -> list[Package]:
    packages: list[Package] = []
    for cask in info.get("casks") or []:
        if not isinstance(cask, dict) or not cask.get("token"):
            continue
        names = cask.get("name") or []
        packages.append(Package(
            id=cask["token"],
            name=names[0] if names else cask["token"],
            version=cask.get("version") or "unknown",
            source=Source.HOMEBREW,
            metadata=PackageMetadata(
                description=cask.get("desc"),
                homepage=cask.get("homepage"),
            ),
        ))
    return packages


class HomebrewScanner(BaseScanner):
    name = "homebrew"
    source = Source.HOMEBREW
    platforms = ("linux", "macos")

    def scan(self) -> list[Package]:
        packages = parse_formulae(_brew_info("--installed"))
        if current_platform() == "macos":
            packages.extend(parse_casks(_brew_info("--cask", "--installed")))
        logger.info("homebrew: found %d package(s)", len(packages))
        return packages

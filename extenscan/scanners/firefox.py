"""Firefox add-ons from every profile's ``extensions.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from extenscan.models import Package, PackageMetadata, Source
from extenscan.risk.extension import analyze_extension
from extenscan.risk.hosts import split_permissions
from extenscan.scanners.base import BaseScanner
from extenscan.scanners.paths import firefox_profiles_dir

logger = logging.getLogger(__name__)

SYSTEM_ADDON_SUFFIXES = ("@mozilla.org", "@shield.mozilla.org")


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _author_name(value: object) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"]
    return None


def _optional_permissions(value: object) -> tuple[list[str], list[str]]:
    """Return ``(api_permissions, host_patterns)`` from ``optionalPermissions``.

    The value is either a plain list or ``{"permissions": [...], "origins": [...]}``.
    """
    if isinstance(value, dict):
        api, hosts = split_permissions(_str_list(value.get("permissions")))
        return api, _str_list(value.get("origins")) + hosts
    return split_permissions(_str_list(value))


def package_from_addon(addon: dict[str, Any]) -> Package | None:
    """Convert one ``extensions.json`` addon entry; *None* for system add-ons."""
    addon_id = addon.get("id")
    if not isinstance(addon_id, str) or not addon_id:
        return None
    if addon_id.endswith(SYSTEM_ADDON_SUFFIXES):
        return None

    name = addon.get("name")
    version = addon.get("version")
    description = addon.get("description")
    homepage = addon.get("homepageURL")

    user_perms = addon.get("userPermissions")
    if not isinstance(user_perms, dict):
        user_perms = {}

    all_permissions = _str_list(addon.get("permissions"))
    all_permissions += _str_list(user_perms.get("permissions"))
    api, hosts = split_permissions(all_permissions)
    optional_api, optional_hosts = _optional_permissions(addon.get("optionalPermissions"))
    host_permissions = _str_list(user_perms.get("origins")) + hosts + optional_hosts

    risk = analyze_extension(api, optional_api, host_permissions, None)

    return Package(
        id=addon_id,
        name=name if isinstance(name, str) and name else addon_id,
        version=version if isinstance(version, str) and version else "unknown",
        source=Source.FIREFOX,
        install_path=addon.get("path") if isinstance(addon.get("path"), str) else None,
        metadata=PackageMetadata(
            description=description if isinstance(description, str) else None,
            publisher=_author_name(addon.get("creator") or addon.get("author")),
            homepage=homepage if isinstance(homepage, str) else None,
        ),
        extension_risk=risk,
    )


def scan_profile(profile: Path) -> list[Package]:
    """Return add-ons installed in one Firefox profile."""
    packages: list[Package] = []
    seen: set[str] = set()

    extensions_json = profile / "extensions.json"
    if extensions_json.is_file():
        try:
            data = json.loads(extensions_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Cannot parse %s: %s", extensions_json, exc)
            data = {}
        addons = data.get("addons", []) if isinstance(data, dict) else []
        for addon in addons:
            if not isinstance(addon, dict):
                continue
            pkg = package_from_addon(addon)
            if pkg is not None and pkg.id not in seen:
                seen.add(pkg.id)
                packages.append(pkg)

    # Loose XPI files are named ``<addon id>.xpi``.
    xpi_dir = profile / "extensions"
    if xpi_dir.is_dir():
        for xpi in sorted(xpi_dir.glob("*.xpi")):
            addon_id = xpi.stem
            if addon_id in seen:
                continue
            seen.add(addon_id)
            packages.append(Package(
                id=addon_id,
                name=addon_id,
                version="unknown",
                source=Source.FIREFOX,
                install_path=str(xpi),
            ))

    return packages


class FirefoxScanner(BaseScanner):
    name = "firefox"
    source = Source.FIREFOX

    def __init__(self, profiles_dir: Path | None = None) -> None:
        self.profiles_dir = profiles_dir

    def scan(self) -> list[Package]:
        root = self.profiles_dir or firefox_profiles_dir()
        if root is None or not root.is_dir():
            logger.debug("Firefox: no profiles directory found")
            return []

        packages: list[Package] = []
        seen: set[str] = set()
        for profile in sorted(p for p in root.iterdir() if p.is_dir()):
            for pkg in scan_profile(profile):
                if pkg.id not in seen:
                    seen.add(pkg.id)
                    packages.append(pkg)

        logger.info("Firefox: found %d add-on(s)", len(packages))
        return packages

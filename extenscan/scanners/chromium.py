"""Chromium-family browsers — Chrome, Edge, Brave, Chromium, Opera, Vivaldi, Arc.

Layout::

    <user data>/<profile>/Extensions/<extension id>/<version>/manifest.json

Profiles are ``Default`` plus ``Profile *``; browsers without profile
directories (Opera) keep ``Extensions`` directly under the user-data root.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from extenscan.models import Package, PackageMetadata, Source
from extenscan.risk.extension import ExtensionRiskReport, analyze_extension
from extenscan.risk.hosts import split_permissions
from extenscan.scanners.base import BaseScanner
from extenscan.scanners.paths import chromium_user_data_dir

logger = logging.getLogger(__name__)

MSG_PREFIX = "__MSG_"
FALLBACK_LOCALES = ("en", "en_US", "en_GB")
DEFAULT_VERSION = "0.0.0"


# ---------------------------------------------------------------------------
# Manifest helpers (also used by ``extenscan analyze``)
# ---------------------------------------------------------------------------


def read_manifest(path: Path) -> dict[str, Any]:
    """Load ``manifest.json`` from *path* (a file or an unpacked extension dir).

    Raises ``OSError`` or ``ValueError`` when the file is missing or is not
    a JSON object.
    """
    if path.is_dir():
        path = path / "manifest.json"
    data = json.loads(path.read_text(encoding="utf-8-sig"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} is not a JSON object")
    return data


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def manifest_csp(manifest: dict[str, Any]) -> str | None:
    """Return the extension-page CSP (MV2 string or MV3 ``extension_pages``)."""
    csp = manifest.get("content_security_policy")
    if isinstance(csp, str):
        return csp
    if isinstance(csp, dict):
        pages = csp.get("extension_pages")
        if isinstance(pages, str):
            return pages
    return None


def analyze_manifest(manifest: dict[str, Any]) -> ExtensionRiskReport:
    """Run the extension risk analyzer over a parsed Chromium manifest."""
    api, hosts = split_permissions(_str_list(manifest.get("permissions")))
    optional_api, optional_hosts = split_permissions(
        _str_list(manifest.get("optional_permissions"))
    )
    hosts += _str_list(manifest.get("host_permissions"))
    hosts += optional_hosts
    hosts += _str_list(manifest.get("optional_host_permissions"))
    return analyze_extension(api, optional_api, hosts, manifest_csp(manifest))


def localized_message(version_dir: Path, value: str) -> str | None:
    """Resolve ``__MSG_key__`` against the extension's English locales."""
    key = value[len(MSG_PREFIX):]
    if key.endswith("__"):
        key = key[:-2]

    for locale in FALLBACK_LOCALES:
        messages_path = version_dir / "_locales" / locale / "messages.json"
        try:
            messages = json.loads(messages_path.read_text(encoding="utf-8-sig"))
        except (OSError, ValueError):
            continue
        if not isinstance(messages, dict):
            continue
        entry = messages.get(key) or messages.get(key.lower())
        if isinstance(entry, dict) and isinstance(entry.get("message"), str):
            return entry["message"]
    return None


def package_from_manifest(
    extension_id: str,
    version_dir: Path,
    manifest: dict[str, Any],
    source: Source,
) -> Package:
    """Build a :class:`Package` (with risk report) from one unpacked extension."""
    name = manifest.get("name")
    if not isinstance(name, str) or not name:
        name = extension_id
    elif name.startswith(MSG_PREFIX):
        name = localized_message(version_dir, name) or extension_id

    version = manifest.get("version")
    if not isinstance(version, str) or not version:
        version = DEFAULT_VERSION

    description = manifest.get("description")
    if not isinstance(description, str) or description.startswith(MSG_PREFIX):
        description = None

    author = manifest.get("author")
    if isinstance(author, dict):
        author = author.get("email") or author.get("name")

    homepage = manifest.get("homepage_url")

    return Package(
        id=extension_id,
        name=name,
        version=version,
        source=source,
        install_path=str(version_dir),
        metadata=PackageMetadata(
            description=description,
            publisher=author if isinstance(author, str) else None,
            homepage=homepage if isinstance(homepage, str) else None,
        ),
        extension_risk=analyze_manifest(manifest),
    )


# ---------------------------------------------------------------------------
# Directory walking
# ---------------------------------------------------------------------------


def find_profiles(user_data: Path) -> list[Path]:
    """Return profile directories under *user_data* (``Default`` first)."""
    profiles: list[Path] = []
    default = user_data / "Default"
    if default.is_dir():
        profiles.append(default)
    profiles.extend(p for p in sorted(user_data.glob("Profile *")) if p.is_dir())
    if not profiles and (user_data / "Extensions").is_dir():
        profiles.append(user_data)
    return profiles


def scan_extensions_dir(extensions_dir: Path, source: Source) -> list[Package]:
    """Read every extension under one profile's ``Extensions`` directory."""
    packages: list[Package] = []
    try:
        ext_dirs = sorted(p for p in extensions_dir.iterdir() if p.is_dir())
    except OSError as exc:
        logger.warning("Cannot read %s: %s", extensions_dir, exc)
        return packages

    for ext_dir in ext_dirs:
        try:
            version_dirs = [p for p in ext_dir.iterdir() if p.is_dir()]
        except OSError:
            continue
        if not version_dirs:
            continue
        # Latest version wins (greatest directory name).
        version_dir = max(version_dirs, key=lambda p: p.name)

        manifest_path = version_dir / "manifest.json"
        if not manifest_path.is_file():
            continue
        try:
            manifest = read_manifest(manifest_path)
        except (OSError, ValueError) as exc:
            logger.debug("Skipping unreadable manifest %s: %s", manifest_path, exc)
            continue

        packages.append(package_from_manifest(ext_dir.name, version_dir, manifest, source))

    return packages


class ChromiumScanner(BaseScanner):
    """Scanner for one Chromium-based browser.

    *user_data_dir* overrides the platform default location.
    """

    def __init__(
        self,
        source: Source,
        platforms: tuple[str, ...] = ("linux", "macos", "windows"),
        user_data_dir: Path | None = None,
    ) -> None:
        self.source = source
        self.name = source.value
        self.platforms = platforms
        self.user_data_dir = user_data_dir

    def scan(self) -> list[Package]:
        user_data = self.user_data_dir or chromium_user_data_dir(self.source)
        if user_data is None or not user_data.is_dir():
            logger.debug("%s: no user data directory found", self.source.display_name)
            return []

        packages: list[Package] = []
        seen: set[str] = set()
        for profile in find_profiles(user_data):
            extensions_dir = profile / "Extensions"
            if not extensions_dir.is_dir():
                continue
            for pkg in scan_extensions_dir(extensions_dir, self.source):
                if pkg.id not in seen:
                    seen.add(pkg.id)
                    packages.append(pkg)

        logger.info("%s: found %d extension(s)", self.source.display_name, len(packages))
        return packages

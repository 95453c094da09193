"""VSCode extensions from ``~/.vscode/extensions/*/package.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from extenscan.models import Package, PackageMetadata, Source
from extenscan.scanners.base import BaseScanner
from extenscan.scanners.paths import vscode_extensions_dir

logger = logging.getLogger(__name__)


def _opt_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _repository_url(value: object) -> str | None:
    if isinstance(value, dict):
        return _opt_str(value.get("url"))
    return _opt_str(value)


def package_from_dir(ext_dir: Path) -> Package | None:
    """Read one extension directory; *None* when it has no usable package.json."""
    package_json = ext_dir / "package.json"
    try:
        data = json.loads(package_json.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    pkg_name = _opt_str(data.get("name"))
    publisher = _opt_str(data.get("publisher"))

    if publisher and pkg_name:
        ext_id = f"{publisher}.{pkg_name}"
    else:
        ext_id = ext_dir.name

    return Package(
        id=ext_id,
        name=_opt_str(data.get("displayName")) or pkg_name or "Unknown",
        version=_opt_str(data.get("version")) or "0.0.0",
        source=Source.VSCODE,
        install_path=str(ext_dir),
        metadata=PackageMetadata(
            description=_opt_str(data.get("description")),
            publisher=publisher,
            homepage=_opt_str(data.get("homepage")),
            repository=_repository_url(data.get("repository")),
            license=_opt_str(data.get("license")),
        ),
    )


class VscodeScanner(BaseScanner):
    name = "vscode"
    source = Source.VSCODE

    def __init__(self, extensions_dir: Path | None = None) -> None:
        self.extensions_dir = extensions_dir

    def scan(self) -> list[Package]:
        root = self.extensions_dir or vscode_extensions_dir()
        if not root.is_dir():
            return []

        packages = []
        for ext_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            pkg = package_from_dir(ext_dir)
            if pkg is None:
                logger.debug("Skipping %s: no readable package.json", ext_dir)
                continue
            packages.append(pkg)

        logger.info("VSCode: found %d extension(s)", len(packages))
        return packages

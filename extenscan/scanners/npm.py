"""Globally installed npm packages (``npm list -g --json --depth=0``)."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from extenscan.models import Package, PackageMetadata, Source
from extenscan.scanners.base import BaseScanner
from extenscan.scanners.paths import current_platform

logger = logging.getLogger(__name__)

NPM_TIMEOUT = 60


def npm_command() -> str:
    return "npm.cmd" if current_platform() == "windows" else "npm"


def _run(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True, text=True, timeout=NPM_TIMEOUT)


def npm_prefix(npm: str) -> Path | None:
    """Return the global install prefix (``npm config get prefix``)."""
    try:
        result = _run([npm, "config", "get", "prefix"])
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0 or not result.stdout.strip():
        return None
    return Path(result.stdout.strip())


def _author(value: object) -> str | None:
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        name, email = value.get("name"), value.get("email")
        if name and email:
            return f"{name} <{email}>"
        return name or email or None
    return None


def _repository(value: object) -> str | None:
    if isinstance(value, dict):
        url = value.get("url")
        return url if isinstance(url, str) else None
    return value if isinstance(value, str) else None


def _read_package_json(module_dir: Path) -> dict[str, Any]:
    try:
        data = json.loads((module_dir / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def parse_npm_list(output: str, prefix: Path | None = None) -> list[Package]:
    """Turn ``npm list -g --json`` output into packages.

    Raises ``ValueError`` when *output* is not JSON.
    """
    data = json.loads(output)
    deps = data.get("dependencies") if isinstance(data, dict) else None
    if not isinstance(deps, dict):
        return []

    packages: list[Package] = []
    for name in sorted(deps):
        if name == "npm":
            continue
        info = deps[name] if isinstance(deps[name], dict) else {}
        version = info.get("version") or "unknown"

        module_dir = prefix / "lib" / "node_modules" / name if prefix else None
        meta = _read_package_json(module_dir) if module_dir else {}

        packages.append(Package(
            id=name,
            name=name,
            version=version,
            source=Source.NPM,
            install_path=str(module_dir) if module_dir else None,
            metadata=PackageMetadata(
                description=meta.get("description"),
                publisher=_author(meta.get("author")),
                homepage=meta.get("homepage") or f"https://www.npmjs.com/package/{name}",
                repository=_repository(meta.get("repository")) or info.get("resolved"),
                license=meta.get("license") if isinstance(meta.get("license"), str) else None,
            ),
        ))
    return packages


class NpmScanner(BaseScanner):
    name = "npm"
    source = Source.NPM

    def scan(self) -> list[Package]:
        npm = npm_command()
        try:
            result = _run([npm, "list", "-g", "--json", "--depth=0"])
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("npm: cannot run %s: %s", npm, exc)
            return []

        # npm exits non-zero on peer-dependency problems but still prints the tree.
        if result.returncode != 0 and not result.stdout.strip():
            logger.warning("npm: list failed with exit code %d", result.returncode)
            return []

        try:
            packages = parse_npm_list(result.stdout, npm_prefix(npm))
        except ValueError as exc:
            logger.warning("npm: cannot parse list output: %s", exc)
            return []

        logger.info("npm: found %d global package(s)", len(packages))
        return packages

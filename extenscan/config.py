"""Configuration loader for extenscan.

Configuration is resolved in priority order: **project > user > defaults**.

1. **Project-level** — ``.extenscan.yml`` in (or above) the working
   directory, up to the enclosing git root.
2. **User-level** — ``~/.extenscan/config.yml``.
3. **Built-in defaults** — hardcoded fallbacks.

Both files share the same format::

    scan:
      format: text            # text | json | sarif | cyclonedx
      fail_on: high           # critical | high | medium | low (unset = never fail)
      skip_vuln_check: false
      check_outdated: true
      sources: [chrome, npm]  # empty = every built-in source
      parallel: true
      timeout: 10             # seconds, per HTTP request

    ignore:
      packages: ["@types/*", "lodash"]
      vulnerabilities: ["GHSA-xxxx-xxxx-xxxx"]
      outdated: ["typescript"]

Project-level values override user-level values key by key.  CLI flags
override both.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".extenscan.yml"
USER_CONFIG_DIR = Path.home() / ".extenscan"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yml"

FORMATS = ("text", "json", "sarif", "cyclonedx")

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ScanConfig:
    """Scan sub-configuration."""

    format: str = "text"
    fail_on: str | None = None
    skip_vuln_check: bool = False
    check_outdated: bool = True
    sources: list[str] = field(default_factory=list)
    parallel: bool = True
    timeout: float = 10.0


@dataclass
class IgnoreConfig:
    """Suppressions for accepted risks and known false positives.

    ``packages`` and ``outdated`` entries are glob patterns; vulnerability
    ids must match exactly.
    """

    packages: list[str] = field(default_factory=list)
    vulnerabilities: list[str] = field(default_factory=list)
    outdated: list[str] = field(default_factory=list)

    def should_ignore_package(self, package_id: str) -> bool:
        return _matches_any(package_id, self.packages)

    def should_ignore_vulnerability(self, vuln_id: str) -> bool:
        return vuln_id in self.vulnerabilities

    def should_ignore_outdated(self, package_id: str) -> bool:
        return _matches_any(package_id, self.outdated)


@dataclass
class ExtenscanConfig:
    """Top-level configuration container."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)

    # Where the effective config was loaded from (None = defaults only).
    project_config_path: str | None = None
    user_config_path: str | None = None

    def to_dict(self) -> dict:
        return {"scan": asdict(self.scan), "ignore": asdict(self.ignore)}


def _matches_any(value: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatchcase(value, p) for p in patterns)


# ---------------------------------------------------------------------------
# Public loaders
# ---------------------------------------------------------------------------


def load_config(
    start_dir: str | None = None,
    config_path: str | Path | None = None,
) -> ExtenscanConfig:
    """Load merged configuration (project > user > defaults).

    Parameters
    ----------
    start_dir:
        Directory to search for ``.extenscan.yml``.  When *None*, only
        the user-level file (and defaults) are considered.
    config_path:
        Explicit config file path.  When given, *only* this file is
        loaded (no project/user search).
    """
    if config_path is not None:
        raw = _load_yaml(Path(config_path))
        cfg = _raw_to_config(raw)
        cfg.project_config_path = str(config_path) if raw else None
        return cfg

    user_raw = _load_yaml(USER_CONFIG_PATH)
    user_source = str(USER_CONFIG_PATH) if user_raw else None

    project_raw: dict | None = None
    project_source: str | None = None
    if start_dir is not None:
        project_path = _find_project_config(start_dir)
        if project_path is not None:
            project_raw = _load_yaml(project_path)
            project_source = str(project_path) if project_raw else None

    cfg = _raw_to_config(_merge_raw(project_raw, user_raw))
    cfg.project_config_path = project_source
    cfg.user_config_path = user_source
    return cfg


def default_config_text() -> str:
    """Return the default configuration as a YAML document."""
    return yaml.safe_dump(ExtenscanConfig().to_dict(), sort_keys=False)


def write_default_config(path: Path | None = None) -> bool:
    """Write the default configuration to *path* (the user config by default).

    Returns *False* (and leaves the file alone) when *path* already exists.
    """
    path = (path or USER_CONFIG_PATH).expanduser()
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_config_text(), encoding="utf-8")
    return True


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _find_project_config(start_dir: str) -> Path | None:
    """Search for ``.extenscan.yml`` in *start_dir* and its ancestors."""
    p = Path(start_dir)
    candidates = [p / CONFIG_FILENAME]
    if not (p / ".git").exists():
        for parent in p.parents:
            candidates.append(parent / CONFIG_FILENAME)
            if (parent / ".git").exists():
                break
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> dict | None:
    """Load a YAML mapping, returning *None* on missing/invalid files."""
    path = path.expanduser()
    if not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return None
    return raw if isinstance(raw, dict) else None


def _merge_raw(project: dict | None, user: dict | None) -> dict:
    """Merge project and user raw dicts section by section (project wins)."""
    merged: dict = {}
    for layer in (user, project):
        if not layer:
            continue
        for key in ("scan", "ignore"):
            section = layer.get(key)
            if isinstance(section, dict):
                merged.setdefault(key, {}).update(section)
    return merged


def _raw_to_config(raw: dict | None) -> ExtenscanConfig:
    """Convert a raw YAML dict to an ``ExtenscanConfig``."""
    if not raw:
        return ExtenscanConfig()

    scan_raw = raw.get("scan", {})
    if not isinstance(scan_raw, dict):
        scan_raw = {}

    ignore_raw = raw.get("ignore", {})
    if not isinstance(ignore_raw, dict):
        ignore_raw = {}

    defaults = ScanConfig()

    fmt = str(scan_raw.get("format", defaults.format)).lower()
    if fmt not in FORMATS:
        logger.warning("Unknown output format %r in config; using %r", fmt, defaults.format)
        fmt = defaults.format

    fail_on = scan_raw.get("fail_on")
    fail_on = str(fail_on).lower() if fail_on else None

    scan_cfg = ScanConfig(
        format=fmt,
        fail_on=fail_on,
        skip_vuln_check=bool(scan_raw.get("skip_vuln_check", defaults.skip_vuln_check)),
        check_outdated=bool(scan_raw.get("check_outdated", defaults.check_outdated)),
        sources=[s.lower() for s in _as_list(scan_raw.get("sources", []))],
        parallel=bool(scan_raw.get("parallel", defaults.parallel)),
        timeout=_as_float(scan_raw.get("timeout"), defaults.timeout),
    )

    ignore_cfg = IgnoreConfig(
        packages=_as_list(ignore_raw.get("packages", [])),
        vulnerabilities=_as_list(ignore_raw.get("vulnerabilities", [])),
        outdated=_as_list(ignore_raw.get("outdated", [])),
    )

    return ExtenscanConfig(scan=scan_cfg, ignore=ignore_cfg)


def _as_list(val: object) -> list[str]:
    """Coerce a value to a list of strings."""
    if isinstance(val, list):
        return [str(v) for v in val]
    if isinstance(val, str):
        return [val]
    return []


def _as_float(val: object, default: float) -> float:
    if val is None:
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default

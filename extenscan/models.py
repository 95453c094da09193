"""Data models used throughout extenscan."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from extenscan.risk.extension import ExtensionRiskReport

# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------


class Severity(enum.IntEnum):
    """Vulnerability severity — ordered so higher value == more severe.

    ``UNKNOWN`` sorts last in reports (after ``LOW``).
    """

    UNKNOWN = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def from_str(cls, label: str) -> Severity:
        return cls[label.upper()]

    def __str__(self) -> str:
        return self.name.lower()


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


class Source(str, enum.Enum):
    """Where a package was found."""

    VSCODE = "vscode"
    CHROME = "chrome"
    EDGE = "edge"
    FIREFOX = "firefox"
    BRAVE = "brave"
    ARC = "arc"
    OPERA = "opera"
    VIVALDI = "vivaldi"
    CHROMIUM = "chromium"
    NPM = "npm"
    HOMEBREW = "homebrew"

    @classmethod
    def from_str(cls, label: str) -> Source:
        return cls(label.strip().lower())

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_extension(self) -> bool:
        """True for browser and editor extensions (as opposed to packages)."""
        return self not in (Source.NPM, Source.HOMEBREW)

    def __str__(self) -> str:
        return self.value


_DISPLAY_NAMES = {
    Source.VSCODE: "VSCode",
    Source.CHROME: "Chrome",
    Source.EDGE: "Edge",
    Source.FIREFOX: "Firefox",
    Source.BRAVE: "Brave",
    Source.ARC: "Arc",
    Source.OPERA: "Opera",
    Source.VIVALDI: "Vivaldi",
    Source.CHROMIUM: "Chromium",
    Source.NPM: "NPM",
    Source.HOMEBREW: "Homebrew",
}


# ---------------------------------------------------------------------------
# Package
# ---------------------------------------------------------------------------


@dataclass
class PackageMetadata:
    """Optional descriptive fields; availability depends on the source."""

    description: str | None = None
    publisher: str | None = None
    homepage: str | None = None
    repository: str | None = None
    license: str | None = None


@dataclass
class Package:
    """One installed package or extension."""

    id: str
    name: str
    version: str
    source: Source
    install_path: str | None = None
    metadata: PackageMetadata = field(default_factory=PackageMetadata)
    extension_risk: ExtensionRiskReport | None = None

    def sort_key(self) -> tuple:
        """Deterministic sort: source, then name (case-insensitive), then id."""
        return (self.source.value, self.name.lower(), self.id)


# ---------------------------------------------------------------------------
# Vulnerability / outdated
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Vulnerability:
    """A known advisory affecting an installed package."""

    id: str
    package_id: str
    severity: Severity
    title: str
    description: str | None = None
    fixed_version: str | None = None
    reference_url: str | None = None

    def sort_key(self) -> tuple:
        """Deterministic sort: severity desc, package asc, id asc."""
        return (-self.severity.value, self.package_id, self.id)


@dataclass(frozen=True)
class OutdatedInfo:
    """An installed package with a newer release available."""

    package_id: str
    current_version: str
    latest_version: str


# ---------------------------------------------------------------------------
# Scan result (aggregate)
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScanResult:
    """Complete output of one extenscan run."""

    packages: list[Package] = field(default_factory=list)
    vulnerabilities: list[Vulnerability] = field(default_factory=list)
    outdated: list[OutdatedInfo] = field(default_factory=list)
    scan_time: datetime = field(default_factory=_utcnow)

    # ---- helpers ----
    @property
    def sorted_vulnerabilities(self) -> list[Vulnerability]:
        return sorted(self.vulnerabilities, key=lambda v: v.sort_key())

    @property
    def health_score(self) -> int:
        from extenscan.health import health_score

        return health_score(self.vulnerabilities, self.outdated, len(self.packages))

    def count(self, severity: Severity) -> int:
        return sum(1 for v in self.vulnerabilities if v.severity == severity)

    def find_package(self, package_id: str) -> Package | None:
        for pkg in self.packages:
            if pkg.id == package_id:
                return pkg
        return None

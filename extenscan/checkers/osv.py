"""Known-vulnerability lookups against the OSV.dev batch API."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import requests

from extenscan import __version__
from extenscan.models import Package, Source, Vulnerability
from extenscan.severity import classify_scores

logger = logging.getLogger(__name__)

OSV_BATCH_URL = "https://api.osv.dev/v1/querybatch"
BATCH_SIZE = 100
DEFAULT_TIMEOUT = 10.0

ECOSYSTEMS = {
    Source.NPM: "npm",
    Source.HOMEBREW: "Homebrew",
}


def _chunks(items: list, size: int) -> Iterable[list]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# ---------------------------------------------------------------------------
# Advisory → Vulnerability mapping
# ---------------------------------------------------------------------------


def _fixed_version(advisory: dict[str, Any]) -> str | None:
    for affected in advisory.get("affected") or []:
        for rng in affected.get("ranges") or []:
            for event in rng.get("events") or []:
                if event.get("fixed"):
                    return event["fixed"]
    return None


def _reference_url(advisory: dict[str, Any]) -> str | None:
    for ref in advisory.get("references") or []:
        if ref.get("url"):
            return ref["url"]
    return None


def to_vulnerability(advisory: dict[str, Any], package_id: str) -> Vulnerability:
    """Map one OSV advisory onto a :class:`Vulnerability` for *package_id*."""
    scores = [s["score"] for s in advisory.get("severity") or [] if s.get("score")]
    return Vulnerability(
        id=advisory["id"],
        package_id=package_id,
        severity=classify_scores(scores),
        title=advisory.get("summary") or "Unknown vulnerability",
        description=advisory.get("details"),
        fixed_version=_fixed_version(advisory),
        reference_url=_reference_url(advisory),
    )


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------


class OsvChecker:
    """Batch-queries OSV for packages whose source maps to an OSV ecosystem."""

    name = "OSV.dev"

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": f"extenscan/{__version__}"})
        self.timeout = timeout

    def _query(self, batch: list[Package]) -> list[dict[str, Any]]:
        queries = [
            {
                "package": {"name": pkg.id, "ecosystem": ECOSYSTEMS[pkg.source]},
                "version": pkg.version,
            }
            for pkg in batch
        ]
        response = self.session.post(
            OSV_BATCH_URL, json={"queries": queries}, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json().get("results") or []

    def check(self, packages: list[Package]) -> list[Vulnerability]:
        """Return every advisory affecting *packages*.

        A batch that fails (network, HTTP status or decode error) is logged
        and contributes nothing.
        """
        checkable = [p for p in packages if p.source in ECOSYSTEMS]
        vulnerabilities: list[Vulnerability] = []

        for batch in _chunks(checkable, BATCH_SIZE):
            try:
                results = self._query(batch)
            except (requests.RequestException, ValueError) as exc:
                logger.warning("OSV batch of %d package(s) failed: %s", len(batch), exc)
                continue

            for pkg, result in zip(batch, results):
                for advisory in (result or {}).get("vulns") or []:
                    if not advisory.get("id"):
                        continue
                    vulnerabilities.append(to_vulnerability(advisory, pkg.id))

        logger.info("OSV: %d vulnerability record(s) for %d package(s)",
                    len(vulnerabilities), len(checkable))
        return vulnerabilities

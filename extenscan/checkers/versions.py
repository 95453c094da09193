"""Latest-release lookups (npm registry, formulae.brew.sh)."""

from __future__ import annotations

import logging
from urllib.parse import quote

import requests

from extenscan import __version__
from extenscan.models import OutdatedInfo, Package, Source
from extenscan.versions import is_newer

logger = logging.getLogger(__name__)

NPM_REGISTRY_URL = "https://registry.npmjs.org/{name}"
BREW_FORMULA_URL = "https://formulae.brew.sh/api/formula/{name}.json"
DEFAULT_TIMEOUT = 10.0


class VersionChecker:
    """Reports packages whose registry carries a newer release."""

    name = "registry"

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": f"extenscan/{__version__}"})
        self.timeout = timeout

    def _get_json(self, url: str) -> dict | None:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.debug("Version lookup %s failed: %s", url, exc)
            return None
        return data if isinstance(data, dict) else None

    def latest_version(self, package: Package) -> str | None:
        """Return the registry's latest version, or *None* for "no data"."""
        if package.source == Source.NPM:
            # Scoped names keep their "@" but escape the "/".
            data = self._get_json(NPM_REGISTRY_URL.format(name=quote(package.id, safe="@")))
            tags = (data or {}).get("dist-tags") or {}
            latest = tags.get("latest")
        elif package.source == Source.HOMEBREW:
            data = self._get_json(BREW_FORMULA_URL.format(name=quote(package.name, safe="@")))
            versions = (data or {}).get("versions") or {}
            latest = versions.get("stable")
        else:
            return None
        return latest if isinstance(latest, str) and latest else None

    def check(self, packages: list[Package]) -> list[OutdatedInfo]:
        outdated: list[OutdatedInfo] = []
        for pkg in packages:
            latest = self.latest_version(pkg)
            if latest is None:
                continue
            if is_newer(latest, pkg.version):
                outdated.append(OutdatedInfo(
                    package_id=pkg.id,
                    current_version=pkg.version,
                    latest_version=latest,
                ))
        return outdated

"""Host permission scope — classify URL match patterns and extract domains."""

from __future__ import annotations

import enum

# Patterns that grant access to every origin.
ALL_URLS_PATTERNS = frozenset({"<all_urls>", "*://*/*", "http://*/*", "https://*/*"})

_SCOPE_SCHEMES = ("*://", "http://", "https://")
_DOMAIN_SCHEMES = ("*://", "http://", "https://", "file://")


class HostPermissionScope(enum.IntEnum):
    """How much of the web an extension's host patterns reach."""

    NONE = 0
    SPECIFIC = 1
    BROAD = 2
    ALL_URLS = 3

    def score(self) -> int:
        return _SCOPE_SCORES[self]

    def __str__(self) -> str:
        return self.name.lower()


_SCOPE_SCORES = {
    HostPermissionScope.NONE: 0,
    HostPermissionScope.SPECIFIC: 5,
    HostPermissionScope.BROAD: 30,
    HostPermissionScope.ALL_URLS: 80,
}


def _strip_prefixes(value: str, prefixes: tuple[str, ...]) -> str:
    """Strip each prefix in turn, repeating while it still matches."""
    for prefix in prefixes:
        while value.startswith(prefix):
            value = value[len(prefix):]
    return value


def extract_domain(pattern: str) -> str | None:
    """Return the host part of a match pattern.

    ``<all_urls>`` and a bare ``*`` host name no domain and yield *None*.
    """
    if pattern == "<all_urls>":
        return None
    rest = _strip_prefixes(pattern, _DOMAIN_SCHEMES)
    domain = rest.split("/", 1)[0]
    if domain == "*":
        return None
    return domain


def analyze_host_permissions(
    hosts: list[str],
) -> tuple[HostPermissionScope, list[str]]:
    """Classify *hosts* into a scope and collect distinct domains (first-seen order)."""
    if not hosts:
        return HostPermissionScope.NONE, []

    scope = HostPermissionScope.SPECIFIC
    domains: list[str] = []

    for raw in hosts:
        host = raw.strip()

        if host in ALL_URLS_PATTERNS:
            scope = HostPermissionScope.ALL_URLS
        else:
            domain_part = _strip_prefixes(host, _SCOPE_SCHEMES).split("/", 1)[0]
            if domain_part.startswith("*.") or domain_part == "*":
                scope = max(scope, HostPermissionScope.BROAD)

        domain = extract_domain(host)
        if domain is not None and domain not in domains:
            domains.append(domain)

    return scope, domains


def is_host_pattern(permission: str) -> bool:
    """True when *permission* is a URL match pattern rather than an API name."""
    return "://" in permission or permission.startswith("<")


def split_permissions(permissions: list[str]) -> tuple[list[str], list[str]]:
    """Partition a mixed permission list into ``(api_permissions, host_patterns)``."""
    api: list[str] = []
    hosts: list[str] = []
    for perm in permissions:
        (hosts if is_host_pattern(perm) else api).append(perm)
    return api, hosts

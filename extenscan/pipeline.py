"""Scan orchestration — inventory, filters, lookups, result."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from extenscan.checkers.osv import OsvChecker
from extenscan.checkers.versions import VersionChecker
from extenscan.config import IgnoreConfig, ScanConfig
from extenscan.models import Package, ScanResult
from extenscan.scanners.base import Scanner

logger = logging.getLogger(__name__)

MAX_WORKERS = 8


def _scan_one(scanner: Scanner) -> list[Package]:
    try:
        return list(scanner.scan())
    except Exception as exc:  # noqa: BLE001 - one source must not abort the scan
        logger.warning("Source %s failed: %s", scanner.name, exc)
        return []


def collect_packages(scanners: list[Scanner], parallel: bool = True) -> list[Package]:
    """Run every supported scanner and concatenate their packages.

    Output order follows *scanners* regardless of completion order.
    """
    supported = []
    for scanner in scanners:
        if scanner.is_supported():
            supported.append(scanner)
        else:
            logger.info("Skipping %s: not supported on this platform", scanner.name)

    if not parallel or len(supported) <= 1:
        results = [_scan_one(s) for s in supported]
    else:
        results = [[] for _ in supported]
        workers = min(MAX_WORKERS, len(supported))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="extenscan") as pool:
            futures = {pool.submit(_scan_one, s): i for i, s in enumerate(supported)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()

    packages: list[Package] = []
    for found in results:
        packages.extend(found)
    return packages


def run_scan(
    scanners: list[Scanner],
    scan_cfg: ScanConfig | None = None,
    ignore: IgnoreConfig | None = None,
    osv_checker: OsvChecker | None = None,
    version_checker: VersionChecker | None = None,
) -> ScanResult:
    """Inventory *scanners* and look up vulnerabilities and newer releases."""
    scan_cfg = scan_cfg or ScanConfig()
    ignore = ignore or IgnoreConfig()

    packages = [
        p for p in collect_packages(scanners, parallel=scan_cfg.parallel)
        if not ignore.should_ignore_package(p.id)
    ]
    logger.info("Collected %d package(s)", len(packages))
    return _lookup(packages, scan_cfg, ignore, osv_checker, version_checker)


def _lookup(
    packages: list[Package],
    scan_cfg: ScanConfig,
    ignore: IgnoreConfig,
    osv_checker: OsvChecker | None,
    version_checker: VersionChecker | None,
) -> ScanResult:
    vulnerabilities = []
    if not scan_cfg.skip_vuln_check:
        osv = osv_checker or OsvChecker(timeout=scan_cfg.timeout)
        vulnerabilities = [
            v for v in osv.check(packages)
            if not ignore.should_ignore_vulnerability(v.id)
        ]

    outdated = []
    if scan_cfg.check_outdated:
        registry = version_checker or VersionChecker(timeout=scan_cfg.timeout)
        outdated = registry.check(
            [p for p in packages if not ignore.should_ignore_outdated(p.id)]
        )

    return ScanResult(packages=packages, vulnerabilities=vulnerabilities, outdated=outdated)


def search_packages(
    scanners: list[Scanner],
    query: str,
    scan_cfg: ScanConfig | None = None,
    osv_checker: OsvChecker | None = None,
    version_checker: VersionChecker | None = None,
) -> ScanResult:
    """Like :func:`run_scan`, restricted to packages whose id or name contains *query*.

    Matching is case-insensitive.  Ignore rules do not apply: a package the
    user asks for by name is always reported.
    """
    scan_cfg = scan_cfg or ScanConfig()
    needle = query.lower()
    packages = [
        p for p in collect_packages(scanners, parallel=scan_cfg.parallel)
        if needle in p.id.lower() or needle in p.name.lower()
    ]
    logger.info("%d package(s) match %r", len(packages), query)
    return _lookup(packages, scan_cfg, IgnoreConfig(), osv_checker, version_checker)

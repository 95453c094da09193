"""Tests for scan orchestration."""

import threading
import time
from unittest import mock

from extenscan.config import IgnoreConfig, ScanConfig
from extenscan.models import OutdatedInfo, Package, Severity, Source, Vulnerability
from extenscan.pipeline import collect_packages, run_scan, search_packages


class FakeScanner:
    platforms = ("linux", "macos", "windows")

    def __init__(self, name, ids, supported=True, delay=0.0, error=None):
        self.name = name
        self.source = Source.NPM
        self._ids = ids
        self._supported = supported
        self._delay = delay
        self._error = error
        self.calls = 0
        self.threads = []

    def is_supported(self):
        return self._supported

    def scan(self):
        self.calls += 1
        self.threads.append(threading.current_thread().name)
        if self._delay:
            time.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return [
            Package(id=i, name=i, version="1.0.0", source=self.source) for i in self._ids
        ]


def _checkers(vulns=(), outdated=()):
    osv = mock.MagicMock()
    osv.check.return_value = list(vulns)
    registry = mock.MagicMock()
    registry.check.return_value = list(outdated)
    return osv, registry


class TestCollectPackages:
    def test_order_follows_scanners(self):
        slow = FakeScanner("slow", ["a"], delay=0.05)
        fast = FakeScanner("fast", ["b", "c"])
        packages = collect_packages([slow, fast], parallel=True)
        assert [p.id for p in packages] == ["a", "b", "c"]

    def test_parallel_uses_worker_threads(self):
        a, b = FakeScanner("a", ["a"]), FakeScanner("b", ["b"])
        collect_packages([a, b], parallel=True)
        assert all(t.startswith("extenscan") for t in a.threads + b.threads)

    def test_sequential(self):
        a, b = FakeScanner("a", ["a"]), FakeScanner("b", ["b"])
        packages = collect_packages([a, b], parallel=False)
        assert [p.id for p in packages] == ["a", "b"]
        assert a.threads == [threading.current_thread().name]

    def test_unsupported_scanner_not_run(self):
        skipped = FakeScanner("skipped", ["x"], supported=False)
        packages = collect_packages([skipped, FakeScanner("ok", ["y"])])
        assert [p.id for p in packages] == ["y"]
        assert skipped.calls == 0

    def test_failing_scanner_contributes_nothing(self):
        broken = FakeScanner("broken", ["x"], error=RuntimeError("boom"))
        with mock.patch("extenscan.pipeline.logger") as logger:
            packages = collect_packages([broken, FakeScanner("ok", ["y"])])
        assert [p.id for p in packages] == ["y"]
        logger.warning.assert_called_once()
        assert logger.warning.call_args[0][1] == "broken"

    def test_no_scanners(self):
        assert collect_packages([]) == []


class TestRunScan:
    def test_full_scan(self):
        vuln = Vulnerability("GHSA-1", "a", Severity.HIGH, "bad")
        stale = OutdatedInfo("b", "1.0.0", "2.0.0")
        osv, registry = _checkers([vuln], [stale])

        result = run_scan(
            [FakeScanner("npm", ["a", "b"])],
            osv_checker=osv,
            version_checker=registry,
        )

        assert [p.id for p in result.packages] == ["a", "b"]
        assert result.vulnerabilities == [vuln]
        assert result.outdated == [stale]
        assert [p.id for p in osv.check.call_args[0][0]] == ["a", "b"]

    def test_skip_flags(self):
        osv, registry = _checkers()
        cfg = ScanConfig(skip_vuln_check=True, check_outdated=False)
        result = run_scan([FakeScanner("npm", ["a"])], cfg,
                          osv_checker=osv, version_checker=registry)
        assert len(result.packages) == 1
        osv.check.assert_not_called()
        registry.check.assert_not_called()

    def test_ignored_packages_dropped_before_lookups(self):
        osv, registry = _checkers()
        ignore = IgnoreConfig(packages=["@types/*"])
        result = run_scan(
            [FakeScanner("npm", ["@types/node", "eslint"])],
            ignore=ignore, osv_checker=osv, version_checker=registry,
        )
        assert [p.id for p in result.packages] == ["eslint"]
        assert [p.id for p in osv.check.call_args[0][0]] == ["eslint"]

    def test_ignored_vulnerabilities_dropped(self):
        osv, registry = _checkers([
            Vulnerability("CVE-1", "a", Severity.LOW, "keep"),
            Vulnerability("CVE-2", "a", Severity.LOW, "drop"),
        ])
        result = run_scan(
            [FakeScanner("npm", ["a"])],
            ignore=IgnoreConfig(vulnerabilities=["CVE-2"]),
            osv_checker=osv, version_checker=registry,
        )
        assert [v.id for v in result.vulnerabilities] == ["CVE-1"]

    def test_ignored_outdated_not_checked(self):
        osv, registry = _checkers()
        run_scan(
            [FakeScanner("npm", ["typescript", "eslint"])],
            ignore=IgnoreConfig(outdated=["type*"]),
            osv_checker=osv, version_checker=registry,
        )
        assert [p.id for p in registry.check.call_args[0][0]] == ["eslint"]

    def test_default_checkers_get_timeout(self):
        with mock.patch("extenscan.pipeline.OsvChecker") as osv_cls, \
                mock.patch("extenscan.pipeline.VersionChecker") as ver_cls:
            osv_cls.return_value.check.return_value = []
            ver_cls.return_value.check.return_value = []
            run_scan([FakeScanner("npm", ["a"])], ScanConfig(timeout=2.5))
        osv_cls.assert_called_once_with(timeout=2.5)
        ver_cls.assert_called_once_with(timeout=2.5)


class TestSearchPackages:
    def test_case_insensitive_substring(self):
        osv, registry = _checkers()
        result = search_packages(
            [FakeScanner("npm", ["Lodash", "lodash.merge", "eslint"])], "LODASH",
            osv_checker=osv, version_checker=registry,
        )
        assert [p.id for p in result.packages] == ["Lodash", "lodash.merge"]
        assert [p.id for p in osv.check.call_args[0][0]] == ["Lodash", "lodash.merge"]

    def test_no_match(self):
        osv, registry = _checkers()
        result = search_packages([FakeScanner("npm", ["a"])], "zzz",
                                 osv_checker=osv, version_checker=registry)
        assert result.packages == []
        assert result.vulnerabilities == []

    def test_findings_attached(self):
        vuln = Vulnerability("GHSA-1", "eslint", Severity.LOW, "bad")
        stale = OutdatedInfo("eslint", "1.0.0", "1.1.0")
        osv, registry = _checkers([vuln], [stale])
        result = search_packages([FakeScanner("npm", ["eslint"])], "esl",
                                 osv_checker=osv, version_checker=registry)
        assert result.vulnerabilities == [vuln]
        assert result.outdated == [stale]

    def test_skip_flags(self):
        osv, registry = _checkers()
        cfg = ScanConfig(skip_vuln_check=True, check_outdated=False)
        search_packages([FakeScanner("npm", ["a"])], "a", cfg,
                        osv_checker=osv, version_checker=registry)
        osv.check.assert_not_called()
        registry.check.assert_not_called()

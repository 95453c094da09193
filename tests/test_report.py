"""Tests for the text, JSON and SARIF renderers."""

import json
from datetime import datetime, timezone

import pytest

from extenscan.models import (
    OutdatedInfo,
    Package,
    PackageMetadata,
    ScanResult,
    Severity,
    Source,
    Vulnerability,
)
from extenscan.report import (
    elevated_extensions,
    purl,
    render_cyclonedx,
    render_json,
    render_package_info,
    render_risk_text,
    render_sarif,
    render_text,
    risk_to_dict,
    sarif_level,
    upgrade_commands,
)
from extenscan.risk.extension import analyze_extension


def _npm(pkg_id, version="1.0.0", **kwargs):
    return Package(id=pkg_id, name=pkg_id, version=version, source=Source.NPM, **kwargs)


@pytest.fixture
def result():
    risky = Package(
        id="abcdef",
        name="Spy Helper",
        version="2.0",
        source=Source.CHROME,
        extension_risk=analyze_extension(["debugger"], [], ["<all_urls>"], None),
    )
    tame = Package(
        id="ghijkl",
        name="Tame",
        version="1.0",
        source=Source.CHROME,
        extension_risk=analyze_extension(["storage"], [], [], "script-src 'self'"),
    )
    return ScanResult(
        packages=[
            _npm("lodash", "4.17.20", install_path="/usr/lib/node_modules/lodash"),
            _npm("typescript", "4.0.0"),
            risky,
            tame,
        ],
        vulnerabilities=[
            Vulnerability(
                id="GHSA-jf85-cpcp-j695",
                package_id="lodash",
                severity=Severity.HIGH,
                title="Prototype Pollution in lodash",
                description="Versions before 4.17.21 are vulnerable.",
                fixed_version="4.17.21",
                reference_url="https://github.com/advisories/GHSA-jf85-cpcp-j695",
            ),
        ],
        outdated=[OutdatedInfo("typescript", "4.0.0", "5.0.0")],
    )


class TestText:
    def test_sections(self, result):
        text = render_text(result, color=False)
        assert "extenscan v" in text
        assert "Scan completed at: " in text
        assert "Found 4 packages:" in text
        assert "Found 1 vulnerabilities:" in text
        assert "Prototype Pollution in lodash" in text
        assert "Found 1 outdated packages:" in text
        assert "Extension Risk Analysis (1 with elevated risk):" in text
        assert "Spy Helper" in text

    def test_summary(self, result):
        text = render_text(result, color=False)
        assert "  Total packages: 4" in text
        assert "  By source: 2 NPM, 2 Chrome" in text
        assert "  Vulnerabilities: 0 critical, 1 high, 0 medium, 0 low" in text
        assert "  Outdated packages: 1 (1 major updates)" in text
        # 100 - 15 (high) - 5 (major)
        assert text.rstrip().splitlines()[-2] == "Health Score: 80/100 [Good]"

    def test_upgrade_command_listed(self, result):
        text = render_text(result, color=False)
        assert "Upgrade commands:" in text
        assert "  npm update -g typescript" in text

    def test_no_color(self, result):
        assert "\033[" not in render_text(result, color=False)

    def test_color(self, result):
        assert "\033[91mHIGH\033[0m" in render_text(result, color=True)

    def test_empty(self):
        text = render_text(ScanResult(), color=False)
        assert "No packages found." in text
        assert "Health Score: 100/100 [Excellent]" in text
        assert "vulnerabilities:" not in text

    def test_unknown_versions_noted(self):
        result = ScanResult(packages=[_npm("a", "unknown"), _npm("b")])
        text = render_text(result, color=False)
        assert "  Total packages: 2 (1 with unknown version)" in text
        assert "By source" not in text


class TestUpgradeCommands:
    def test_collapses_long_lists(self):
        ids = [f"pkg{i}" for i in range(6)]
        result = ScanResult(
            packages=[_npm(i) for i in ids],
            outdated=[OutdatedInfo(i, "1.0.0", "1.0.1") for i in ids],
        )
        assert upgrade_commands(result) == ["npm update -g  # 6 packages"]

    def test_per_manager(self):
        wget = Package(id="wget", name="wget", version="1.0", source=Source.HOMEBREW)
        ext = Package(id="ext", name="ext", version="1.0", source=Source.VSCODE)
        result = ScanResult(
            packages=[_npm("a"), _npm("b"), wget, ext],
            outdated=[
                OutdatedInfo("a", "1.0.0", "2.0.0"),
                OutdatedInfo("wget", "1.0", "1.1"),
                OutdatedInfo("b", "1.0.0", "1.1.0"),
                OutdatedInfo("ext", "1.0", "2.0"),
            ],
        )
        assert upgrade_commands(result) == ["npm update -g a b", "brew upgrade wget"]


class TestElevated:
    def test_only_above_low_bucket(self, result):
        assert [p.id for p in elevated_extensions(result)] == ["abcdef"]


class TestJson:
    def test_document(self, result):
        doc = json.loads(render_json(result))
        assert doc["tool"] == "extenscan"
        summary = doc["summary"]
        assert summary["total_packages"] == 4
        assert summary["total_vulnerabilities"] == 1
        assert summary["high"] == 1
        assert summary["outdated"] == 1
        assert summary["health_score"] == 80
        assert summary["health"] == "Good"

    def test_packages_sorted_and_serialized(self, result):
        doc = json.loads(render_json(result))
        assert [p["id"] for p in doc["packages"]] == ["abcdef", "ghijkl", "lodash", "typescript"]
        spy = doc["packages"][0]
        assert spy["source"] == "chrome"
        assert spy["extension_risk"]["host_permission_scope"] == "all_urls"
        assert doc["packages"][2]["extension_risk"] is None

    def test_findings(self, result):
        doc = json.loads(render_json(result))
        vuln = doc["vulnerabilities"][0]
        assert vuln["severity"] == "high"
        assert vuln["fixed_version"] == "4.17.21"
        assert doc["outdated"] == [{
            "package_id": "typescript",
            "current_version": "4.0.0",
            "latest_version": "5.0.0",
            "update_type": "MAJOR",
        }]


class TestSarif:
    @pytest.mark.parametrize("severity,level", [
        (Severity.CRITICAL, "error"),
        (Severity.HIGH, "error"),
        (Severity.MEDIUM, "warning"),
        (Severity.LOW, "note"),
        (Severity.UNKNOWN, "note"),
    ])
    def test_levels(self, severity, level):
        assert sarif_level(severity) == level

    def test_log(self, result):
        doc = json.loads(render_sarif(result))
        assert doc["version"] == "2.1.0"
        run = doc["runs"][0]
        rule = run["tool"]["driver"]["rules"][0]
        assert rule["id"] == "GHSA-jf85-cpcp-j695"
        assert rule["helpUri"] == "https://github.com/advisories/GHSA-jf85-cpcp-j695"
        finding = run["results"][0]
        assert finding["level"] == "error"
        assert "(fixed in 4.17.21)" in finding["message"]["text"]
        uri = finding["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]
        assert uri == "/usr/lib/node_modules/lodash"

    def test_one_rule_per_advisory(self):
        result = ScanResult(
            packages=[_npm("a"), _npm("b")],
            vulnerabilities=[
                Vulnerability("CVE-2024-1", "a", Severity.MEDIUM, "shared"),
                Vulnerability("CVE-2024-1", "b", Severity.MEDIUM, "shared"),
            ],
        )
        run = json.loads(render_sarif(result))["runs"][0]
        assert len(run["tool"]["driver"]["rules"]) == 1
        assert len(run["results"]) == 2
        # No install path: fall back to the package id.
        uris = [r["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]
                for r in run["results"]]
        assert uris == ["a", "b"]

    def test_empty(self):
        run = json.loads(render_sarif(ScanResult()))["runs"][0]
        assert run["results"] == []
        assert run["tool"]["driver"]["rules"] == []


class TestRiskReport:
    def test_text(self):
        report = analyze_extension(["debugger", "storage"], [], ["<all_urls>"], None)
        text = render_risk_text("Spy", report, color=False)
        assert "Extension risk: Spy" in text
        assert "Risk:   HIGH" in text
        assert "Score:  215" in text
        assert "Hosts:  all_urls" in text
        assert "CSP:    missing (score 30)" in text
        assert "[CRITICAL] All URLs access" in text

    def test_clean_extension(self):
        report = analyze_extension([], [], [], "script-src 'self'")
        text = render_risk_text("Quiet", report, color=False)
        assert "No issues." in text

    def test_dict(self):
        report = analyze_extension([], ["tabs"], [], "script-src 'self' 'unsafe-eval'")
        data = risk_to_dict(report)
        assert data["total_score"] == 25 + 40
        assert data["risk_level"] == "medium"
        assert data["permissions"][0]["name"] == "tabs (optional)"
        assert data["permissions"][0]["level"] == "high"
        assert data["csp"]["allows_unsafe_eval"] is True
        assert data["issues"][0]["title"] == "Allows eval()"


class TestCycloneDx:
    def test_envelope(self, result):
        doc = json.loads(render_cyclonedx(result))
        assert doc["bomFormat"] == "CycloneDX"
        assert doc["specVersion"] == "1.5"
        assert doc["version"] == 1
        assert doc["serialNumber"].startswith("urn:uuid:")
        assert doc["metadata"]["timestamp"] == result.scan_time.isoformat()
        assert doc["metadata"]["tools"][0]["name"] == "extenscan"
        assert [c["bom-ref"] for c in doc["components"]] == [
            "abcdef", "ghijkl", "lodash", "typescript",
        ]

    def test_fresh_serial_per_document(self, result):
        first = json.loads(render_cyclonedx(result))["serialNumber"]
        assert json.loads(render_cyclonedx(result))["serialNumber"] != first

    def test_golden(self):
        eslint = Package(
            id="dbaeumer.vscode-eslint",
            name="ESLint",
            version="2.4.4",
            source=Source.VSCODE,
            metadata=PackageMetadata(
                description="Integrates ESLint JavaScript into VS Code.",
                publisher="Microsoft",
                license="MIT",
                homepage="https://github.com/Microsoft/vscode-eslint#readme",
                repository="https://github.com/Microsoft/vscode-eslint.git",
            ),
        )
        wget = Package(id="wget", name="wget", version="1.21", source=Source.HOMEBREW)
        result = ScanResult(
            packages=[eslint, wget],
            vulnerabilities=[
                Vulnerability(
                    "CVE-2024-38428", "wget", Severity.CRITICAL,
                    "Semicolon in userinfo mishandled", fixed_version="1.24.5",
                ),
            ],
            scan_time=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        )

        doc = json.loads(render_cyclonedx(result))

        assert doc["metadata"]["timestamp"] == "2024-06-01T12:00:00+00:00"
        assert doc["components"] == [
            {
                "type": "library",
                "bom-ref": "wget",
                "name": "wget",
                "version": "1.21",
                "purl": "pkg:brew/wget@1.21",
            },
            {
                "type": "library",
                "bom-ref": "dbaeumer.vscode-eslint",
                "name": "ESLint",
                "version": "2.4.4",
                "purl": "pkg:vscode/dbaeumer.vscode-eslint@2.4.4",
                "description": "Integrates ESLint JavaScript into VS Code.",
                "publisher": "Microsoft",
                "licenses": [{"license": {"id": "MIT"}}],
                "externalReferences": [
                    {"type": "website", "url": "https://github.com/Microsoft/vscode-eslint#readme"},
                    {"type": "vcs", "url": "https://github.com/Microsoft/vscode-eslint.git"},
                ],
            },
        ]
        assert doc["vulnerabilities"] == [
            {
                "bom-ref": "vuln-CVE-2024-38428",
                "id": "CVE-2024-38428",
                "description": "Semicolon in userinfo mishandled",
                "recommendation": "Upgrade to version 1.24.5",
                "ratings": [{"severity": "critical", "method": "other"}],
                "affects": [{"ref": "wget"}],
            },
        ]

    def test_no_vulnerabilities_key_when_clean(self):
        doc = json.loads(render_cyclonedx(ScanResult(packages=[_npm("lodash")])))
        assert doc["components"][0]["purl"] == "pkg:npm/lodash@1.0.0"
        assert "vulnerabilities" not in doc

    @pytest.mark.parametrize("source,expected", [
        (Source.NPM, "pkg:npm/x@1"),
        (Source.HOMEBREW, "pkg:brew/x@1"),
        (Source.FIREFOX, "pkg:firefox/x@1"),
        (Source.EDGE, "pkg:edge/x@1"),
    ])
    def test_purl_types(self, source, expected):
        assert purl(Package(id="x", name="x", version="1", source=source)) == expected


class TestPackageInfo:
    def test_metadata_lines(self):
        pkg = _npm(
            "lodash", "4.17.20",
            install_path="/usr/lib/node_modules/lodash",
            metadata=PackageMetadata(license="MIT", homepage="https://lodash.com/"),
        )
        lines = render_package_info(pkg, color=False).splitlines()
        assert lines == [
            "Package: lodash",
            "  ID:       lodash",
            "  Version:  4.17.20",
            "  Source:   NPM",
            "  Path:     /usr/lib/node_modules/lodash",
            "  License:  MIT",
            "  Homepage: https://lodash.com/",
        ]

    def test_unknown_version(self):
        text = render_package_info(_npm("mystery", "unknown"), color=False)
        assert "  Version:  (not detected)" in text

    def test_extension_risk(self):
        pkg = Package(
            id="abcdef", name="Spy", version="2.0", source=Source.CHROME,
            extension_risk=analyze_extension(["debugger", "storage"], [], ["<all_urls>"], None),
        )
        text = render_package_info(pkg, color=False)
        assert "  Security Risk Analysis:" in text
        assert "    Risk Level: HIGH (score: 215)" in text
        assert "      - debugger: Access browser debugger" in text
        assert "storage" not in text
        assert "    Host access: all_urls" in text
        assert "      - [CRITICAL] All URLs access" in text

    def test_long_lists_truncated(self):
        perms = ["tabs", "history", "bookmarks", "cookies", "webRequest", "management", "privacy"]
        pkg = Package(
            id="abcdef", name="Hoarder", version="1.0", source=Source.CHROME,
            extension_risk=analyze_extension(perms, [], [], None),
        )
        text = render_package_info(pkg, color=False)
        assert text.count("\n      - ") == 5
        assert "      ... and 2 more" in text
        assert "Host access" not in text

    def test_vulnerabilities_and_update(self):
        vulns = [
            Vulnerability("CVE-1", "lodash", Severity.MEDIUM, "Minor issue"),
            Vulnerability("CVE-2", "lodash", Severity.CRITICAL, "Remote code execution"),
        ]
        text = render_package_info(
            _npm("lodash", "4.17.20"), vulns, OutdatedInfo("lodash", "4.17.20", "4.17.21"),
            color=False,
        )
        lines = text.splitlines()
        assert lines[-4:] == [
            "  Vulnerabilities (2):",
            "    - [CRITICAL] CVE-2: Remote code execution",
            "    - [MEDIUM] CVE-1: Minor issue",
            "  Update available: 4.17.20 -> 4.17.21",
        ]

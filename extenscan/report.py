"""Report rendering — text, JSON, SARIF and CycloneDX outputs."""

from __future__ import annotations

import json
import uuid
from collections import Counter
from typing import Any

import extenscan
from extenscan.health import health_indicator
from extenscan.models import (
    OutdatedInfo,
    Package,
    ScanResult,
    Severity,
    Source,
    Vulnerability,
)
from extenscan.risk.extension import ExtensionRiskReport
from extenscan.risk.permissions import RiskLevel
from extenscan.versions import classify_update, is_major_update

INFORMATION_URI = "https://github.com/haasonsaas/extenscan"
SARIF_SCHEMA = (
    "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/"
    "Schemata/sarif-schema-2.1.0.json"
)

UPGRADE_COMMANDS = {
    Source.NPM: "npm update -g",
    Source.HOMEBREW: "brew upgrade",
}
MAX_UPGRADE_ARGS = 5

# ---------------------------------------------------------------------------
# Text output
# ---------------------------------------------------------------------------

_SEV_COLORS = {
    Severity.CRITICAL: "\033[31m",  # red
    Severity.HIGH: "\033[91m",      # bright red
    Severity.MEDIUM: "\033[33m",    # yellow
    Severity.LOW: "\033[32m",       # green
}
_RISK_COLORS = {
    "critical": "\033[31m",
    "high": "\033[91m",
    "medium": "\033[33m",
}
_RESET = "\033[0m"


def _sev_label(sev: Severity, color: bool = True) -> str:
    label = sev.name.upper()
    if color and sev in _SEV_COLORS:
        return f"{_SEV_COLORS[sev]}{label}{_RESET}"
    return label


def _risk_label(level: str, color: bool = True) -> str:
    label = level.upper()
    if color and level in _RISK_COLORS:
        return f"{_RISK_COLORS[level]}{label}{_RESET}"
    return label


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _table(headers: list[str], rows: list[list[str]]) -> list[str]:
    """Render a plain, left-aligned column table."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], _visible_len(cell))

    def fmt(cells: list[str]) -> str:
        padded = [c + " " * (widths[i] - _visible_len(c)) for i, c in enumerate(cells)]
        return "  " + "  ".join(padded).rstrip()

    out = [fmt(headers), "  " + "  ".join("-" * w for w in widths)]
    out.extend(fmt(row) for row in rows)
    return out


def _visible_len(text: str) -> int:
    # ANSI colour codes take no screen width.
    for code in list(_SEV_COLORS.values()) + [_RESET]:
        text = text.replace(code, "")
    return len(text)


def elevated_extensions(result: ScanResult) -> list[Package]:
    """Extensions scoring above the ``low`` bucket, highest score first."""
    risky = [
        p for p in result.packages
        if p.extension_risk is not None and p.extension_risk.elevated
    ]
    return sorted(risky, key=lambda p: p.extension_risk.sort_key())


def upgrade_commands(result: ScanResult) -> list[str]:
    """One upgrade command per package manager with outdated packages."""
    by_source: dict[Source, list[str]] = {}
    for info in result.outdated:
        pkg = result.find_package(info.package_id)
        if pkg is not None and pkg.source in UPGRADE_COMMANDS:
            by_source.setdefault(pkg.source, []).append(info.package_id)

    commands: list[str] = []
    for source, ids in by_source.items():
        base = UPGRADE_COMMANDS[source]
        if len(ids) <= MAX_UPGRADE_ARGS:
            commands.append(f"{base} {' '.join(ids)}")
        else:
            commands.append(f"{base}  # {len(ids)} packages")
    return commands


def _risk_rows(packages: list[Package], color: bool) -> list[list[str]]:
    rows = []
    for pkg in packages:
        risk = pkg.extension_risk
        dangerous = [
            p.name for p in risk.permissions
            if p.level in (RiskLevel.CRITICAL, RiskLevel.HIGH)
        ]
        rows.append([
            _truncate(pkg.name, 30),
            _risk_label(risk.risk_level, color),
            str(risk.total_score),
            _truncate(", ".join(dangerous), 35) if dangerous else "-",
            str(len(risk.issues)),
        ])
    return rows


def render_text(result: ScanResult, color: bool = True) -> str:
    """Produce human-friendly text output."""
    lines: list[str] = []

    lines.append("=" * 60)
    lines.append(f"extenscan v{extenscan.__version__}")
    lines.append("=" * 60)
    lines.append(f"Scan completed at: {result.scan_time.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    lines.append("")

    # Packages
    if not result.packages:
        lines.append("No packages found.")
    else:
        lines.append(f"Found {len(result.packages)} packages:")
        rows = [
            [
                p.source.display_name,
                _truncate(p.name, 40),
                "-" if p.version == "unknown" else p.version,
                _truncate(p.id, 50),
            ]
            for p in sorted(result.packages, key=lambda p: p.sort_key())
        ]
        lines.extend(_table(["Source", "Name", "Version", "ID"], rows))
    lines.append("")

    # Vulnerabilities, Critical first
    if result.vulnerabilities:
        lines.append(f"Found {len(result.vulnerabilities)} vulnerabilities:")
        rows = [
            [
                _sev_label(v.severity, color),
                v.package_id,
                v.id,
                _truncate(v.title, 50),
                v.fixed_version or "-",
            ]
            for v in result.sorted_vulnerabilities
        ]
        lines.extend(_table(["Severity", "Package", "ID", "Title", "Fixed In"], rows))
        lines.append("")

    # Outdated
    if result.outdated:
        lines.append(f"Found {len(result.outdated)} outdated packages:")
        rows = [
            [
                o.package_id,
                o.current_version,
                o.latest_version,
                classify_update(o.current_version, o.latest_version),
            ]
            for o in result.outdated
        ]
        lines.extend(_table(["Package", "Current", "Latest", "Type"], rows))
        commands = upgrade_commands(result)
        if commands:
            lines.append("")
            lines.append("Upgrade commands:")
            lines.extend(f"  {c}" for c in commands)
        lines.append("")

    # Extension risk
    risky = elevated_extensions(result)
    if risky:
        lines.append(f"Extension Risk Analysis ({len(risky)} with elevated risk):")
        lines.extend(_table(
            ["Extension", "Risk", "Score", "Permissions", "Issues"],
            _risk_rows(risky, color),
        ))
        lines.append("")

    lines.append("-" * 60)
    lines.extend(_summary_lines(result))
    lines.append("=" * 60)

    return "\n".join(lines)


def _summary_lines(result: ScanResult) -> list[str]:
    lines = ["Summary:"]

    unknown = sum(1 for p in result.packages if p.version == "unknown")
    if unknown:
        lines.append(
            f"  Total packages: {len(result.packages)} ({unknown} with unknown version)"
        )
    else:
        lines.append(f"  Total packages: {len(result.packages)}")

    by_source = Counter(p.source for p in result.packages)
    if len(by_source) > 1:
        parts = [f"{count} {source.display_name}" for source, count in by_source.items()]
        lines.append(f"  By source: {', '.join(parts)}")

    if result.vulnerabilities:
        lines.append(
            f"  Vulnerabilities: {result.count(Severity.CRITICAL)} critical, "
            f"{result.count(Severity.HIGH)} high, "
            f"{result.count(Severity.MEDIUM)} medium, "
            f"{result.count(Severity.LOW)} low"
        )

    if result.outdated:
        major = sum(
            1 for o in result.outdated
            if is_major_update(o.current_version, o.latest_version)
        )
        if major:
            lines.append(f"  Outdated packages: {len(result.outdated)} ({major} major updates)")
        else:
            lines.append(f"  Outdated packages: {len(result.outdated)}")

    score = result.health_score
    lines.append("")
    lines.append(f"Health Score: {score}/100 [{health_indicator(score)}]")
    return lines


# ---------------------------------------------------------------------------
# Single-extension risk report (``extenscan analyze``)
# ---------------------------------------------------------------------------


def render_risk_text(name: str, report: ExtensionRiskReport, color: bool = True) -> str:
    lines: list[str] = []
    lines.append("=" * 60)
    lines.append(f"Extension risk: {name}")
    lines.append("=" * 60)
    lines.append(f"Risk:   {_risk_label(report.risk_level, color)}")
    lines.append(f"Score:  {report.total_score}")
    lines.append(f"Hosts:  {report.host_permission_scope.name.lower()}")
    lines.append("")

    if report.permissions:
        lines.append("Permissions:")
        rows = [
            [p.name, str(p.level), p.warning or p.description]
            for p in sorted(report.permissions, key=lambda p: -p.level)
        ]
        lines.extend(_table(["Permission", "Level", "Notes"], rows))
        lines.append("")

    if report.external_domains:
        lines.append("Host domains:")
        lines.extend(f"  • {d}" for d in report.external_domains)
        lines.append("")

    csp = report.csp
    lines.append(f"CSP:    {'present' if csp.has_csp else 'missing'} (score {csp.score})")
    for issue in csp.issues:
        lines.append(f"  → {issue}")
    lines.append("")

    if report.issues:
        lines.append("Issues:")
        for issue in report.issues:
            lines.append(f"  [{str(issue.severity).upper()}] {issue.title}")
            lines.append(f"    → {issue.description}")
    else:
        lines.append("✅ No issues.")
    lines.append("=" * 60)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Package details (``extenscan info``)
# ---------------------------------------------------------------------------

MAX_INFO_PERMISSIONS = 5
MAX_INFO_ISSUES = 3


def render_package_info(
    pkg: Package,
    vulnerabilities: list[Vulnerability] | None = None,
    outdated: OutdatedInfo | None = None,
    color: bool = True,
) -> str:
    """Describe one package: metadata, extension risk, advisories, updates."""
    version = "(not detected)" if pkg.version == "unknown" else pkg.version
    lines = [
        f"Package: {pkg.name}",
        f"  ID:       {pkg.id}",
        f"  Version:  {version}",
        f"  Source:   {pkg.source.display_name}",
    ]
    meta = pkg.metadata
    for label, value in (
        ("Path", pkg.install_path),
        ("About", meta.description),
        ("Author", meta.publisher),
        ("License", meta.license),
        ("Homepage", meta.homepage),
        ("Repo", meta.repository),
    ):
        if value:
            lines.append(f"  {label + ':':<10}{value}")

    risk = pkg.extension_risk
    if risk is not None:
        lines.append("")
        lines.append("  Security Risk Analysis:")
        lines.append(
            f"    Risk Level: {_risk_label(risk.risk_level, color)} (score: {risk.total_score})"
        )
        dangerous = [p for p in risk.permissions if p.level >= RiskLevel.HIGH]
        if dangerous:
            lines.append("    High-risk permissions:")
            for p in dangerous[:MAX_INFO_PERMISSIONS]:
                lines.append(f"      - {p.name}: {p.description}")
            if len(dangerous) > MAX_INFO_PERMISSIONS:
                lines.append(f"      ... and {len(dangerous) - MAX_INFO_PERMISSIONS} more")
        if risk.host_permissions:
            lines.append(f"    Host access: {risk.host_permission_scope.name.lower()}")
        if risk.issues:
            lines.append(f"    Issues ({len(risk.issues)}):")
            for issue in risk.issues[:MAX_INFO_ISSUES]:
                lines.append(f"      - [{str(issue.severity).upper()}] {issue.title}")

    if vulnerabilities:
        lines.append(f"  Vulnerabilities ({len(vulnerabilities)}):")
        for v in sorted(vulnerabilities, key=lambda v: v.sort_key()):
            lines.append(f"    - [{_sev_label(v.severity, color)}] {v.id}: {v.title}")

    if outdated is not None:
        lines.append(
            f"  Update available: {outdated.current_version} -> {outdated.latest_version}"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------


def risk_to_dict(report: ExtensionRiskReport) -> dict[str, Any]:
    return {
        "total_score": report.total_score,
        "risk_level": report.risk_level,
        "permissions": [
            {
                "name": p.name,
                "level": str(p.level),
                "description": p.description,
                "warning": p.warning,
            }
            for p in report.permissions
        ],
        "host_permissions": report.host_permissions,
        "host_permission_scope": report.host_permission_scope.name.lower(),
        "csp": {
            "has_csp": report.csp.has_csp,
            "allows_unsafe_eval": report.csp.allows_unsafe_eval,
            "allows_unsafe_inline": report.csp.allows_unsafe_inline,
            "allows_remote_scripts": report.csp.allows_remote_scripts,
            "allowed_domains": report.csp.allowed_domains,
            "issues": report.csp.issues,
            "score": report.csp.score,
        },
        "external_domains": report.external_domains,
        "issues": [
            {
                "category": i.category,
                "severity": str(i.severity),
                "title": i.title,
                "description": i.description,
            }
            for i in report.issues
        ],
    }


def _package_to_dict(p: Package) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "version": p.version,
        "source": str(p.source),
        "install_path": p.install_path,
        "metadata": {
            "description": p.metadata.description,
            "publisher": p.metadata.publisher,
            "homepage": p.metadata.homepage,
            "repository": p.metadata.repository,
            "license": p.metadata.license,
        },
        "extension_risk": risk_to_dict(p.extension_risk) if p.extension_risk else None,
    }


def _vuln_to_dict(v: Vulnerability) -> dict[str, Any]:
    return {
        "id": v.id,
        "package_id": v.package_id,
        "severity": str(v.severity),
        "title": v.title,
        "description": v.description,
        "fixed_version": v.fixed_version,
        "reference_url": v.reference_url,
    }


def render_json(result: ScanResult) -> str:
    """Produce stable JSON output (deterministic sorting)."""
    score = result.health_score
    doc: dict[str, Any] = {
        "tool": "extenscan",
        "version": extenscan.__version__,
        "scan_time": result.scan_time.isoformat(),
        "summary": {
            "total_packages": len(result.packages),
            "total_vulnerabilities": len(result.vulnerabilities),
            "critical": result.count(Severity.CRITICAL),
            "high": result.count(Severity.HIGH),
            "medium": result.count(Severity.MEDIUM),
            "low": result.count(Severity.LOW),
            "unknown": result.count(Severity.UNKNOWN),
            "outdated": len(result.outdated),
            "health_score": score,
            "health": health_indicator(score),
        },
        "packages": [
            _package_to_dict(p) for p in sorted(result.packages, key=lambda p: p.sort_key())
        ],
        "vulnerabilities": [_vuln_to_dict(v) for v in result.sorted_vulnerabilities],
        "outdated": [
            {
                "package_id": o.package_id,
                "current_version": o.current_version,
                "latest_version": o.latest_version,
                "update_type": classify_update(o.current_version, o.latest_version),
            }
            for o in sorted(result.outdated, key=lambda o: o.package_id)
        ],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# SARIF output
# ---------------------------------------------------------------------------

_SARIF_LEVELS = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
    Severity.UNKNOWN: "note",
}


def sarif_level(severity: Severity) -> str:
    return _SARIF_LEVELS[severity]


def render_sarif(result: ScanResult) -> str:
    """Produce a SARIF 2.1.0 log with one rule per vulnerability id."""
    rules: dict[str, dict[str, Any]] = {}
    results: list[dict[str, Any]] = []

    for v in result.sorted_vulnerabilities:
        level = sarif_level(v.severity)
        if v.id not in rules:
            rule: dict[str, Any] = {
                "id": v.id,
                "name": v.title,
                "shortDescription": {"text": v.title},
                "defaultConfiguration": {"level": level},
            }
            if v.description:
                rule["fullDescription"] = {"text": v.description}
            if v.reference_url:
                rule["helpUri"] = v.reference_url
            rules[v.id] = rule

        pkg = result.find_package(v.package_id)
        uri = pkg.install_path if pkg is not None and pkg.install_path else v.package_id
        fixed = f" (fixed in {v.fixed_version})" if v.fixed_version else ""

        results.append({
            "ruleId": v.id,
            "level": level,
            "message": {
                "text": f"{v.severity} vulnerability in {v.package_id}: {v.title}{fixed}",
            },
            "locations": [
                {"physicalLocation": {"artifactLocation": {"uri": uri}}},
            ],
        })

    doc = {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "extenscan",
                        "version": extenscan.__version__,
                        "informationUri": INFORMATION_URI,
                        "rules": list(rules.values()),
                    },
                },
                "results": results,
            },
        ],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# CycloneDX output
# ---------------------------------------------------------------------------

CYCLONEDX_SPEC_VERSION = "1.5"

_PURL_TYPES = {
    Source.NPM: "npm",
    Source.HOMEBREW: "brew",
}


def purl(pkg: Package) -> str:
    """Package URL; editor and browser sources use their own name as the type."""
    kind = _PURL_TYPES.get(pkg.source, pkg.source.value)
    return f"pkg:{kind}/{pkg.id}@{pkg.version}"


def _component(pkg: Package) -> dict[str, Any]:
    comp: dict[str, Any] = {
        "type": "library",
        "bom-ref": pkg.id,
        "name": pkg.name,
        "version": pkg.version,
        "purl": purl(pkg),
    }
    meta = pkg.metadata
    if meta.description:
        comp["description"] = meta.description
    if meta.publisher:
        comp["publisher"] = meta.publisher
    if meta.license:
        comp["licenses"] = [{"license": {"id": meta.license}}]
    refs = []
    if meta.homepage:
        refs.append({"type": "website", "url": meta.homepage})
    if meta.repository:
        refs.append({"type": "vcs", "url": meta.repository})
    if refs:
        comp["externalReferences"] = refs
    return comp


def _cdx_vulnerability(v: Vulnerability) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "bom-ref": f"vuln-{v.id}",
        "id": v.id,
        "description": v.description or v.title,
    }
    if v.fixed_version:
        entry["recommendation"] = f"Upgrade to version {v.fixed_version}"
    entry["ratings"] = [{"severity": str(v.severity), "method": "other"}]
    entry["affects"] = [{"ref": v.package_id}]
    return entry


def render_cyclonedx(result: ScanResult) -> str:
    """Produce a CycloneDX 1.5 SBOM: one component per package, plus advisories."""
    doc: dict[str, Any] = {
        "bomFormat": "CycloneDX",
        "specVersion": CYCLONEDX_SPEC_VERSION,
        "serialNumber": f"urn:uuid:{uuid.uuid4()}",
        "version": 1,
        "metadata": {
            "timestamp": result.scan_time.isoformat(),
            "tools": [
                {"vendor": "extenscan", "name": "extenscan", "version": extenscan.__version__},
            ],
        },
        "components": [
            _component(p) for p in sorted(result.packages, key=lambda p: p.sort_key())
        ],
    }
    if result.vulnerabilities:
        doc["vulnerabilities"] = [
            _cdx_vulnerability(v) for v in result.sorted_vulnerabilities
        ]
    return json.dumps(doc, indent=2, ensure_ascii=False)

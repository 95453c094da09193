"""Extension risk analysis — permissions, host scope and CSP combined into one report.

Scoring, in order:

1. every required permission adds its full level score;
2. every optional permission adds half its level score (rounded down) and is
   listed as ``"<name> (optional)"``;
3. the host permission scope adds its score;
4. the CSP analysis adds its score.

The total is bucketed into ``low`` (0–20), ``medium`` (21–100),
``high`` (101–300) and ``critical`` (above 300).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from extenscan.risk.csp import CspAnalysis, analyze_csp
from extenscan.risk.hosts import HostPermissionScope, analyze_host_permissions
from extenscan.risk.permissions import PermissionRisk, RiskLevel, lookup_permission


@dataclass(frozen=True)
class RiskIssue:
    """A finding derived from the analysis (not a raw manifest value)."""

    category: str
    severity: RiskLevel
    title: str
    description: str


@dataclass(frozen=True)
class ExtensionRiskReport:
    """Complete risk analysis for one extension."""

    total_score: int = 0
    risk_level: str = "low"
    permissions: list[PermissionRisk] = field(default_factory=list)
    host_permissions: list[str] = field(default_factory=list)
    host_permission_scope: HostPermissionScope = HostPermissionScope.NONE
    csp: CspAnalysis = field(default_factory=CspAnalysis)
    external_domains: list[str] = field(default_factory=list)
    issues: list[RiskIssue] = field(default_factory=list)

    @property
    def elevated(self) -> bool:
        """True when the score is above the ``low`` bucket."""
        return self.total_score > 20

    def sort_key(self) -> tuple:
        """Highest score first."""
        return (-self.total_score,)


def risk_level_for(score: int) -> str:
    """Bucket a total score into a risk label."""
    if score <= 20:
        return "low"
    if score <= 100:
        return "medium"
    if score <= 300:
        return "high"
    return "critical"


def _issues_for(
    scope: HostPermissionScope,
    permissions: list[PermissionRisk],
    csp: CspAnalysis,
) -> list[RiskIssue]:
    issues: list[RiskIssue] = []

    if scope == HostPermissionScope.ALL_URLS:
        issues.append(RiskIssue(
            category="Permissions",
            severity=RiskLevel.CRITICAL,
            title="All URLs access",
            description="Extension can access all websites",
        ))

    critical_count = sum(1 for p in permissions if p.level == RiskLevel.CRITICAL)
    if critical_count > 0:
        issues.append(RiskIssue(
            category="Permissions",
            severity=RiskLevel.CRITICAL,
            title=f"{critical_count} critical permission(s)",
            description="Extension requests highly dangerous permissions",
        ))

    if csp.allows_unsafe_eval:
        issues.append(RiskIssue(
            category="Security Policy",
            severity=RiskLevel.HIGH,
            title="Allows eval()",
            description="Content Security Policy allows code execution via eval()",
        ))

    return issues


def analyze_extension(
    permissions: list[str],
    optional_permissions: list[str],
    host_permissions: list[str],
    csp: str | None = None,
) -> ExtensionRiskReport:
    """Score one extension from its declared permissions, host patterns and CSP."""
    total = 0
    risks: list[PermissionRisk] = []

    for perm in permissions:
        risk = lookup_permission(perm)
        total += risk.level.score()
        risks.append(risk)

    for perm in optional_permissions:
        risk = lookup_permission(perm)
        total += risk.level.score() // 2
        risks.append(replace(risk, name=f"{risk.name} (optional)"))

    scope, domains = analyze_host_permissions(host_permissions)
    total += scope.score()

    csp_analysis = analyze_csp(csp)
    total += csp_analysis.score

    return ExtensionRiskReport(
        total_score=total,
        risk_level=risk_level_for(total),
        permissions=risks,
        host_permissions=list(host_permissions),
        host_permission_scope=scope,
        csp=csp_analysis,
        external_domains=domains,
        issues=_issues_for(scope, risks, csp_analysis),
    )

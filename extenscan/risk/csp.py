"""Content Security Policy analysis for extension manifests."""

from __future__ import annotations

from dataclasses import dataclass, field

from extenscan.risk.hosts import extract_domain

NO_CSP_SCORE = 30
UNSAFE_EVAL_SCORE = 40
UNSAFE_INLINE_SCORE = 30
REMOTE_DOMAIN_SCORE = 10

_SCRIPT_DIRECTIVES = frozenset({"script-src", "default-src"})


@dataclass(frozen=True)
class CspAnalysis:
    """Findings for one extension's CSP string."""

    has_csp: bool = False
    allows_unsafe_eval: bool = False
    allows_unsafe_inline: bool = False
    allows_remote_scripts: bool = False
    allowed_domains: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    score: int = 0


def _is_remote(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def analyze_csp(csp: str | None) -> CspAnalysis:
    """Parse *csp* into directives and score its weaknesses.

    A missing or empty policy is itself an issue.  Scores add up without a
    cap; ``'unsafe-eval'`` and ``'unsafe-inline'`` are counted once per
    occurrence.
    """
    if not csp:
        return CspAnalysis(
            issues=["No Content Security Policy defined"],
            score=NO_CSP_SCORE,
        )

    unsafe_eval = False
    unsafe_inline = False
    remote_scripts = False
    domains: list[str] = []
    issues: list[str] = []
    score = 0

    def _add_domain(value: str) -> None:
        domain = extract_domain(value)
        if domain is not None and domain not in domains:
            domains.append(domain)

    for directive in csp.split(";"):
        parts = directive.split()
        if not parts:
            continue
        name, values = parts[0], parts[1:]

        if name in _SCRIPT_DIRECTIVES:
            for value in values:
                if value == "'unsafe-eval'":
                    unsafe_eval = True
                    issues.append("CSP allows unsafe-eval (enables eval())")
                    score += UNSAFE_EVAL_SCORE
                if value == "'unsafe-inline'":
                    unsafe_inline = True
                    issues.append("CSP allows unsafe-inline scripts")
                    score += UNSAFE_INLINE_SCORE
                if _is_remote(value):
                    remote_scripts = True
                    _add_domain(value)
        elif name == "connect-src":
            for value in values:
                if _is_remote(value) or "*" in value:
                    _add_domain(value)

    if remote_scripts:
        issues.append(
            f"CSP allows loading scripts from {len(domains)} external domain(s)"
        )
        score += REMOTE_DOMAIN_SCORE * len(domains)

    return CspAnalysis(
        has_csp=True,
        allows_unsafe_eval=unsafe_eval,
        allows_unsafe_inline=unsafe_inline,
        allows_remote_scripts=remote_scripts,
        allowed_domains=domains,
        issues=issues,
        score=score,
    )

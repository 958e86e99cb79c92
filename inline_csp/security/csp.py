# inline_csp/security/csp.py
# Header rendering for merged dynamic policies.
from __future__ import annotations

from typing import Iterable

from inline_csp.security.fetch_policy import FetchPolicy

HEADER = "Content-Security-Policy"
REPORT_ONLY_HEADER = "Content-Security-Policy-Report-Only"


def header_name(report_only: bool) -> str:
    return REPORT_ONLY_HEADER if report_only else HEADER


def render_directive(policy: FetchPolicy) -> str:
    """'<directive> <tokens>' or "" when the policy yields no tokens."""
    tokens = policy.tokens()
    if not tokens:
        return ""
    return f"{policy.directive_id} {' '.join(tokens)}"


def build_csp(policies: Iterable[FetchPolicy], report_uri: str = "") -> str:
    directives = [d for d in (render_directive(p) for p in policies) if d]
    if not directives:
        return ""
    if report_uri:
        directives.append(f"report-uri {report_uri}")
    return "; ".join(directives)

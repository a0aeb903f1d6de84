"""
Compliance Scoring

Score = share of the four checks that pass, as a rounded percentage.
100 is COMPLIANT, 75 or more PARTIALLY_COMPLIANT, anything lower NON_COMPLIANT.
"""

from collections.abc import Sequence

from coop_portal.modules.compliance.models import ComplianceStatus

CHECK_FIELDS = (
    "bylaws_compliant",
    "meetings_compliant",
    "records_compliant",
    "financial_compliant",
)


def compute_score(checks: Sequence[bool]) -> tuple[int, ComplianceStatus]:
    """
    Args:
        checks: The four compliance checks

    Returns:
        Tuple of (score 0-100, status)
    """
    if not checks:
        return 0, ComplianceStatus.NON_COMPLIANT

    score = round(sum(1 for check in checks if check) / len(checks) * 100)

    if score == 100:
        return score, ComplianceStatus.COMPLIANT
    if score >= 75:
        return score, ComplianceStatus.PARTIALLY_COMPLIANT
    return score, ComplianceStatus.NON_COMPLIANT


def score_report(report) -> None:
    """Recompute a report's score and status from its checks, in place."""
    report.compliance_score, report.compliance_status = compute_score(
        [bool(getattr(report, name)) for name in CHECK_FIELDS]
    )

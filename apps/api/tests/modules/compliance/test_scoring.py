"""
Unit tests for compliance scoring.
"""

from types import SimpleNamespace

import pytest

from coop_portal.modules.compliance.models import ComplianceStatus
from coop_portal.modules.compliance.scoring import compute_score, score_report


@pytest.mark.parametrize(
    "checks,score,status",
    [
        ([True, True, True, True], 100, ComplianceStatus.COMPLIANT),
        ([True, True, True, False], 75, ComplianceStatus.PARTIALLY_COMPLIANT),
        ([True, False, True, False], 50, ComplianceStatus.NON_COMPLIANT),
        ([False, False, False, True], 25, ComplianceStatus.NON_COMPLIANT),
        ([False, False, False, False], 0, ComplianceStatus.NON_COMPLIANT),
    ],
)
def test_compute_score(checks, score, status):
    assert compute_score(checks) == (score, status)


def test_no_checks_is_non_compliant():
    assert compute_score([]) == (0, ComplianceStatus.NON_COMPLIANT)


def test_score_report_updates_in_place():
    report = SimpleNamespace(
        bylaws_compliant=True,
        meetings_compliant=True,
        records_compliant=None,
        financial_compliant=True,
        compliance_score=None,
        compliance_status=None,
    )

    score_report(report)

    assert report.compliance_score == 75
    assert report.compliance_status == ComplianceStatus.PARTIALLY_COMPLIANT

from typing import List, Optional, Sequence

from config import settings
from .cross_validation import CROSS_VALIDATION_RULES
from .models import (
    AnalysisReport, EligibilityResult, EligibilityStatus, ReportSummary,
    ValidationResult, ValidationStatus,
)
from .mrz_layouts import LAYOUTS

CHECKSUM_RULES = frozenset(
    check.rule for layout in LAYOUTS.values() for check in layout.checks
)

SUMMARY_TEMPLATES = {
    EligibilityStatus.ELIGIBLE: "Applicant appears eligible for a {visa_type} visa; {failed} validation check(s) failed.",
    EligibilityStatus.REVIEW: "Application for a {visa_type} visa needs manual review; {failed} validation check(s) failed.",
    EligibilityStatus.INELIGIBLE: "Applicant is not eligible for a {visa_type} visa; {failed} validation check(s) failed.",
}


def _failed(validations: Sequence[ValidationResult], rules) -> List[str]:
    return [
        v.detail for v in validations
        if v.status == ValidationStatus.FAIL and v.rule in rules
    ]


def build_highlights(validations: Sequence[ValidationResult],
                     eligibility: EligibilityResult,
                     limit: Optional[int] = None) -> List[str]:
    """
    Pick the most important findings, in priority order:
    ineligibility reasons, failed check digits, failed applicant comparisons.
    """
    if limit is None:
        limit = settings.REPORT_MAX_HIGHLIGHTS

    highlights: List[str] = []
    if eligibility.status == EligibilityStatus.INELIGIBLE:
        highlights.extend(eligibility.reasons)
    highlights.extend(_failed(validations, CHECKSUM_RULES))
    highlights.extend(_failed(validations, set(CROSS_VALIDATION_RULES)))
    return highlights[:limit]


def synthesize_report(document_validations: Sequence[Sequence[ValidationResult]],
                      eligibility: EligibilityResult,
                      max_highlights: Optional[int] = None) -> AnalysisReport:
    """
    Assemble the final report.

    Per-document validations are concatenated in document order, each keeping
    its own rule order.
    """
    validations = tuple(v for results in document_validations for v in results)
    failed_count = sum(1 for v in validations if v.status == ValidationStatus.FAIL)

    summary = ReportSummary(
        text=SUMMARY_TEMPLATES[eligibility.status].format(
            visa_type=eligibility.visa_type, failed=failed_count
        ),
        highlights=tuple(build_highlights(validations, eligibility, max_highlights)),
    )

    return AnalysisReport(summary=summary, validations=validations, eligibility=eligibility)

"""
Tests for report synthesis.
"""
from pipeline.models import (
    EligibilityResult, EligibilityStatus, ValidationResult, ValidationStatus
)
from pipeline.report import CHECKSUM_RULES, build_highlights, synthesize_report


def _result(rule, status, detail, document=0):
    return ValidationResult(rule=rule, status=status, detail=detail, document=document)


INELIGIBLE = EligibilityResult(
    status=EligibilityStatus.INELIGIBLE,
    visa_type="tourist",
    reasons=("nationality restricted",),
)


class TestHighlights:
    """Test highlight priority and cap."""

    def test_priority_order(self):
        """Test reasons, then checksum failures, then cross-validation failures."""
        validations = [
            _result("name_match", ValidationStatus.FAIL, "name differs"),
            _result("mrz_checksum", ValidationStatus.FAIL, "composite bad"),
            _result("mrz_extraction", ValidationStatus.PASS, "ok"),
            _result("date_of_birth_match", ValidationStatus.PASS, "dob ok"),
        ]
        highlights = build_highlights(validations, INELIGIBLE, limit=5)
        assert highlights == ["nationality restricted", "composite bad", "name differs"]

    def test_cap(self):
        validations = [
            _result("mrz_checksum", ValidationStatus.FAIL, f"bad {i}") for i in range(10)
        ]
        assert len(build_highlights(validations, INELIGIBLE, limit=3)) == 3

    def test_review_reasons_are_not_highlighted_as_ineligibility(self):
        review = EligibilityResult(status=EligibilityStatus.REVIEW, visa_type="tourist",
                                   reasons=("expiry unknown",))
        assert build_highlights([], review, limit=5) == []

    def test_checksum_rules_cover_composite(self):
        assert "mrz_checksum" in CHECKSUM_RULES
        assert "mrz_document_number_checksum" in CHECKSUM_RULES


class TestSynthesize:
    """Test report assembly."""

    def test_concatenates_documents_in_order(self):
        """Test per-document sequences are joined without reordering or dedup."""
        first = [_result("mrz_extraction", ValidationStatus.PASS, "a", 0),
                 _result("name_match", ValidationStatus.PASS, "b", 0)]
        second = [_result("mrz_extraction", ValidationStatus.FAIL, "c", 1),
                  _result("name_match", ValidationStatus.FAIL, "d", 1)]
        report = synthesize_report([first, second], INELIGIBLE)

        assert [v.detail for v in report.validations] == ["a", "b", "c", "d"]
        assert report.eligibility == INELIGIBLE

    def test_summary_text(self):
        validations = [_result("name_match", ValidationStatus.FAIL, "x")]
        report = synthesize_report([validations], INELIGIBLE)

        assert report.summary.text == (
            "Applicant is not eligible for a tourist visa; 1 validation check(s) failed."
        )
        assert report.summary.highlights[0] == "nationality restricted"

    def test_serializes_camel_case(self):
        report = synthesize_report([[]], INELIGIBLE)
        payload = report.model_dump(mode="json", by_alias=True)
        assert payload["eligibility"]["visaType"] == "tourist"
        assert payload["eligibility"]["status"] == "ineligible"

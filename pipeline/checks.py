from datetime import date
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from .models import (
    MrzDocument, MrzParseFailure, Policy, ValidationResult, ValidationStatus
)

MRZ_EXTRACTION = "mrz_extraction"
PASSPORT_EXPIRY = "passport_expiry"


class DocumentChecks:
    """
    Per-document checks that are not check digits or applicant comparisons:
    whether an MRZ was extracted at all and whether the document is in date.
    """

    def __init__(self, document_index: int = 0):
        self.document_index = document_index

    def _result(self, rule: str, status: ValidationStatus, detail: str) -> ValidationResult:
        return ValidationResult(
            rule=rule,
            status=status,
            detail=f"Document {self.document_index + 1}: {detail}",
            document=self.document_index,
        )

    def extraction_check(self, parsed: Optional[Union[MrzDocument, MrzParseFailure]]) -> ValidationResult:
        """Record whether the MRZ was located and parsed"""
        if parsed is None:
            return self._result(MRZ_EXTRACTION, ValidationStatus.FAIL,
                                "no machine-readable zone located")

        if isinstance(parsed, MrzParseFailure):
            return self._result(MRZ_EXTRACTION, ValidationStatus.FAIL,
                                f"MRZ could not be parsed ({parsed.reason})")

        return self._result(MRZ_EXTRACTION, ValidationStatus.PASS,
                            f"{parsed.format.value} MRZ extracted")

    def expiry_check(self, document: MrzDocument, policy: Policy,
                     today: Optional[date] = None) -> ValidationResult:
        """Check document expiry against today and the policy validity window"""
        today = today or date.today()
        expiry = document.expiry_date

        if expiry is None:
            return self._result(PASSPORT_EXPIRY, ValidationStatus.FAIL,
                                "expiry date not readable from MRZ")

        if expiry < today:
            return self._result(PASSPORT_EXPIRY, ValidationStatus.FAIL,
                                f"document expired on {expiry.isoformat()}")

        required_until = today + relativedelta(months=policy.minimum_passport_validity_months)
        if expiry < required_until:
            return self._result(PASSPORT_EXPIRY, ValidationStatus.WARNING,
                                f"document expires on {expiry.isoformat()}, less than "
                                f"{policy.minimum_passport_validity_months} months from today")

        return self._result(PASSPORT_EXPIRY, ValidationStatus.PASS,
                            f"document valid until {expiry.isoformat()}")

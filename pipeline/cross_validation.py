import re
import unicodedata
from typing import List, Optional

from .models import Applicant, MrzDocument, ValidationResult, ValidationStatus

NAME_MATCH = "name_match"
DATE_OF_BIRTH_MATCH = "date_of_birth_match"
PASSPORT_NUMBER_MATCH = "passport_number_match"
NATIONALITY_MATCH = "nationality_match"

CROSS_VALIDATION_RULES = (
    NAME_MATCH,
    DATE_OF_BIRTH_MATCH,
    PASSPORT_NUMBER_MATCH,
    NATIONALITY_MATCH,
)


def normalize_name(name: Optional[str]) -> str:
    """Uppercase, fold diacritics, turn separators into spaces and collapse whitespace"""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(c for c in decomposed if not unicodedata.combining(c))
    letters_only = re.sub(r"[^A-Z0-9]+", " ", folded.upper())
    return re.sub(r"\s+", " ", letters_only).strip()


def normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


class CrossValidator:
    """
    Compares applicant-declared fields with the fields read from one document.

    Always emits the same four results in the same order, whether or not the
    document was extracted, so report consumers see a stable shape.
    """

    def __init__(self, applicant: Applicant, document_index: int = 0):
        self.applicant = applicant
        self.document_index = document_index

    def _result(self, rule: str, status: ValidationStatus, detail: str) -> ValidationResult:
        return ValidationResult(
            rule=rule,
            status=status,
            detail=f"Document {self.document_index + 1}: {detail}",
            document=self.document_index,
        )

    def _missing(self, rule: str, field: str) -> ValidationResult:
        return self._result(rule, ValidationStatus.FAIL,
                            f"{field} unavailable, no MRZ data was extracted")

    def check_name(self, document: MrzDocument) -> ValidationResult:
        declared = normalize_name(self.applicant.full_name)
        extracted = normalize_name(document.full_name)

        if not extracted:
            return self._result(NAME_MATCH, ValidationStatus.FAIL, "name not readable from MRZ")

        if declared == extracted:
            return self._result(NAME_MATCH, ValidationStatus.PASS, "name matches MRZ")

        if sorted(declared.split()) == sorted(extracted.split()):
            return self._result(NAME_MATCH, ValidationStatus.WARNING,
                                f"name tokens match MRZ '{extracted}' in a different order")

        return self._result(NAME_MATCH, ValidationStatus.FAIL,
                            f"declared name does not match MRZ name '{extracted}'")

    def check_date_of_birth(self, document: MrzDocument) -> ValidationResult:
        if document.date_of_birth is None:
            return self._result(DATE_OF_BIRTH_MATCH, ValidationStatus.FAIL,
                                "date of birth not readable from MRZ")

        if document.date_of_birth == self.applicant.date_of_birth:
            return self._result(DATE_OF_BIRTH_MATCH, ValidationStatus.PASS,
                                "date of birth matches MRZ")

        return self._result(DATE_OF_BIRTH_MATCH, ValidationStatus.FAIL,
                            f"declared date of birth {self.applicant.date_of_birth.isoformat()} "
                            f"does not match MRZ {document.date_of_birth.isoformat()}")

    def check_passport_number(self, document: MrzDocument) -> ValidationResult:
        declared = normalize_code(self.applicant.passport_number)
        extracted = normalize_code(document.document_number)

        if declared == extracted:
            return self._result(PASSPORT_NUMBER_MATCH, ValidationStatus.PASS,
                                "passport number matches MRZ")

        return self._result(PASSPORT_NUMBER_MATCH, ValidationStatus.FAIL,
                            f"declared passport number does not match MRZ document number '{extracted}'")

    def check_nationality(self, document: MrzDocument) -> ValidationResult:
        declared = normalize_code(self.applicant.nationality)
        extracted = normalize_code(document.nationality)

        if declared == extracted:
            return self._result(NATIONALITY_MATCH, ValidationStatus.PASS,
                                "nationality matches MRZ")

        return self._result(NATIONALITY_MATCH, ValidationStatus.FAIL,
                            f"declared nationality {declared} does not match MRZ {extracted or 'blank'}")

    def validate(self, document: Optional[MrzDocument]) -> List[ValidationResult]:
        if document is None:
            return [
                self._missing(NAME_MATCH, "name"),
                self._missing(DATE_OF_BIRTH_MATCH, "date of birth"),
                self._missing(PASSPORT_NUMBER_MATCH, "passport number"),
                self._missing(NATIONALITY_MATCH, "nationality"),
            ]

        return [
            self.check_name(document),
            self.check_date_of_birth(document),
            self.check_passport_number(document),
            self.check_nationality(document),
        ]


def cross_validate(applicant: Applicant, document: Optional[MrzDocument],
                   document_index: int = 0) -> List[ValidationResult]:
    return CrossValidator(applicant, document_index).validate(document)

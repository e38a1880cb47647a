"""
Typed records exchanged between pipeline stages.

Every record is frozen: stages build new values instead of mutating their
inputs. JSON names are camelCase to match the HTTP contract.
"""

from datetime import date
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Applicant(FrozenModel):
    full_name: str = Field(min_length=1)
    date_of_birth: date
    passport_number: str = Field(min_length=1)
    nationality: str = Field(min_length=1)
    visa_type: str = Field(min_length=1)


class Policy(FrozenModel):
    version: str
    minimum_passport_validity_months: int = Field(ge=0)
    allowed_visa_types: Tuple[str, ...] = ()
    restricted_nationalities: Tuple[str, ...] = ()
    minimum_applicant_age: int = Field(ge=0)

    @field_validator("restricted_nationalities")
    @classmethod
    def _lowercase_nationalities(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(n.strip().lower() for n in value)


class PolicyOverride(FrozenModel):
    """Partial policy supplied by a caller; unset fields keep their defaults"""
    version: Optional[str] = None
    minimum_passport_validity_months: Optional[int] = Field(default=None, ge=0)
    allowed_visa_types: Optional[Tuple[str, ...]] = None
    restricted_nationalities: Optional[Tuple[str, ...]] = None
    minimum_applicant_age: Optional[int] = Field(default=None, ge=0)


class RecognizedLine(FrozenModel):
    text: str
    confidence: float = 0.0
    document_index: int = 0
    line_index: int = 0


class DocumentFormat(str, Enum):
    TD1 = "TD1"
    TD2 = "TD2"
    TD3 = "TD3"


class MrzBlock(FrozenModel):
    format: DocumentFormat
    lines: Tuple[str, ...]


class MrzDocument(FrozenModel):
    format: DocumentFormat
    lines: Tuple[str, ...]
    document_type: str
    issuing_state: str
    surname: str
    given_names: str
    document_number: str
    nationality: str
    date_of_birth: Optional[date] = None
    sex: str
    expiry_date: Optional[date] = None
    personal_number: str = ""
    document_number_check: str
    date_of_birth_check: str
    expiry_date_check: str
    personal_number_check: Optional[str] = None
    composite_check: str

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.given_names, self.surname) if part)


class MrzParseFailure(FrozenModel):
    """Marker returned (never raised) when MRZ lines do not fit their layout"""
    format: Optional[DocumentFormat] = None
    reason: str


class ValidationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"


class ValidationResult(FrozenModel):
    rule: str
    status: ValidationStatus
    detail: str
    document: int = 0


class EligibilityStatus(str, Enum):
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    REVIEW = "review"


class EligibilityResult(FrozenModel):
    status: EligibilityStatus
    visa_type: str
    reasons: Tuple[str, ...] = ()


class ReportSummary(FrozenModel):
    text: str
    highlights: Tuple[str, ...] = ()


class AnalysisReport(FrozenModel):
    summary: ReportSummary
    validations: Tuple[ValidationResult, ...]
    eligibility: EligibilityResult

import logging
from typing import List

from config import MRZ_FILLER
from .models import MrzDocument, ValidationResult, ValidationStatus
from .mrz_layouts import LAYOUTS, CheckSpec

logger = logging.getLogger(__name__)

# ICAO 9303 weight pattern: 7, 3, 1, 7, 3, 1, ...
WEIGHTS = (7, 3, 1)


def char_value(char: str) -> int:
    """Digits keep their value, A=10 ... Z=35, filler counts as 0"""
    if char.isdigit():
        return int(char)
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    return 0


def compute_check_digit(data: str) -> int:
    total = 0
    for i, char in enumerate(data):
        total += char_value(char) * WEIGHTS[i % 3]
    return total % 10


def _embedded_digit(char: str):
    # A filler in a check-digit slot means the field is empty, i.e. 0
    if char == MRZ_FILLER:
        return 0
    if char.isdigit():
        return int(char)
    return None


def _run_check(lines, check: CheckSpec, document_index: int) -> ValidationResult:
    data = "".join(lines[line][start:end] for line, start, end in check.segments)
    line, pos = check.digit
    embedded_char = lines[line][pos]
    embedded = _embedded_digit(embedded_char)
    computed = compute_check_digit(data)

    if embedded is None:
        return ValidationResult(
            rule=check.rule,
            status=ValidationStatus.FAIL,
            detail=f"Document {document_index + 1}: {check.label} check digit "
                   f"'{embedded_char}' is not a digit (expected {computed})",
            document=document_index,
        )

    if embedded != computed:
        logger.debug("Check digit mismatch on %s: embedded=%s computed=%s",
                     check.rule, embedded, computed)
        return ValidationResult(
            rule=check.rule,
            status=ValidationStatus.FAIL,
            detail=f"Document {document_index + 1}: {check.label} check digit "
                   f"{embedded} does not match computed {computed}",
            document=document_index,
        )

    return ValidationResult(
        rule=check.rule,
        status=ValidationStatus.PASS,
        detail=f"Document {document_index + 1}: {check.label} check digit valid",
        document=document_index,
    )


def validate_checksums(document: MrzDocument, document_index: int = 0) -> List[ValidationResult]:
    """
    Recompute every check digit the document's format carries.

    One result per checked field, in layout order, with the composite check
    last. A mismatch never stops the remaining checks.
    """
    layout = LAYOUTS[document.format]
    return [_run_check(document.lines, check, document_index) for check in layout.checks]

"""
ICAO 9303 MRZ layouts, one field-offset table per document format.

Offsets are zero-based, end-exclusive, relative to the line they sit on.
"""

from typing import Dict, List, NamedTuple, Tuple

from config import MRZ_LINE_WIDTHS
from .models import DocumentFormat

ALPHA = "alpha"
NUMERIC = "numeric"
ALNUM = "alnum"


class FieldSpec(NamedTuple):
    name: str
    line: int
    start: int
    end: int
    kind: str


class CheckSpec(NamedTuple):
    rule: str
    label: str
    # (line, start, end) slices concatenated before computing the digit
    segments: Tuple[Tuple[int, int, int], ...]
    # (line, position) of the embedded check digit
    digit: Tuple[int, int]


class MrzLayout(NamedTuple):
    format: DocumentFormat
    line_count: int
    width: int
    fields: Tuple[FieldSpec, ...]
    checks: Tuple[CheckSpec, ...]


TD3_LAYOUT = MrzLayout(
    format=DocumentFormat.TD3,
    line_count=2,
    width=MRZ_LINE_WIDTHS["TD3"],
    fields=(
        FieldSpec("document_type", 0, 0, 2, ALPHA),
        FieldSpec("issuing_state", 0, 2, 5, ALPHA),
        FieldSpec("name", 0, 5, 44, ALPHA),
        FieldSpec("document_number", 1, 0, 9, ALNUM),
        FieldSpec("document_number_check", 1, 9, 10, NUMERIC),
        FieldSpec("nationality", 1, 10, 13, ALPHA),
        FieldSpec("date_of_birth", 1, 13, 19, NUMERIC),
        FieldSpec("date_of_birth_check", 1, 19, 20, NUMERIC),
        FieldSpec("sex", 1, 20, 21, ALPHA),
        FieldSpec("expiry_date", 1, 21, 27, NUMERIC),
        FieldSpec("expiry_date_check", 1, 27, 28, NUMERIC),
        FieldSpec("personal_number", 1, 28, 42, ALNUM),
        FieldSpec("personal_number_check", 1, 42, 43, NUMERIC),
        FieldSpec("composite_check", 1, 43, 44, NUMERIC),
    ),
    checks=(
        CheckSpec("mrz_document_number_checksum", "document number", ((1, 0, 9),), (1, 9)),
        CheckSpec("mrz_birth_date_checksum", "date of birth", ((1, 13, 19),), (1, 19)),
        CheckSpec("mrz_expiry_date_checksum", "expiry date", ((1, 21, 27),), (1, 27)),
        CheckSpec("mrz_personal_number_checksum", "personal number", ((1, 28, 42),), (1, 42)),
        CheckSpec("mrz_checksum", "composite", ((1, 0, 10), (1, 13, 20), (1, 21, 43)), (1, 43)),
    ),
)

TD2_LAYOUT = MrzLayout(
    format=DocumentFormat.TD2,
    line_count=2,
    width=MRZ_LINE_WIDTHS["TD2"],
    fields=(
        FieldSpec("document_type", 0, 0, 2, ALPHA),
        FieldSpec("issuing_state", 0, 2, 5, ALPHA),
        FieldSpec("name", 0, 5, 36, ALPHA),
        FieldSpec("document_number", 1, 0, 9, ALNUM),
        FieldSpec("document_number_check", 1, 9, 10, NUMERIC),
        FieldSpec("nationality", 1, 10, 13, ALPHA),
        FieldSpec("date_of_birth", 1, 13, 19, NUMERIC),
        FieldSpec("date_of_birth_check", 1, 19, 20, NUMERIC),
        FieldSpec("sex", 1, 20, 21, ALPHA),
        FieldSpec("expiry_date", 1, 21, 27, NUMERIC),
        FieldSpec("expiry_date_check", 1, 27, 28, NUMERIC),
        FieldSpec("personal_number", 1, 28, 35, ALNUM),
        FieldSpec("composite_check", 1, 35, 36, NUMERIC),
    ),
    checks=(
        CheckSpec("mrz_document_number_checksum", "document number", ((1, 0, 9),), (1, 9)),
        CheckSpec("mrz_birth_date_checksum", "date of birth", ((1, 13, 19),), (1, 19)),
        CheckSpec("mrz_expiry_date_checksum", "expiry date", ((1, 21, 27),), (1, 27)),
        CheckSpec("mrz_checksum", "composite", ((1, 0, 10), (1, 13, 20), (1, 21, 35)), (1, 35)),
    ),
)

TD1_LAYOUT = MrzLayout(
    format=DocumentFormat.TD1,
    line_count=3,
    width=MRZ_LINE_WIDTHS["TD1"],
    fields=(
        FieldSpec("document_type", 0, 0, 2, ALPHA),
        FieldSpec("issuing_state", 0, 2, 5, ALPHA),
        FieldSpec("document_number", 0, 5, 14, ALNUM),
        FieldSpec("document_number_check", 0, 14, 15, NUMERIC),
        FieldSpec("personal_number", 0, 15, 30, ALNUM),
        FieldSpec("date_of_birth", 1, 0, 6, NUMERIC),
        FieldSpec("date_of_birth_check", 1, 6, 7, NUMERIC),
        FieldSpec("sex", 1, 7, 8, ALPHA),
        FieldSpec("expiry_date", 1, 8, 14, NUMERIC),
        FieldSpec("expiry_date_check", 1, 14, 15, NUMERIC),
        FieldSpec("nationality", 1, 15, 18, ALPHA),
        FieldSpec("optional_data", 1, 18, 29, ALNUM),
        FieldSpec("composite_check", 1, 29, 30, NUMERIC),
        FieldSpec("name", 2, 0, 30, ALPHA),
    ),
    checks=(
        CheckSpec("mrz_document_number_checksum", "document number", ((0, 5, 14),), (0, 14)),
        CheckSpec("mrz_birth_date_checksum", "date of birth", ((1, 0, 6),), (1, 6)),
        CheckSpec("mrz_expiry_date_checksum", "expiry date", ((1, 8, 14),), (1, 14)),
        CheckSpec("mrz_checksum", "composite", ((0, 5, 30), (1, 0, 7), (1, 8, 15), (1, 18, 29)), (1, 29)),
    ),
)

LAYOUTS: Dict[DocumentFormat, MrzLayout] = {
    DocumentFormat.TD1: TD1_LAYOUT,
    DocumentFormat.TD2: TD2_LAYOUT,
    DocumentFormat.TD3: TD3_LAYOUT,
}

# Search order when locating a block; passports first
SEARCH_ORDER = (DocumentFormat.TD3, DocumentFormat.TD2, DocumentFormat.TD1)


def line_templates(layout: MrzLayout) -> List[List[str]]:
    """
    Expand a layout's field table into one character-class list per line.

    Each position holds the kind of the field covering it; positions no field
    covers default to alphanumeric.
    """
    templates = [[ALNUM] * layout.width for _ in range(layout.line_count)]
    for spec in layout.fields:
        for pos in range(spec.start, spec.end):
            templates[spec.line][pos] = spec.kind
    return templates

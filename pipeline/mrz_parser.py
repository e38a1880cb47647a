import logging
import re
from datetime import date
from typing import Dict, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from config import settings, MRZ_FILLER
from .models import DocumentFormat, MrzBlock, MrzDocument, MrzParseFailure
from .mrz_layouts import LAYOUTS, MrzLayout

logger = logging.getLogger(__name__)


def detect_format(lines: Sequence[str]) -> Optional[DocumentFormat]:
    """Infer the document format from line count and width"""
    for fmt, layout in LAYOUTS.items():
        if len(lines) == layout.line_count and all(len(line) == layout.width for line in lines):
            return fmt
    return None


def strip_filler(value: str) -> str:
    return value.strip(MRZ_FILLER)


def split_name(name_field: str):
    """
    Split the MRZ name field into (surname, given names).

    Surname and given names are separated by the first '<<'; single fillers
    inside either part stand for spaces or hyphens.
    """
    raw = name_field.rstrip(MRZ_FILLER)
    surname, _, given = raw.partition(MRZ_FILLER * 2)

    def _words(part: str) -> str:
        return re.sub(r"\s+", " ", part.replace(MRZ_FILLER, " ")).strip()

    return _words(surname), _words(given)


def resolve_year(two_digit_year: int, tolerance: int, today: Optional[date] = None) -> int:
    """
    Resolve a two-digit year using a pivot around the current year.

    Years above (current two-digit year + tolerance) belong to the previous
    century, everything else to the current one.
    """
    today = today or date.today()
    century = (today.year // 100) * 100
    if two_digit_year > (today.year % 100) + tolerance:
        return century - 100 + two_digit_year
    return century + two_digit_year


def parse_mrz_date(value: str, tolerance: int, today: Optional[date] = None) -> Optional[date]:
    """Parse YYMMDD; returns None for non-numeric or impossible dates"""
    if len(value) != 6 or not value.isdigit():
        return None
    year = resolve_year(int(value[:2]), tolerance, today)
    try:
        return date(year, int(value[2:4]), int(value[4:6]))
    except ValueError:
        return None


def parse_birth_date(value: str, today: Optional[date] = None) -> Optional[date]:
    """
    Parse a YYMMDD birth date.

    Nobody is born in the future, so a date the pivot places after today
    belongs to the previous century.
    """
    today = today or date.today()
    born = parse_mrz_date(value, settings.MRZ_BIRTH_YEAR_TOLERANCE, today)
    if born is not None and born > today:
        born -= relativedelta(years=100)
    return born


def _slice_fields(lines: Sequence[str], layout: MrzLayout) -> Dict[str, str]:
    return {spec.name: lines[spec.line][spec.start:spec.end] for spec in layout.fields}


def parse_mrz(block: Union[MrzBlock, Sequence[str]],
              fmt: Optional[DocumentFormat] = None,
              today: Optional[date] = None) -> Union[MrzDocument, MrzParseFailure]:
    """
    Decode normalized MRZ lines into an MrzDocument.

    Dispatches on the format tag to that format's field-offset table. When the
    lines do not fit the layout width or line count, a MrzParseFailure marker
    is returned instead of raising.
    """
    if isinstance(block, MrzBlock):
        lines = list(block.lines)
        fmt = fmt or block.format
    else:
        lines = list(block)
        fmt = fmt or detect_format(lines)

    if fmt is None:
        return MrzParseFailure(
            reason=f"Unrecognized MRZ shape ({len(lines)} lines of widths "
                   f"{', '.join(str(len(line)) for line in lines) or 'none'})"
        )

    layout = LAYOUTS[fmt]
    if len(lines) != layout.line_count:
        return MrzParseFailure(
            format=fmt,
            reason=f"{fmt.value} expects {layout.line_count} lines, got {len(lines)}",
        )

    for i, line in enumerate(lines):
        if len(line) != layout.width:
            return MrzParseFailure(
                format=fmt,
                reason=f"{fmt.value} line {i + 1} is {len(line)} characters, expected {layout.width}",
            )

    raw = _slice_fields(lines, layout)
    surname, given_names = split_name(raw["name"])

    document = MrzDocument(
        format=fmt,
        lines=tuple(lines),
        document_type=strip_filler(raw["document_type"]),
        issuing_state=strip_filler(raw["issuing_state"]),
        surname=surname,
        given_names=given_names,
        document_number=strip_filler(raw["document_number"]),
        nationality=strip_filler(raw["nationality"]),
        date_of_birth=parse_birth_date(raw["date_of_birth"], today),
        sex=strip_filler(raw["sex"]),
        expiry_date=parse_mrz_date(raw["expiry_date"], settings.MRZ_EXPIRY_YEAR_TOLERANCE, today),
        personal_number=strip_filler(raw["personal_number"]),
        document_number_check=raw["document_number_check"],
        date_of_birth_check=raw["date_of_birth_check"],
        expiry_date_check=raw["expiry_date_check"],
        personal_number_check=raw.get("personal_number_check"),
        composite_check=raw["composite_check"],
    )

    logger.debug("Parsed %s document issued by %s", fmt.value, document.issuing_state)
    return document

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Sequence, Union

from config import settings, MRZ_ALPHABET_REGEX, MRZ_FILLER
from .models import MrzBlock, RecognizedLine
from .mrz_layouts import ALPHA, NUMERIC, LAYOUTS, SEARCH_ORDER, MrzLayout, line_templates

logger = logging.getLogger(__name__)

_MRZ_ALPHABET = re.compile(MRZ_ALPHABET_REGEX)

# Glyphs OCR engines commonly emit for the '<' filler
FILLER_LOOKALIKES = "«‹"


class CharacterSubstitutions(NamedTuple):
    """
    OCR confusion table, applied in the direction a position expects.

    to_digit fixes letters read where the layout wants a digit, to_alpha
    fixes digits read where it wants a letter.
    """
    to_digit: Dict[str, str]
    to_alpha: Dict[str, str]


DEFAULT_SUBSTITUTIONS = CharacterSubstitutions(
    to_digit={"O": "0", "Q": "0", "D": "0", "I": "1", "L": "1",
              "Z": "2", "S": "5", "G": "6", "B": "8"},
    to_alpha={"0": "O", "1": "I", "2": "Z", "5": "S", "6": "G", "8": "B"},
)


def clean_line(text: str) -> str:
    """Strip whitespace, uppercase and map filler look-alikes to '<'"""
    cleaned = re.sub(r"\s+", "", text.upper())
    for glyph in FILLER_LOOKALIKES:
        cleaned = cleaned.replace(glyph, MRZ_FILLER)
    return cleaned


def _fit_width(line: str, width: int, tolerance: int) -> Optional[str]:
    if len(line) == width:
        return line
    # Trailing fillers are the usual casualty of OCR on the MRZ
    if width - tolerance <= len(line) < width and line.endswith(MRZ_FILLER):
        return line.ljust(width, MRZ_FILLER)
    return None


def normalize_line(line: str, template: Sequence[str],
                   substitutions: CharacterSubstitutions = DEFAULT_SUBSTITUTIONS) -> str:
    chars = list(line)
    for pos, char in enumerate(chars):
        kind = template[pos] if pos < len(template) else None
        if kind == NUMERIC:
            chars[pos] = substitutions.to_digit.get(char, char)
        elif kind == ALPHA:
            chars[pos] = substitutions.to_alpha.get(char, char)
    return "".join(chars)


def normalize_block(lines: Sequence[str], layout: MrzLayout,
                    substitutions: CharacterSubstitutions = DEFAULT_SUBSTITUTIONS) -> List[str]:
    templates = line_templates(layout)
    return [normalize_line(line, templates[i], substitutions) for i, line in enumerate(lines)]


def locate_mrz(lines: Sequence[Union[RecognizedLine, str]],
               substitutions: CharacterSubstitutions = DEFAULT_SUBSTITUTIONS,
               length_tolerance: Optional[int] = None) -> Optional[MrzBlock]:
    """
    Find the MRZ block in one document's recognized lines.

    Looks for a contiguous run of lines matching a format's fixed width and
    line count (TD3 2x44, TD2 2x36, TD1 3x30), bottom-up since the MRZ sits
    at the foot of the document. The run is normalized position by position
    and accepted only if every character is in the MRZ alphabet.

    Returns None when no block is found; that is an expected outcome, not an
    error.
    """
    if length_tolerance is None:
        length_tolerance = settings.MRZ_LINE_LENGTH_TOLERANCE

    cleaned = [clean_line(line.text if isinstance(line, RecognizedLine) else line)
               for line in lines]

    for fmt in SEARCH_ORDER:
        layout = LAYOUTS[fmt]
        fitted = [_fit_width(line, layout.width, length_tolerance) for line in cleaned]

        for start in range(len(fitted) - layout.line_count, -1, -1):
            window = fitted[start:start + layout.line_count]
            if any(line is None for line in window):
                continue

            normalized = normalize_block(window, layout, substitutions)
            if all(_MRZ_ALPHABET.fullmatch(line) for line in normalized):
                logger.debug("Located %s MRZ at lines %d-%d",
                             fmt.value, start, start + layout.line_count - 1)
                return MrzBlock(format=fmt, lines=tuple(normalized))

    return None

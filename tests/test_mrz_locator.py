"""
Tests for MRZ location and OCR character normalization.
"""
from pipeline.models import DocumentFormat
from pipeline.mrz_layouts import ALNUM, ALPHA, NUMERIC, TD3_LAYOUT, line_templates
from pipeline.mrz_locator import (
    CharacterSubstitutions, clean_line, locate_mrz, normalize_line
)

from conftest import SMITH_TD3, TD1_SPECIMEN, TD2_SPECIMEN, TD3_SPECIMEN, to_lines


class TestLocate:
    """Test finding the MRZ block among recognized lines."""

    def test_finds_td3_below_visual_zone(self):
        """Test TD3 block is found after non-MRZ text."""
        lines = to_lines(["REPUBLIC OF UTOPIA", "PASSPORT / PASSEPORT"] + TD3_SPECIMEN)
        block = locate_mrz(lines)

        assert block is not None
        assert block.format == DocumentFormat.TD3
        assert list(block.lines) == TD3_SPECIMEN

    def test_finds_td2_and_td1(self):
        """Test ID card formats are recognized by width and line count."""
        assert locate_mrz(TD2_SPECIMEN).format == DocumentFormat.TD2
        block = locate_mrz(["IDENTITY CARD"] + TD1_SPECIMEN)
        assert block.format == DocumentFormat.TD1
        assert list(block.lines) == TD1_SPECIMEN

    def test_no_mrz_returns_none(self):
        """Test absent MRZ is a None result, not an exception."""
        assert locate_mrz([]) is None
        assert locate_mrz(to_lines(["Name: John Smith", "Born 1990"])) is None

    def test_lines_must_be_contiguous(self):
        """Test MRZ lines separated by other text are not a block."""
        assert locate_mrz([TD3_SPECIMEN[0], "SIGNATURE", TD3_SPECIMEN[1]]) is None

    def test_rejects_characters_outside_alphabet(self):
        """Test a width-matching line with punctuation is not an MRZ."""
        bad = TD3_SPECIMEN[1][:20] + "." + TD3_SPECIMEN[1][21:]
        assert locate_mrz([TD3_SPECIMEN[0], bad]) is None

    def test_strips_spaces_and_lowercase(self):
        """Test OCR spacing and case are cleaned before matching."""
        spaced = [" ".join(TD3_SPECIMEN[0][i:i + 11] for i in range(0, 44, 11)).lower(),
                  TD3_SPECIMEN[1]]
        block = locate_mrz(spaced)
        assert list(block.lines) == TD3_SPECIMEN

    def test_pads_dropped_trailing_fillers(self):
        """Test lines missing trailing fillers are padded back to width."""
        block = locate_mrz([TD3_SPECIMEN[0][:-2], TD3_SPECIMEN[1]])
        assert list(block.lines) == TD3_SPECIMEN

    def test_filler_lookalikes(self):
        """Test guillemets read for '<' are mapped to fillers."""
        block = locate_mrz([TD3_SPECIMEN[0].replace("<<<<", "«<<‹"), TD3_SPECIMEN[1]])
        assert list(block.lines) == TD3_SPECIMEN


class TestNormalize:
    """Test position-aware confusable character correction."""

    def test_letters_in_numeric_fields_become_digits(self):
        """Test O read for 0 inside dates is corrected."""
        noisy = "L898902C36UTO9OO5019M28O1153<<<<<<<<<<<<<<08"
        block = locate_mrz([SMITH_TD3[0], noisy])
        assert block.lines[1] == SMITH_TD3[1]

    def test_digits_in_alpha_fields_become_letters(self):
        """Test 0 and 1 read inside names and codes are corrected."""
        noisy = "P<UT0SM1TH<<J0HN<<<<<<<<<<<<<<<<<<<<<<<<<<<<"
        block = locate_mrz([noisy, SMITH_TD3[1]])
        assert block.lines[0] == SMITH_TD3[0]

    def test_alphanumeric_fields_untouched(self):
        """Test document number positions keep whatever was read."""
        template = line_templates(TD3_LAYOUT)[1]
        assert template[0] == ALNUM
        assert template[13] == NUMERIC
        assert template[10] == ALPHA
        assert normalize_line("O0I1", template[:4]) == "O0I1"

    def test_substitution_table_is_an_input(self):
        """Test an empty substitution table disables correction."""
        noisy = "L898902C36UTO9OO5019M2801153<<<<<<<<<<<<<<08"
        block = locate_mrz([SMITH_TD3[0], noisy],
                           substitutions=CharacterSubstitutions(to_digit={}, to_alpha={}))
        assert block.lines[1] == noisy

    def test_clean_line(self):
        """Test whitespace removal and uppercasing."""
        assert clean_line(" p<uto  smith ") == "P<UTOSMITH"

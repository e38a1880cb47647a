"""
Pytest configuration and fixtures for the document verification tests.
"""
from datetime import date

import pytest

from pipeline.models import Applicant, RecognizedLine
from pipeline.mrz_parser import parse_mrz
from pipeline.policy import default_policy

# Fixed evaluation date so expiry and age rules are deterministic
TODAY = date(2026, 1, 15)

# ICAO 9303 specimen documents
TD3_SPECIMEN = [
    "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<",
    "L898902C36UTO7408122F1204159ZE184226B<<<<<10",
]

TD2_SPECIMEN = [
    "I<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<",
    "D231458907UTO7408122F1204159<<<<<<<6",
]

TD1_SPECIMEN = [
    "I<UTOD231458907<<<<<<<<<<<<<<<",
    "7408122F1204159UTO<<<<<<<<<<<6",
    "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
]

# JOHN SMITH, born 1990-05-01, passport valid until 2028-01-15
SMITH_TD3 = [
    "P<UTOSMITH<<JOHN<<<<<<<<<<<<<<<<<<<<<<<<<<<<",
    "L898902C36UTO9005019M2801153<<<<<<<<<<<<<<08",
]

# Same MRZ with the document number check digit changed from 6 to 5
SMITH_TD3_BAD_CHECK = [
    SMITH_TD3[0],
    "L898902C35UTO9005019M2801153<<<<<<<<<<<<<<08",
]


def to_lines(texts, document_index=0):
    return [
        RecognizedLine(text=text, confidence=0.9, document_index=document_index, line_index=i)
        for i, text in enumerate(texts)
    ]


class FakeOcr:
    """Deterministic OCR adapter keyed by document bytes."""

    def __init__(self, pages=None, failing=()):
        self.pages = pages or {}
        self.failing = set(failing)
        self.calls = []

    def recognize(self, data, document_index=0):
        self.calls.append(document_index)
        if data in self.failing:
            raise RuntimeError("scanner offline")
        return to_lines(self.pages.get(data, []), document_index)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def applicant():
    return Applicant(
        full_name="JOHN SMITH",
        date_of_birth=date(1990, 5, 1),
        passport_number="L898902C3",
        nationality="UTO",
        visa_type="tourist",
    )


@pytest.fixture
def policy():
    return default_policy()


@pytest.fixture
def smith_document():
    return parse_mrz(SMITH_TD3, today=TODAY)


@pytest.fixture
def fake_ocr():
    return FakeOcr({
        b"smith": SMITH_TD3,
        b"smith-bad-check": SMITH_TD3_BAD_CHECK,
        b"blank": [],
        b"noise": ["REPUBLIC OF UTOPIA", "PASSPORT", "Signature of bearer"],
    }, failing={b"broken"})

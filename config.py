from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # OCR Configuration
    # "tesseract" (local) or "openai" (vision model transcription)
    OCR_ENGINE: str = "tesseract"
    TESSERACT_LANG: str = "eng"
    TESSERACT_CONFIG: str = "--oem 3 --psm 6"
    PDF_DPI: int = 300

    # OpenAI Configuration (only needed when OCR_ENGINE=openai)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4.1-mini"

    # Upper bound on documents OCR'd in parallel for one request
    MAX_CONCURRENT_DOCUMENTS: int = 4

    # MRZ Parsing
    # OCR often drops trailing fillers; lines this many chars short are padded
    MRZ_LINE_LENGTH_TOLERANCE: int = 2
    # Two-digit years above (current year + tolerance) go to the previous century
    MRZ_BIRTH_YEAR_TOLERANCE: int = 5
    MRZ_EXPIRY_YEAR_TOLERANCE: int = 50

    # Report
    REPORT_MAX_HIGHLIGHTS: int = 5

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()

# Default eligibility policy, overridable per request
DEFAULT_POLICY = {
    "version": "2024.1",
    "minimum_passport_validity_months": 6,
    "allowed_visa_types": ["tourist", "business", "student", "transit", "work-short-term"],
    "restricted_nationalities": [],
    "minimum_applicant_age": 18,
}

# MRZ line widths per format
MRZ_LINE_WIDTHS = {
    "TD1": 30,
    "TD2": 36,
    "TD3": 44,
}

MRZ_FILLER = "<"

# Characters allowed in a normalized MRZ line
MRZ_ALPHABET_REGEX = r"^[A-Z0-9<]+$"

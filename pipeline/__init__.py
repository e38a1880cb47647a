"""
Document Verification Pipeline

This package contains the complete pipeline for travel document verification:
- MRZ location and OCR character normalization
- MRZ field parsing for TD1 / TD2 / TD3 documents
- ICAO 9303 check digit validation
- Applicant cross-validation
- Visa eligibility evaluation and report synthesis
"""

__version__ = "1.0.0"

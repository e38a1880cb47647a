import asyncio
import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from config import settings
from .checks import DocumentChecks
from .checksum import validate_checksums
from .cross_validation import cross_validate
from .eligibility import evaluate_eligibility
from .models import (
    AnalysisReport, Applicant, MrzDocument, MrzParseFailure, Policy,
    RecognizedLine, ValidationResult,
)
from .mrz_locator import locate_mrz
from .mrz_parser import parse_mrz
from .ocr import OcrAdapter, recognize_safely
from .report import synthesize_report
from .utils import mask_document_number

logger = logging.getLogger(__name__)

DocumentOutcome = Tuple[Optional[MrzDocument], List[ValidationResult]]


def process_document(lines: Sequence[RecognizedLine],
                     applicant: Applicant,
                     policy: Policy,
                     document_index: int = 0,
                     today: Optional[date] = None) -> DocumentOutcome:
    """
    Run one document through locate -> parse -> checksums -> cross-validation

    Pure function of its inputs. Returns the parsed document (None when no
    usable MRZ was found) and the document's validations in rule order:
    mrz_extraction, check digits, passport_expiry, then the four applicant
    comparisons.
    """
    today = today or date.today()
    checks = DocumentChecks(document_index)

    block = locate_mrz(lines)
    parsed = parse_mrz(block, today=today) if block is not None else None
    validations = [checks.extraction_check(parsed)]

    document = parsed if isinstance(parsed, MrzDocument) else None
    if document is None:
        if isinstance(parsed, MrzParseFailure):
            logger.warning("Document %d: MRZ parse failure: %s", document_index + 1, parsed.reason)
        else:
            logger.warning("Document %d: no MRZ located in %d line(s)", document_index + 1, len(lines))
    else:
        logger.debug("Document %d: %s, number %s", document_index + 1,
                     document.format.value, mask_document_number(document.document_number))
        validations.extend(validate_checksums(document, document_index))
        validations.append(checks.expiry_check(document, policy, today))

    validations.extend(cross_validate(applicant, document, document_index))
    return document, validations


async def _analyze_one(data: bytes,
                       index: int,
                       ocr: OcrAdapter,
                       applicant: Applicant,
                       policy: Policy,
                       today: date,
                       limiter: asyncio.Semaphore) -> DocumentOutcome:
    async with limiter:
        lines = await asyncio.to_thread(recognize_safely, ocr, data, index)
    return process_document(lines, applicant, policy, index, today)


async def analyze_documents(documents: Sequence[bytes],
                            applicant: Applicant,
                            policy: Policy,
                            ocr: OcrAdapter,
                            today: Optional[date] = None,
                            max_concurrency: Optional[int] = None) -> AnalysisReport:
    """
    Analyze every submitted document and evaluate eligibility

    Documents are recognized and validated concurrently; eligibility and the
    report are computed only once all of them have finished, since the
    passport validity rule looks across the whole document set. Cancelling
    the calling task cancels all in-flight document work.
    """
    today = today or date.today()
    limiter = asyncio.Semaphore(max_concurrency or settings.MAX_CONCURRENT_DOCUMENTS)

    outcomes = await asyncio.gather(*(
        _analyze_one(data, index, ocr, applicant, policy, today, limiter)
        for index, data in enumerate(documents)
    ))

    parsed_documents = [document for document, _ in outcomes]
    per_document_validations = [validations for _, validations in outcomes]
    all_validations = [v for validations in per_document_validations for v in validations]

    eligibility = evaluate_eligibility(
        policy, applicant, parsed_documents, all_validations, today=today
    )
    return synthesize_report(per_document_validations, eligibility)


def run_pipeline(documents: Sequence[bytes],
                 applicant: Applicant,
                 policy: Policy,
                 ocr: OcrAdapter,
                 today: Optional[date] = None) -> AnalysisReport:
    """
    Synchronous entry point around analyze_documents

    Args:
        documents: raw document buffers, in submission order
        applicant: applicant-declared data
        policy: effective eligibility policy (see merge_policy)
        ocr: adapter turning document bytes into recognized lines
        today: evaluation date, defaults to the current date

    Returns:
        The complete AnalysisReport
    """
    return asyncio.run(analyze_documents(documents, applicant, policy, ocr, today))

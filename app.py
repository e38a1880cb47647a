from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from pipeline.models import Applicant, PolicyOverride
from pipeline.ocr import OcrAdapter, get_ocr_adapter
from pipeline.policy import merge_policy
from pipeline.run_pipeline import analyze_documents
from config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Document Verification Service",
    description="MRZ validation, applicant cross-checks and visa eligibility assessment",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_ocr() -> OcrAdapter:
    return get_ocr_adapter()


def _parse_json_field(name: str, payload: str):
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {name} payload: {e.msg}")


# ------------------------
# Document Analysis API
# ------------------------
@app.post("/api/analyze")
async def analyze(
    applicant: Optional[str] = Form(None),
    policy: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    ocr: OcrAdapter = Depends(get_ocr),
):
    """
    Analyse passport / ID document images against the applicant's declared data.
    Supports JPG / PNG / HEIC / PDF uploads.
    """
    if not applicant:
        raise HTTPException(status_code=400, detail="Missing applicant payload")

    if not files:
        raise HTTPException(status_code=400, detail="At least one document image is required")

    try:
        parsed_applicant = Applicant.model_validate(_parse_json_field("applicant", applicant))
        override = None
        if policy:
            override = PolicyOverride.model_validate(_parse_json_field("policy", policy))
        effective_policy = merge_policy(override)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid request payload", "details": json.loads(e.json(include_url=False))},
        )

    try:
        buffers = [await upload.read() for upload in files]
        report = await analyze_documents(buffers, parsed_applicant, effective_policy, ocr)
    except Exception as e:
        logger.exception("Analysis error")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyse document: {str(e)}"
        )

    return report.model_dump(mode="json", by_alias=True)


# ------------------------
# Health Check
# ------------------------
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "document-verification"
    }


# ------------------------
# Local Dev Entry
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

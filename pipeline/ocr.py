"""
OCR adapters: document bytes in, ordered recognized text lines out.

The verification core only depends on the OcrAdapter protocol, so tests can
substitute a deterministic fake for a real recognition engine.
"""

import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol, Tuple

import pytesseract
from openai import OpenAI

from config import settings
from .file_converter import convert_to_images, to_jpeg_bytes
from .models import RecognizedLine

logger = logging.getLogger(__name__)


class OcrError(Exception):
    """Raised by adapters when a document cannot be recognized"""


class OcrAdapter(Protocol):
    def recognize(self, data: bytes, document_index: int = 0) -> List[RecognizedLine]:
        ...


class TesseractOcrAdapter:
    """
    Recognizes text with Tesseract, one RecognizedLine per Tesseract text line
    """

    def __init__(self, lang: str = None, config: str = None):
        self.lang = lang or settings.TESSERACT_LANG
        self.config = config or settings.TESSERACT_CONFIG

    def _page_lines(self, image) -> List[Tuple[str, float]]:
        data = pytesseract.image_to_data(
            image, lang=self.lang, config=self.config,
            output_type=pytesseract.Output.DICT,
        )

        grouped: Dict[Tuple[int, int, int], List[Tuple[str, float]]] = {}
        for i, word in enumerate(data["text"]):
            word = (word or "").strip()
            if not word:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            grouped.setdefault(key, []).append((word, float(data["conf"][i])))

        lines = []
        # dicts keep insertion order, which is Tesseract's reading order
        for words in grouped.values():
            text = " ".join(word for word, _ in words)
            confidences = [conf for _, conf in words if conf >= 0]
            confidence = sum(confidences) / len(confidences) / 100 if confidences else 0.0
            lines.append((text, round(confidence, 4)))
        return lines

    def recognize(self, data: bytes, document_index: int = 0) -> List[RecognizedLine]:
        try:
            pages = convert_to_images(data)
        except ValueError as e:
            raise OcrError(str(e)) from e

        results: List[RecognizedLine] = []
        for page in pages:
            for text, confidence in self._page_lines(page):
                results.append(RecognizedLine(
                    text=text,
                    confidence=confidence,
                    document_index=document_index,
                    line_index=len(results),
                ))
        return results


class OpenAIVisionOcrAdapter:
    """
    Transcribes document text with an OpenAI vision model
    """

    PROMPT = """
You are a document transcription system.

Transcribe EVERY line of text visible in this identity document image,
top to bottom, exactly as printed.

IMPORTANT MRZ RULES:
- The machine-readable zone (lines of capital letters, digits and '<') must be
  copied character for character
- Keep every '<' filler character; do not replace them with spaces
- DO NOT correct, guess or complete characters

Return STRICT JSON only.

Expected format:
{
  "lines": [
    {"text": "string", "confidence": 0.0-1.0}
  ]
}
"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key or settings.OPENAI_API_KEY
        if not api_key:
            raise OcrError("OPENAI_API_KEY is required for the openai OCR engine")
        self.client = OpenAI(api_key=api_key)
        self.model = model or settings.OPENAI_MODEL

    @staticmethod
    def encode_image(image_bytes: bytes) -> str:
        """Encode image as base64 data URL"""
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        return f"data:image/jpeg;base64,{b64}"

    @staticmethod
    def safe_json_parse(text: str) -> Dict[str, Any]:
        """Safely parse JSON from LLM response"""
        match = re.search(r"\{.*\}", text or "", re.DOTALL)
        if not match:
            raise OcrError("No JSON found in model output")
        try:
            return json.loads(match.group())
        except json.JSONDecodeError as e:
            raise OcrError(f"Malformed JSON in model output: {e}") from e

    def _transcribe(self, image_url: str) -> List[Dict[str, Any]]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            max_tokens=1200,
            temperature=0,
        )
        parsed = self.safe_json_parse(response.choices[0].message.content)
        lines = parsed.get("lines")
        if not isinstance(lines, list):
            raise OcrError("Model output has no 'lines' list")
        return lines

    def recognize(self, data: bytes, document_index: int = 0) -> List[RecognizedLine]:
        try:
            pages = convert_to_images(data)
        except ValueError as e:
            raise OcrError(str(e)) from e

        results: List[RecognizedLine] = []
        for page in pages:
            for item in self._transcribe(self.encode_image(to_jpeg_bytes(page))):
                if isinstance(item, dict):
                    text, confidence = item.get("text"), item.get("confidence")
                else:
                    text, confidence = item, None
                if not isinstance(text, str) or not text.strip():
                    continue
                try:
                    confidence = max(0.0, min(1.0, float(confidence)))
                except (TypeError, ValueError):
                    confidence = 0.0
                results.append(RecognizedLine(
                    text=text,
                    confidence=confidence,
                    document_index=document_index,
                    line_index=len(results),
                ))
        return results


def get_ocr_adapter(engine: Optional[str] = None) -> OcrAdapter:
    engine = (engine or settings.OCR_ENGINE).lower()
    if engine == "tesseract":
        return TesseractOcrAdapter()
    if engine == "openai":
        return OpenAIVisionOcrAdapter()
    raise ValueError(f"Unknown OCR engine: {engine}")


def recognize_safely(adapter: OcrAdapter, data: bytes, document_index: int) -> List[RecognizedLine]:
    """
    Run the adapter, treating any failure as zero recognized lines

    One unreadable document must not abort the others in the request.
    """
    try:
        return list(adapter.recognize(data, document_index))
    except Exception as e:
        logger.warning("OCR failed for document %d: %s", document_index + 1, e)
        return []

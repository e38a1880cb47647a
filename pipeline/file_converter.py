import io
from typing import List
from PIL import Image, UnidentifiedImageError
import pillow_heif
from pdf2image import convert_from_bytes

from config import settings

pillow_heif.register_heif_opener()

PDF_MAGIC = b"%PDF"


def convert_to_images(data: bytes, dpi: int = None) -> List[Image.Image]:
    """
    Converts an uploaded document (image / HEIC / PDF) into RGB images,
    one per page.
    """
    if not data:
        raise ValueError("Empty document")

    # -------- Case 1: PDF --------
    if data[:len(PDF_MAGIC)] == PDF_MAGIC:
        pages = convert_from_bytes(data, dpi=dpi or settings.PDF_DPI)
        return [page.convert("RGB") for page in pages]

    # -------- Case 2: Normal image or HEIC --------
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except UnidentifiedImageError as e:
        raise ValueError("Unsupported document format") from e

    return [img.convert("RGB")]


def to_jpeg_bytes(img: Image.Image, quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "JPEG", quality=quality)
    return buffer.getvalue()

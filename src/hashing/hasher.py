# src/hashing/hasher.py — v2
"""Exact and perceptual fingerprinting of uploaded files.

Checksum: SHA-256 over the raw bytes, always computed.
Perceptual hash: 64-bit DCT hash (imagehash.phash) of the decoded image,
or of the rendered first page for PDFs. Absent for everything else.
"""

from __future__ import annotations

import hashlib
import io
import logging

import imagehash
from PIL import Image, UnidentifiedImageError

from docintel.core.errors import AnalysisFailed
from docintel.core.models import Fingerprints

logger = logging.getLogger(__name__)

HASH_BITS = 64
_PDF_RENDER_DPI = 72


def compute_fingerprints(
    file_bytes: bytes,
    mime_type: str,
    hash_pdf_pages: bool = True,
) -> Fingerprints:
    """Fingerprint a file.

    Args:
        file_bytes: Raw file content.
        mime_type: Declared MIME type, used to decide perceptual hashing.
        hash_pdf_pages: Render and hash the first page of PDFs.

    Returns:
        Fingerprints with checksum and, where applicable, perceptual hash.

    Raises:
        AnalysisFailed: If the bytes cannot be read at all.
    """
    checksum = compute_checksum(file_bytes)

    if not is_perceptually_hashable(mime_type, hash_pdf_pages):
        return Fingerprints(checksum=checksum, perceptual_status="not_applicable")

    try:
        image = _load_image(file_bytes, mime_type)
        phash = str(imagehash.phash(image))
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        RuntimeError,
    ) as e:
        logger.warning("Perceptual hash skipped for %s input: %s", mime_type, e)
        return Fingerprints(checksum=checksum, perceptual_status="failed")

    return Fingerprints(
        checksum=checksum, perceptual_hash=phash, perceptual_status="computed"
    )


def compute_checksum(file_bytes: bytes) -> str:
    """SHA-256 hex digest of the exact byte sequence."""
    if not isinstance(file_bytes, (bytes, bytearray, memoryview)):
        raise AnalysisFailed(
            f"Cannot hash input of type {type(file_bytes).__name__}"
        )
    return hashlib.sha256(bytes(file_bytes)).hexdigest()


def is_perceptually_hashable(mime_type: str, hash_pdf_pages: bool = True) -> bool:
    mime = mime_type.lower()
    if mime.startswith("image/"):
        return True
    return hash_pdf_pages and mime == "application/pdf"


def hamming_distance(hash_a: str | None, hash_b: str | None) -> int:
    """Bit distance between two hex-encoded perceptual hashes.

    Missing, malformed, or different-length hashes are maximally distant.
    """
    if not hash_a or not hash_b or len(hash_a) != len(hash_b):
        return HASH_BITS
    try:
        xor = int(hash_a, 16) ^ int(hash_b, 16)
    except ValueError:
        return HASH_BITS
    return bin(xor).count("1")


def _load_image(file_bytes: bytes, mime_type: str) -> Image.Image:
    """Decode bytes into a PIL image (first frame, or first PDF page)."""
    if mime_type.lower() == "application/pdf":
        return _render_first_pdf_page(bytes(file_bytes))
    image = Image.open(io.BytesIO(file_bytes))
    image.load()
    return image


def _render_first_pdf_page(file_bytes: bytes) -> Image.Image:
    import fitz  # PyMuPDF

    with fitz.open(stream=file_bytes, filetype="pdf") as doc:
        if doc.page_count == 0:
            raise ValueError("PDF has no pages")
        pixmap = doc[0].get_pixmap(dpi=_PDF_RENDER_DPI)
        png_bytes = pixmap.tobytes("png")
    image = Image.open(io.BytesIO(png_bytes))
    image.load()
    return image

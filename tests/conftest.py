# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides an in-memory store, a stored-document factory, Pillow-generated
images and sample business texts. No network, no external services.
"""

from __future__ import annotations

import hashlib
import io
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from PIL import Image, ImageDraw

from docintel.api.models import AnalysisOptions, Caller, FileMeta
from docintel.config.settings import Settings
from docintel.core.models import StoredDocument
from docintel.storage.memory_store import MemoryDocumentStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

BUSINESS_CARD_TEXT = """Jane Doe
Senior Sales Manager
Acme Widgets Inc
Phone: (555) 123-4567
Email: jane.doe@acmewidgets.com
www.acmewidgets.com
123 Main Street, Springfield, IL 62701
"""

RECEIPT_TEXT = """Corner Coffee Company
456 Oak Avenue, Portland, OR 97201
Date: 2026-02-27
Latte $4.50
Muffin $3.25
Subtotal $7.75
Tax $0.62
Total $8.37
Thank you for your visit
"""

INVOICE_TEXT = """Northwind Services LLC
billing@northwind.example.com
Invoice Number: INV-2026-0042
Date: 02/15/2026
Consulting hours $1,200.00
Total Due $1,200.00
Payment terms: net 30
"""

MONTHLY_BILL_TEXT = """City Power Company
Monthly statement
Service period: 01/01/2026 - 01/31/2026
Account 77-1234
Amount Due $84.20
"""


# === FIXTURES: Configuration ===


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def caller() -> Caller:
    return Caller(company_id="acme", user_id="user-1")


@pytest.fixture
def default_options() -> AnalysisOptions:
    return AnalysisOptions()


# === FIXTURES: Storage ===


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def make_document() -> Callable[..., StoredDocument]:
    """Factory for StoredDocument with sensible defaults.

    `age` is subtracted from the current time to set created_at.
    """

    def _make(
        doc_id: str = "doc-1",
        company_id: str = "acme",
        uploaded_by: str = "user-1",
        checksum: str | None = None,
        age: timedelta = timedelta(hours=1),
        **kwargs,
    ) -> StoredDocument:
        return StoredDocument(
            id=doc_id,
            company_id=company_id,
            uploaded_by=uploaded_by,
            checksum=checksum or hashlib.sha256(doc_id.encode()).hexdigest(),
            created_at=kwargs.pop("created_at", datetime.now(timezone.utc) - age),
            **kwargs,
        )

    return _make


# === FIXTURES: Files ===


def render_png(pattern: str = "blocks", size: int = 128) -> bytes:
    """Deterministic grayscale PNG with a recognisable structure."""
    image = Image.new("L", (size, size), color=255)
    draw = ImageDraw.Draw(image)
    if pattern == "blocks":
        draw.rectangle([0, 0, size // 2, size // 2], fill=0)
        draw.rectangle([size // 2, size // 2, size, size], fill=40)
        draw.ellipse([size // 4, size // 4, size // 2 + 10, size // 2 + 10], fill=200)
    elif pattern == "stripes":
        step = size // 4
        for x in range(0, size, step * 2):
            draw.rectangle([x, 0, x + step - 1, size], fill=0)
    elif pattern == "gradient":
        for y in range(size):
            draw.line([(0, y), (size, y)], fill=int(255 * y / size))
    else:
        raise ValueError(pattern)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def reencode(png_bytes: bytes, fmt: str = "BMP") -> bytes:
    """Lossless re-encoding of an image into another container."""
    image = Image.open(io.BytesIO(png_bytes))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def text_meta(name: str, data: bytes, mime_type: str = "text/plain") -> FileMeta:
    return FileMeta(original_name=name, mime_type=mime_type, size=len(data))


@pytest.fixture
def business_card_text() -> str:
    return BUSINESS_CARD_TEXT


@pytest.fixture
def receipt_text() -> str:
    return RECEIPT_TEXT


@pytest.fixture
def invoice_text() -> str:
    return INVOICE_TEXT


@pytest.fixture
def monthly_bill_text() -> str:
    return MONTHLY_BILL_TEXT


@pytest.fixture
def business_card_bytes() -> bytes:
    return BUSINESS_CARD_TEXT.encode()


@pytest.fixture
def receipt_bytes() -> bytes:
    return RECEIPT_TEXT.encode()


@pytest.fixture
def invoice_bytes() -> bytes:
    return INVOICE_TEXT.encode()


@pytest.fixture
def monthly_bill_bytes() -> bytes:
    return MONTHLY_BILL_TEXT.encode()


@pytest.fixture
def fixed_now() -> datetime:
    return NOW


@pytest.fixture
def render_image() -> Callable[..., bytes]:
    return render_png


@pytest.fixture
def reencode_image() -> Callable[..., bytes]:
    return reencode


@pytest.fixture
def make_text_meta() -> Callable[..., FileMeta]:
    return text_meta

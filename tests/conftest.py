"""
Shared fixtures for the PDF Unlocker tests.

Documents are generated with pikepdf so every encryption revision under test
is real, not a hand-written byte pattern.
"""

import io
from typing import List, Optional

import pikepdf
import pytest

from pdf_unlocker.core.backends import PdfReader, RasterImage, ReaderDocument

PASSWORD = "hunter2"
OWNER_PASSWORD = "owner-secret"
PAGE_SIZE = (200, 300)


def make_pdf(pages: int = 1, encryption=None) -> bytes:
    pdf = pikepdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=PAGE_SIZE)
    out = io.BytesIO()
    pdf.save(out, encryption=encryption or False)
    return out.getvalue()


def page_count(data: bytes, password: str = "") -> int:
    with pikepdf.open(io.BytesIO(data), password=password) as pdf:
        return len(pdf.pages)


@pytest.fixture
def plain_pdf() -> bytes:
    return make_pdf(pages=3)


@pytest.fixture
def rc4_pdf() -> bytes:
    """User-password protected, /V 2 (RC4 128-bit)"""
    return make_pdf(pages=2, encryption=pikepdf.Encryption(user=PASSWORD, owner=OWNER_PASSWORD, R=3, aes=False, metadata=False))


@pytest.fixture
def aes128_pdf() -> bytes:
    return make_pdf(pages=1, encryption=pikepdf.Encryption(user=PASSWORD, owner=OWNER_PASSWORD, R=4))


@pytest.fixture
def aes256_pdf() -> bytes:
    return make_pdf(pages=1, encryption=pikepdf.Encryption(user=PASSWORD, owner=OWNER_PASSWORD, R=6))


@pytest.fixture
def owner_only_pdf() -> bytes:
    """Opens without a password but denies printing and modification"""
    restrictions = pikepdf.Permissions(
        print_lowres=False,
        print_highres=False,
        modify_other=False,
        modify_annotation=False,
    )
    return make_pdf(
        pages=2,
        encryption=pikepdf.Encryption(user="", owner=OWNER_PASSWORD, R=4, allow=restrictions),
    )


class FakeDocument(ReaderDocument):
    def __init__(self, pages: int = 1, permissions: Optional[List[int]] = None):
        self.pages = pages
        self.permissions = permissions
        self.closed = False

    @property
    def page_count(self) -> int:
        return self.pages

    def get_permissions(self):
        return self.permissions

    def render_page(self, index: int, scale: float) -> RasterImage:
        width, height = int(PAGE_SIZE[0] * scale), int(PAGE_SIZE[1] * scale)
        return RasterImage(width=width, height=height, samples=b"\xff" * (width * height * 3))

    def close(self) -> None:
        self.closed = True


class FakeReader(PdfReader):
    """Reader returning a canned document or raising a canned error"""

    def __init__(self, document: Optional[FakeDocument] = None, error: Optional[Exception] = None):
        self.document = document or FakeDocument()
        self.error = error
        self.calls = []

    def open(self, data: bytes, password: Optional[str] = None) -> ReaderDocument:
        self.calls.append(password)
        if self.error is not None:
            raise self.error
        return self.document


class ProgressRecorder:
    def __init__(self):
        self.values = []

    def __call__(self, value: float) -> None:
        self.values.append(value)

    @property
    def non_decreasing(self) -> bool:
        return all(a <= b for a, b in zip(self.values, self.values[1:]))

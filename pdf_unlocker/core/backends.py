"""
Structured PDF reader and writer used by the detector and the decryption engine.

The reader (PyMuPDF) opens documents, reports permissions and renders pages.
The writer (pikepdf) re-serializes documents and builds new ones from rasters.
They are kept behind separate interfaces so either library can be replaced.
"""

import io
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
import pikepdf
from pikepdf import Dictionary, Name

from pdf_unlocker.core.models import PermissionFlag
from pdf_unlocker.utils.exceptions import PasswordIncorrectError, PasswordRequiredError
from pdf_unlocker.utils.logger import get_module_logger

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class RasterImage:
    """An 8-bit RGB raster of a rendered page"""

    width: int
    height: int
    samples: bytes = field(repr=False)


class ReaderDocument(ABC):
    """A document opened by a structured reader"""

    @property
    @abstractmethod
    def page_count(self) -> int:
        pass

    @abstractmethod
    def get_permissions(self) -> Optional[List[int]]:
        """Granted permission flags, or None when the document has no security handler"""
        pass

    @abstractmethod
    def render_page(self, index: int, scale: float) -> RasterImage:
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class PdfReader(ABC):
    """Opens documents, optionally with a password"""

    @abstractmethod
    def open(self, data: bytes, password: Optional[str] = None) -> ReaderDocument:
        """Open a document from memory

        Raises:
            PasswordRequiredError: No password given for a document that needs one
            PasswordIncorrectError: The given password does not open the document
            Exception: Any other parse failure, as raised by the library
        """
        pass


class MuPdfDocument(ReaderDocument):
    """ReaderDocument backed by a PyMuPDF document"""

    def __init__(self, doc: "fitz.Document"):
        self._doc = doc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    @property
    def has_security_handler(self) -> bool:
        return bool(self._doc.needs_pass or (self._doc.metadata or {}).get("encryption"))

    def get_permissions(self) -> Optional[List[int]]:
        if not self.has_security_handler:
            return None
        granted = self._doc.permissions
        return [flag for flag in PermissionFlag if granted & flag]

    def render_page(self, index: int, scale: float) -> RasterImage:
        page = self._doc[index]
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False, colorspace=fitz.csRGB)
        return RasterImage(width=pix.width, height=pix.height, samples=bytes(pix.samples))

    def close(self) -> None:
        self._doc.close()


class MuPdfReader(PdfReader):
    """Structured reader on top of PyMuPDF"""

    def open(self, data: bytes, password: Optional[str] = None) -> MuPdfDocument:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            document = MuPdfDocument(doc)
            if password is None:
                if doc.needs_pass:
                    raise PasswordRequiredError("No password given")
            elif document.has_security_handler and not doc.authenticate(password):
                raise PasswordIncorrectError("Incorrect password")
        except BaseException:
            doc.close()
            raise
        return document


class WritableDocument:
    """A pikepdf document that can be extended with raster pages and saved"""

    def __init__(self, pdf: pikepdf.Pdf):
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def embed_raster_image(self, raster: RasterImage) -> pikepdf.Stream:
        """Embed a raster as a Flate-compressed (lossless) image XObject"""
        expected = raster.width * raster.height * 3
        if len(raster.samples) != expected:
            raise ValueError(
                f"Raster has {len(raster.samples)} bytes, expected {expected} for "
                f"{raster.width}x{raster.height} RGB"
            )
        image = self._pdf.make_stream(zlib.compress(raster.samples))
        image.Type = Name.XObject
        image.Subtype = Name.Image
        image.Width = raster.width
        image.Height = raster.height
        image.ColorSpace = Name.DeviceRGB
        image.BitsPerComponent = 8
        image.Filter = Name.FlateDecode
        return image

    def add_page(self, width: float, height: float) -> pikepdf.Page:
        page = self._pdf.add_blank_page(page_size=(width, height))
        page.obj.Resources = Dictionary(XObject=Dictionary())
        page.obj.Contents = self._pdf.make_stream(b"")
        return page

    def draw_image(self, page: pikepdf.Page, image: pikepdf.Stream,
                   rect: Tuple[float, float, float, float]) -> None:
        """Draw an embedded image into rect (x, y, width, height) of page"""
        x, y, width, height = rect
        xobjects = page.obj.Resources.XObject
        name = Name(f"/Im{len(xobjects.keys())}")
        xobjects[name] = image

        content = page.obj.Contents.read_bytes()
        content += f"q {width:.4f} 0 0 {height:.4f} {x:.4f} {y:.4f} cm {name} Do Q\n".encode("ascii")
        page.obj.Contents = self._pdf.make_stream(content)

    def save(self) -> bytes:
        """Serialize without encryption"""
        out = io.BytesIO()
        self._pdf.save(out, encryption=False)
        return out.getvalue()

    def close(self) -> None:
        self._pdf.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class PdfWriter(ABC):
    """Loads documents for re-serialization and creates new ones"""

    @abstractmethod
    def load(self, data: bytes, password: str = "") -> WritableDocument:
        pass

    @abstractmethod
    def create_empty(self) -> WritableDocument:
        pass


class PikePdfWriter(PdfWriter):
    """Structured writer on top of pikepdf"""

    def load(self, data: bytes, password: str = "") -> WritableDocument:
        # pikepdf decrypts on load; the password was already checked by the reader
        pdf = pikepdf.open(io.BytesIO(data), password=password or "")
        return WritableDocument(pdf)

    def create_empty(self) -> WritableDocument:
        return WritableDocument(pikepdf.new())

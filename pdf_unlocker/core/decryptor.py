"""
Decryption engine for the PDF Unlocker.

This module turns an encrypted document plus a password into an unencrypted
document. The password is first checked through the structured reader. The
document is then re-serialized by the writer with encryption disabled, and if
that fails every page is rendered and rebuilt into a new document.
"""

from typing import Optional

from pdf_unlocker.core.backends import (
    MuPdfReader,
    PdfReader,
    PdfWriter,
    PikePdfWriter,
    ReaderDocument,
)
from pdf_unlocker.core.models import ProgressCallback
from pdf_unlocker.utils.exceptions import (
    DecryptionError,
    DecryptionFailedError,
    WrongPasswordError,
    is_password_error,
    is_wrong_password_message,
)
from pdf_unlocker.utils.logger import get_module_logger

logger = get_module_logger(__name__)

# Progress window used by the rasterize fallback
RASTER_PROGRESS_START = 30.0
RASTER_PROGRESS_END = 95.0


class ProgressTracker:
    """Forwards progress to a callback, clamped to [0, 100] and never decreasing"""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.value: Optional[float] = None

    def report(self, value: float) -> None:
        value = min(100.0, max(0.0, float(value)))
        if self.value is not None and value < self.value:
            value = self.value
        self.value = value
        if self.callback:
            self.callback(value)


class DecryptionEngine:
    """Removes encryption from documents"""

    def __init__(self, reader: Optional[PdfReader] = None,
                 writer: Optional[PdfWriter] = None,
                 render_scale: float = 2.0):
        """Initialize with the reader and writer collaborators

        Args:
            reader: Structured reader for verification and rendering
            writer: Structured writer for rewriting and rebuilding
            render_scale: Scale used when rasterizing pages
        """
        self.reader = reader or MuPdfReader()
        self.writer = writer or PikePdfWriter()
        self.render_scale = render_scale

    def decrypt(self, data: bytes, password: Optional[str] = None,
                on_progress: Optional[ProgressCallback] = None) -> bytes:
        """Decrypt a document

        Args:
            data: Encrypted document bytes
            password: Candidate password, empty for owner-only protection
            on_progress: Optional callback receiving percentages

        Returns:
            A new, unencrypted document

        Raises:
            WrongPasswordError: The password does not open the document
            DecryptionFailedError: Any other failure
        """
        progress = ProgressTracker(on_progress)
        progress.report(0)
        password = password or ""

        try:
            progress.report(10)
            document = self._verify(data, password)
            progress.report(30)

            with document:
                page_count = document.page_count
                logger.info(f"Document opened with {page_count} pages, attempting to decrypt...")

                try:
                    output = self._rewrite(data, password, progress)
                    logger.info("Document decrypted by direct rewrite")
                except Exception as e:
                    logger.info(f"Direct rewrite failed ({e}), using rasterize fallback...")
                    output = self._rasterize(document, progress)
                    logger.info("Document decrypted by rasterize fallback")
        except DecryptionError:
            raise
        except Exception as e:
            logger.error(f"Decryption failed: {e}")
            message = str(e) or type(e).__name__
            if is_wrong_password_message(message):
                raise WrongPasswordError() from e
            raise DecryptionFailedError(message) from e

        progress.report(100)
        # Hand back an independent copy of the writer's buffer
        return bytes(bytearray(output))

    def remove_restrictions(self, data: bytes,
                            on_progress: Optional[ProgressCallback] = None) -> bytes:
        """Strip owner-password restrictions from a document that opens without a password"""
        progress = ProgressTracker(on_progress)
        progress.report(0)
        try:
            progress.report(20)
            with self.writer.load(data, "") as writable:
                progress.report(60)
                output = writable.save()
        except Exception as e:
            message = str(e) or type(e).__name__
            if is_password_error(e) or is_wrong_password_message(message):
                raise WrongPasswordError() from e
            raise DecryptionFailedError(message) from e
        progress.report(100)
        return bytes(bytearray(output))

    def _verify(self, data: bytes, password: str) -> ReaderDocument:
        """Open the document with the password before any rewrite is attempted"""
        try:
            return self.reader.open(data, password)
        except Exception as e:
            message = str(e) or type(e).__name__
            if is_password_error(e) or is_wrong_password_message(message):
                raise WrongPasswordError() from e
            raise DecryptionFailedError(message) from e

    def _rewrite(self, data: bytes, password: str, progress: ProgressTracker) -> bytes:
        with self.writer.load(data, password) as writable:
            progress.report(70)
            return writable.save()

    def _rasterize(self, document: ReaderDocument, progress: ProgressTracker) -> bytes:
        page_count = document.page_count
        scale = self.render_scale
        if page_count == 0:
            raise ValueError("Document has no pages to render")

        with self.writer.create_empty() as rebuilt:
            for index in range(page_count):
                raster = document.render_page(index, scale)
                image = rebuilt.embed_raster_image(raster)

                width = raster.width / scale
                height = raster.height / scale
                page = rebuilt.add_page(width, height)
                rebuilt.draw_image(page, image, (0, 0, width, height))

                span = RASTER_PROGRESS_END - RASTER_PROGRESS_START
                progress.report(RASTER_PROGRESS_START + ((index + 1) / page_count) * span)

            progress.report(RASTER_PROGRESS_END)
            return rebuilt.save()


def decrypt_pdf(data: bytes, password: Optional[str] = None,
                on_progress: Optional[ProgressCallback] = None) -> bytes:
    """Decrypt a document with the default reader and writer"""
    return DecryptionEngine().decrypt(data, password, on_progress)


def remove_restrictions(data: bytes, on_progress: Optional[ProgressCallback] = None) -> bytes:
    """Remove owner-only restrictions with the default writer"""
    return DecryptionEngine().remove_restrictions(data, on_progress)

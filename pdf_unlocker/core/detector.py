"""
Encryption detection for the PDF Unlocker.

This module decides whether a document is encrypted and whether the user has
to be asked for a password. It never raises: any parse failure degrades to a
best-effort answer, and an undecidable document is routed to the password
prompt rather than declared safe.
"""

import re
from typing import Optional, Tuple

from pdf_unlocker.core.backends import MuPdfReader, PdfReader
from pdf_unlocker.core.models import EncryptionInfo, EncryptionMethod, Permissions
from pdf_unlocker.utils.config import Config
from pdf_unlocker.utils.exceptions import is_password_error
from pdf_unlocker.utils.logger import get_module_logger

logger = get_module_logger(__name__)

# Most specific first: indirect reference, inline dictionary, bare keyword
ENCRYPT_PATTERNS = (
    re.compile(r"/Encrypt\s+\d+\s+\d+\s+R"),
    re.compile(r"/Encrypt\s*<<"),
    re.compile(r"/Encrypt\b"),
)
VERSION_PATTERN = re.compile(r"/V\s+(\d+)")
FILTER_PATTERN = re.compile(r"/Filter\s*/([A-Za-z]+)")


def _latin1(data: bytes) -> str:
    return data.decode("latin-1")


def read_method(text: str) -> EncryptionMethod:
    """Classify the cipher from the first /V field found in text"""
    match = VERSION_PATTERN.search(text)
    if not match:
        return EncryptionMethod.UNKNOWN
    return EncryptionMethod.from_version(int(match.group(1)))


class EncryptionDetector:
    """Classifies documents as unencrypted or password protected"""

    def __init__(self, reader: Optional[PdfReader] = None,
                 full_scan_limit: int = 100000,
                 scan_window: int = 50000,
                 fallback_scan_limit: int = 10000):
        """Initialize with a structured reader and scan thresholds

        Args:
            reader: Structured reader used when the raw scan finds nothing
            full_scan_limit: Buffers up to this size are scanned whole
            scan_window: Head and tail sizes scanned for larger buffers
            fallback_scan_limit: Bytes scanned when the reader fails
        """
        self.reader = reader or MuPdfReader()
        self.full_scan_limit = full_scan_limit
        self.scan_window = scan_window
        self.fallback_scan_limit = fallback_scan_limit

    @classmethod
    def from_config(cls, config: Config, reader: Optional[PdfReader] = None) -> "EncryptionDetector":
        return cls(
            reader=reader,
            full_scan_limit=config.get("full_scan_limit", 100000),
            scan_window=config.get("scan_window", 50000),
            fallback_scan_limit=config.get("fallback_scan_limit", 10000),
        )

    def classify(self, data: bytes) -> EncryptionInfo:
        """Classify a document

        Args:
            data: Complete document bytes

        Returns:
            EncryptionInfo describing how the document must be handled
        """
        logger.debug(f"Starting encryption detection, file size: {len(data)}")

        try:
            found, method = self.scan_raw(data)
        except Exception as e:
            logger.warning(f"Raw encryption scan failed: {e}")
            found, method = False, None

        if found:
            logger.debug("Document has an /Encrypt dictionary, password will be requested")
            return EncryptionInfo.password_required(method)

        try:
            return self._classify_structured(data)
        except Exception as e:
            if is_password_error(e):
                logger.debug("Password required (from reader error)")
                return EncryptionInfo.password_required(EncryptionMethod.UNKNOWN)
            logger.debug(f"Reader could not open document ({e}), using fallback detection")

        try:
            return self.fallback_scan(data)
        except Exception as e:
            # Undecidable: prompting is safer than declaring the document unprotected
            logger.warning(f"Fallback detection failed: {e}")
            return EncryptionInfo.password_required(EncryptionMethod.UNKNOWN)

    def scan_raw(self, data: bytes) -> Tuple[bool, Optional[EncryptionMethod]]:
        """Search the head and tail of the buffer for an encryption dictionary marker

        Returns:
            Tuple of (marker found, method read from /V if found)
        """
        if len(data) <= self.full_scan_limit:
            text = _latin1(data)
        else:
            # The /Encrypt reference normally sits in the trailer near the end
            text = _latin1(data[:self.scan_window]) + _latin1(data[-self.scan_window:])

        logger.debug(f"Searching for /Encrypt in {len(text)} bytes")

        for pattern in ENCRYPT_PATTERNS:
            match = pattern.search(text)
            if match:
                logger.debug(f"Found encryption pattern: {match.group(0)!r}")
                method = read_method(text)
                logger.debug(f"Encryption method: {method.value}")
                return True, method

        logger.debug("No /Encrypt pattern found")
        return False, None

    def _classify_structured(self, data: bytes) -> EncryptionInfo:
        with self.reader.open(data) as document:
            logger.debug(f"Document opened without password, pages: {document.page_count}")
            granted = document.get_permissions()

        if granted is not None:
            # A security handler without a textual /Encrypt hit means owner-password restrictions
            logger.debug(f"Document has restrictions ({len(granted)} permissions granted), "
                         "password will be requested")
            return EncryptionInfo.password_required(
                EncryptionMethod.UNKNOWN,
                permissions=Permissions.from_flags(granted),
            )

        logger.debug("Document is not encrypted")
        return EncryptionInfo.unencrypted()

    def fallback_scan(self, data: bytes) -> EncryptionInfo:
        """Scan only the start of the buffer for an indirect /Encrypt reference"""
        text = _latin1(data[:self.fallback_scan_limit])

        if not ENCRYPT_PATTERNS[0].search(text):
            return EncryptionInfo.unencrypted()

        filter_match = FILTER_PATTERN.search(text)
        if filter_match:
            logger.debug(f"Security handler filter: {filter_match.group(1)}")

        return EncryptionInfo.password_required(read_method(text))

    def verify_password(self, data: bytes, password: str) -> bool:
        """Check whether the reader can open the document with password"""
        try:
            with self.reader.open(data, password or ""):
                return True
        except Exception as e:
            logger.debug(f"Password verification failed: {type(e).__name__}")
            return False


def detect_encryption(data: bytes, reader: Optional[PdfReader] = None) -> EncryptionInfo:
    """Classify a document with default thresholds"""
    return EncryptionDetector(reader).classify(data)


def verify_password(data: bytes, password: str, reader: Optional[PdfReader] = None) -> bool:
    """Check whether password opens the document"""
    return EncryptionDetector(reader).verify_password(data, password)

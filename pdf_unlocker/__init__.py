"""
PDF Unlocker

Removes password protection from PDF documents locally: detects encryption,
asks for a password when needed and writes an unencrypted copy.
"""

from pdf_unlocker.core.controller import ProcessingController
from pdf_unlocker.core.decryptor import DecryptionEngine, decrypt_pdf
from pdf_unlocker.core.detector import EncryptionDetector, detect_encryption
from pdf_unlocker.core.models import EncryptionInfo, EncryptionMethod, SelectedFile

__version__ = "0.1.0"

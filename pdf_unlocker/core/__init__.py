"""
Core functionality for the PDF Unlocker.
"""

from .models import (
    EncryptionInfo,
    EncryptionMethod,
    PermissionFlag,
    Permissions,
    SelectedFile,
    unlocked_filename,
)
from .backends import (
    PdfReader,
    PdfWriter,
    ReaderDocument,
    WritableDocument,
    RasterImage,
    MuPdfReader,
    PikePdfWriter,
)
from .detector import EncryptionDetector, detect_encryption, verify_password
from .decryptor import DecryptionEngine, ProgressTracker, decrypt_pdf, remove_restrictions
from .state import (
    SessionState,
    Idle,
    ChosenFile,
    Checking,
    NeedsPassword,
    Decrypting,
    Succeeded,
    Failed,
)
from .controller import ProcessingController

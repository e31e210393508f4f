"""
Utility modules for the PDF Unlocker.
"""

from .config import Config, verbosity_to_level, MAX_FILE_SIZE
from .exceptions import (
    PDFUnlockerError,
    InvalidInputError,
    FileTooLargeError,
    InvalidFileTypeError,
    PasswordError,
    PasswordRequiredError,
    PasswordIncorrectError,
    DecryptionError,
    WrongPasswordError,
    DecryptionFailedError,
    InvalidTransitionError,
    ConfigError,
    is_password_error,
    is_wrong_password_message,
)
from .logger import Logger, get_module_logger

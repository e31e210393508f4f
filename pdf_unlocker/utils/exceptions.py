"""
Custom exceptions for the PDF Unlocker.
"""

from typing import Optional

# Codes used by PDF readers for password failures (need password / incorrect password)
PASSWORD_ERROR_CODES = (1, 2)


class PDFUnlockerError(Exception):
    """Base exception for PDF unlocker errors"""
    pass


class InvalidInputError(PDFUnlockerError):
    """File rejected before any parsing"""
    pass


class FileTooLargeError(InvalidInputError):
    """File exceeds the configured size limit"""
    pass


class InvalidFileTypeError(InvalidInputError):
    """File is not a PDF by type or extension"""
    pass


class PasswordError(PDFUnlockerError):
    """Raised by a structured reader when a document cannot be opened without the right password"""

    code: Optional[int] = None


class PasswordRequiredError(PasswordError):
    """Document needs a password and none was given"""

    code = 1


class PasswordIncorrectError(PasswordError):
    """The given password does not open the document"""

    code = 2


class DecryptionError(PDFUnlockerError):
    """Base class for failures surfaced by the decryption engine"""
    pass


class WrongPasswordError(DecryptionError):
    """The supplied password was rejected; the caller may retry"""

    def __init__(self, message: str = "Incorrect password. Please try again."):
        super().__init__(message)


class DecryptionFailedError(DecryptionError):
    """Any non-password failure: I/O, corrupt structure, unsupported feature"""
    pass


class InvalidTransitionError(PDFUnlockerError):
    """Event is not accepted in the current session state"""
    pass


class ConfigError(PDFUnlockerError):
    """Error in configuration"""
    pass


def is_password_error(error: BaseException) -> bool:
    """Check whether an exception carries a password-failure signature

    Matches by exception type name, by numeric code, or by the message
    mentioning a password.

    Args:
        error: Exception raised by a reader or writer

    Returns:
        True if the exception means the password was missing or wrong
    """
    if isinstance(error, PasswordError):
        return True

    if type(error).__name__ in ("PasswordError", "PasswordException"):
        return True

    code = getattr(error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool) and code in PASSWORD_ERROR_CODES:
        return True

    return "password" in str(error).lower()


def is_wrong_password_message(message: str) -> bool:
    """Check whether an error message should send the user back to the password prompt"""
    lowered = message.lower()
    return "password" in lowered or "incorrect" in lowered

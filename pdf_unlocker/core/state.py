"""
Session states for the PDF Unlocker.

A session is always in exactly one of these states. States are immutable and
are replaced wholesale on every transition.
"""

from dataclasses import dataclass, field
from typing import Union

from pdf_unlocker.core.models import EncryptionInfo, SelectedFile


@dataclass(frozen=True)
class Idle:
    status = "idle"


@dataclass(frozen=True)
class ChosenFile:
    file: SelectedFile
    status = "file-selected"


@dataclass(frozen=True)
class Checking:
    file: SelectedFile
    status = "checking-encryption"


@dataclass(frozen=True)
class NeedsPassword:
    """Waiting for the user to supply a password

    Attributes:
        file: The file being unlocked
        info: Classification of the file
        attempts: Number of rejected passwords so far in this session
    """

    file: SelectedFile
    info: EncryptionInfo
    attempts: int = 0
    status = "password-required"

    @property
    def is_retry(self) -> bool:
        return self.attempts > 0


@dataclass(frozen=True)
class Decrypting:
    file: SelectedFile
    progress: float = 0.0
    status = "processing"

    def __post_init__(self):
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be within [0, 100], got {self.progress}")


@dataclass(frozen=True)
class Succeeded:
    file: SelectedFile
    output: bytes = field(repr=False)
    status = "success"

    def __post_init__(self):
        if not self.output:
            raise ValueError("a successful session must carry output bytes")


@dataclass(frozen=True)
class Failed:
    file: SelectedFile
    message: str
    status = "error"


SessionState = Union[Idle, ChosenFile, Checking, NeedsPassword, Decrypting, Succeeded, Failed]

TERMINAL_STATES = (Succeeded, Failed)

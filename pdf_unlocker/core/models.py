"""
Data types shared by the detector, the decryption engine and the controller.
"""

import os
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Iterable, Optional

# Progress callback receiving a percentage in [0, 100]
ProgressCallback = Callable[[float], None]


class EncryptionMethod(str, Enum):
    """Best-effort cipher label derived from the /V field of the encryption dictionary

    This is a display hint, not an authoritative cipher identification.
    """

    RC4_40 = "RC4-40"
    RC4_128 = "RC4-128"
    AES_128 = "AES-128"
    AES_256 = "AES-256"
    UNKNOWN = "unknown"

    @classmethod
    def from_version(cls, version: Optional[int]) -> "EncryptionMethod":
        """Map a /V value to a method; anything unrecognised is UNKNOWN"""
        return _VERSION_TO_METHOD.get(version, cls.UNKNOWN)


_VERSION_TO_METHOD = {
    1: EncryptionMethod.RC4_40,
    2: EncryptionMethod.RC4_128,
    4: EncryptionMethod.AES_128,
    5: EncryptionMethod.AES_256,
}


class PermissionFlag(IntEnum):
    """Permission bits of the /P entry that the UI cares about"""

    PRINT = 0x04
    MODIFY = 0x08
    COPY = 0x10
    ANNOTATE = 0x20


@dataclass(frozen=True)
class Permissions:
    """Granted operations of a document that opens without a password"""

    printing: bool
    modifying: bool
    copying: bool
    annotating: bool

    @classmethod
    def from_flags(cls, granted: Iterable[int]) -> "Permissions":
        granted = set(granted)
        return cls(
            printing=PermissionFlag.PRINT in granted,
            modifying=PermissionFlag.MODIFY in granted,
            copying=PermissionFlag.COPY in granted,
            annotating=PermissionFlag.ANNOTATE in granted,
        )


@dataclass(frozen=True)
class EncryptionInfo:
    """Result of classifying a document

    Attributes:
        is_encrypted: Whether any encryption indicator was found
        requires_password: Whether the user must be asked for a password
        encryption_method: Best-effort cipher label, only for encrypted documents
        permissions: Granted operations, only when the document opened without a password
    """

    is_encrypted: bool
    requires_password: bool
    encryption_method: Optional[EncryptionMethod] = None
    permissions: Optional[Permissions] = None

    def __post_init__(self):
        if self.requires_password and not self.is_encrypted:
            raise ValueError("requires_password implies is_encrypted")
        if not self.is_encrypted and (self.encryption_method is not None or self.permissions is not None):
            raise ValueError("an unencrypted document has no encryption method or permissions")

    @classmethod
    def unencrypted(cls) -> "EncryptionInfo":
        return cls(is_encrypted=False, requires_password=False)

    @classmethod
    def password_required(cls, method: Optional[EncryptionMethod] = EncryptionMethod.UNKNOWN,
                          permissions: Optional[Permissions] = None) -> "EncryptionInfo":
        return cls(
            is_encrypted=True,
            requires_password=True,
            encryption_method=method,
            permissions=permissions,
        )


PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class SelectedFile:
    """A file chosen by the user

    The size and type are known up front; the content is only read when
    :meth:`read` is called, so an oversized file can be rejected without
    touching its bytes.
    """

    name: str
    size: int
    content_type: str = ""
    _loader: Callable[[], bytes] = field(default=lambda: b"", repr=False, compare=False)

    @classmethod
    def from_path(cls, path: str, content_type: str = "") -> "SelectedFile":
        def load() -> bytes:
            with open(path, "rb") as f:
                return f.read()

        if not content_type and path.lower().endswith(".pdf"):
            content_type = PDF_CONTENT_TYPE
        return cls(
            name=os.path.basename(path),
            size=os.stat(path).st_size,
            content_type=content_type,
            _loader=load,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str = "") -> "SelectedFile":
        data = bytes(data)
        return cls(name=name, size=len(data), content_type=content_type, _loader=lambda: data)

    def read(self) -> bytes:
        """Read the whole document into an immutable buffer"""
        return bytes(self._loader())

    @property
    def looks_like_pdf(self) -> bool:
        return "pdf" in self.content_type.lower() or self.name.lower().endswith(".pdf")


def unlocked_filename(name: str) -> str:
    """Name for the decrypted copy: ``report.pdf`` becomes ``report_unlocked.pdf``"""
    base, ext = os.path.splitext(name)
    if not ext:
        return f"{name}_unlocked.pdf"
    return f"{base}_unlocked.pdf"

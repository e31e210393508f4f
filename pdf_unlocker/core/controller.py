"""
Processing controller for the PDF Unlocker.

This module provides the ProcessingController class that sequences a single
unlocking session: file validation, encryption detection, password prompting,
decryption and the retry loop on a wrong password.
"""

from typing import Callable, Optional

from pdf_unlocker.core.decryptor import DecryptionEngine
from pdf_unlocker.core.detector import EncryptionDetector
from pdf_unlocker.core.models import EncryptionInfo, SelectedFile
from pdf_unlocker.core.state import (
    Checking,
    ChosenFile,
    Decrypting,
    Failed,
    Idle,
    NeedsPassword,
    SessionState,
    Succeeded,
)
from pdf_unlocker.utils.config import MAX_FILE_SIZE, Config
from pdf_unlocker.utils.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidInputError,
    InvalidTransitionError,
    WrongPasswordError,
)
from pdf_unlocker.utils.logger import get_module_logger

StateListener = Callable[[SessionState], None]

# Engine progress is mapped into [ATTEMPT_PROGRESS_START, 100] while decrypting
ATTEMPT_PROGRESS_START = 20.0
PASSTHROUGH_PROGRESS = 10.0


class ProcessingController:
    """State machine owning one unlocking session at a time"""

    def __init__(self, detector: Optional[EncryptionDetector] = None,
                 engine: Optional[DecryptionEngine] = None,
                 max_file_size: int = MAX_FILE_SIZE,
                 on_state_change: Optional[StateListener] = None,
                 logger=None):
        """Initialize with the detector and engine collaborators

        Args:
            detector: Encryption detector
            engine: Decryption engine
            max_file_size: Largest accepted file in bytes
            on_state_change: Optional callback receiving every new state
            logger: Optional logger instance
        """
        self.detector = detector or EncryptionDetector()
        self.engine = engine or DecryptionEngine()
        self.max_file_size = max_file_size
        self.on_state_change = on_state_change
        self.logger = logger or get_module_logger(__name__)

        self._state: SessionState = Idle()
        self._data: Optional[bytes] = None

    @classmethod
    def from_config(cls, config: Config, on_state_change: Optional[StateListener] = None,
                    logger=None) -> "ProcessingController":
        return cls(
            detector=EncryptionDetector.from_config(config),
            engine=DecryptionEngine(render_scale=config.get("render_scale", 2.0)),
            max_file_size=config.get("max_file_size", MAX_FILE_SIZE),
            on_state_change=on_state_change,
            logger=logger,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    def _transition(self, new_state: SessionState) -> SessionState:
        self.logger.debug(f"State: {self._state.status} -> {new_state.status}")
        self._state = new_state
        if self.on_state_change:
            self.on_state_change(new_state)
        return new_state

    def _require(self, expected, event: str) -> None:
        if not isinstance(self._state, expected):
            raise InvalidTransitionError(f"Cannot {event} while {self._state.status}")

    def validate(self, file: SelectedFile) -> None:
        """Reject files that must not be processed, without reading their content

        Raises:
            FileTooLargeError: File exceeds the size limit
            InvalidFileTypeError: File is not a PDF by type or extension
        """
        if file.size > self.max_file_size:
            limit_mb = self.max_file_size / 1024 / 1024
            raise FileTooLargeError(f"File too large. Maximum size is {limit_mb:g}MB.")
        if not file.looks_like_pdf:
            raise InvalidFileTypeError("Please select a valid PDF file.")

    def choose_file(self, file: SelectedFile) -> SessionState:
        """Start a session with a file chosen by the user"""
        self._require(Idle, "choose a file")

        try:
            self.validate(file)
        except (FileTooLargeError, InvalidFileTypeError) as e:
            self.logger.warning(f"Rejected {file.name}: {e}")
            return self._transition(Failed(file, str(e)))

        self._transition(ChosenFile(file))
        self._transition(Checking(file))

        try:
            self._data = file.read()
            if not self._data:
                raise InvalidInputError("The selected file is empty.")
            info = self.detector.classify(self._data)
        except Exception as e:
            self.logger.error(f"Processing error for {file.name}: {e}")
            self._data = None
            return self._transition(Failed(file, str(e) or "Failed to process PDF"))

        if not info.is_encrypted:
            self.logger.info(f"{file.name} is not encrypted")
            self._transition(Decrypting(file, PASSTHROUGH_PROGRESS))
            return self._transition(Succeeded(file, bytes(bytearray(self._data))))

        if info.requires_password:
            method = info.encryption_method.value if info.encryption_method else "unknown"
            self.logger.info(f"{file.name} is encrypted ({method}), password required")
            return self._transition(NeedsPassword(file, info))

        # Owner-only protection without a restriction signal
        return self._attempt(file, info, "", attempts=0)

    def submit_password(self, password: str) -> SessionState:
        """Try to decrypt the current file with a password supplied by the user"""
        self._require(NeedsPassword, "submit a password")
        state = self._state
        return self._attempt(state.file, state.info, password, attempts=state.attempts)

    def cancel(self) -> SessionState:
        """Abandon the password prompt"""
        self._require(NeedsPassword, "cancel")
        self._data = None
        return self._transition(Idle())

    def reset(self) -> SessionState:
        """Return to Idle, discarding the file, any output and any password"""
        self._data = None
        return self._transition(Idle())

    def _attempt(self, file: SelectedFile, info: EncryptionInfo, password: str,
                 attempts: int) -> SessionState:
        self._transition(Decrypting(file, ATTEMPT_PROGRESS_START))

        def on_progress(value: float) -> None:
            if isinstance(self._state, Decrypting):
                mapped = ATTEMPT_PROGRESS_START + value * (100 - ATTEMPT_PROGRESS_START) / 100
                self._transition(Decrypting(file, min(100.0, mapped)))

        try:
            output = self.engine.decrypt(self._data, password, on_progress)
        except WrongPasswordError:
            self.logger.info(f"Incorrect password for {file.name}")
            return self._transition(NeedsPassword(file, info, attempts + 1))
        except Exception as e:
            self.logger.error(f"Decryption error for {file.name}: {e}")
            return self._transition(Failed(file, str(e) or "Decryption failed"))

        self.logger.info(f"{file.name} unlocked ({len(output):,} bytes)")
        return self._transition(Succeeded(file, output))

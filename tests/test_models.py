import pytest

from pdf_unlocker.core.models import PermissionFlag, Permissions, SelectedFile, unlocked_filename
from pdf_unlocker.utils.exceptions import (
    PasswordIncorrectError,
    is_password_error,
    is_wrong_password_message,
)


@pytest.mark.parametrize("name, expected", [
    ("report.pdf", "report_unlocked.pdf"),
    ("report.PDF", "report_unlocked.pdf"),
    ("archive.v2.pdf", "archive.v2_unlocked.pdf"),
    ("report", "report_unlocked.pdf"),
])
def test_unlocked_filename(name, expected):
    assert unlocked_filename(name) == expected


def test_selected_file_from_path_reads_lazily(tmp_path):
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF-1.7 first")
    selected = SelectedFile.from_path(str(path))
    path.write_bytes(b"%PDF-1.7 second")

    assert selected.name == "doc.pdf"
    assert selected.content_type == "application/pdf"
    assert selected.read() == b"%PDF-1.7 second"


def test_selected_file_type_checks():
    assert SelectedFile.from_bytes("x.PDF", b"").looks_like_pdf
    assert SelectedFile.from_bytes("x", b"", "application/pdf").looks_like_pdf
    assert not SelectedFile.from_bytes("x.docx", b"", "application/msword").looks_like_pdf


def test_permissions_from_flags():
    perms = Permissions.from_flags([PermissionFlag.ANNOTATE, 0x04])
    assert perms == Permissions(printing=True, modifying=False, copying=False, annotating=True)


def test_password_error_signatures():
    assert is_password_error(PasswordIncorrectError("nope"))
    assert is_password_error(RuntimeError("Invalid PASSWORD"))
    assert not is_password_error(RuntimeError("broken xref"))

    class PasswordException(Exception):
        pass

    assert is_password_error(PasswordException("opaque"))


def test_wrong_password_message():
    assert is_wrong_password_message("Incorrect password. Please try again.")
    assert is_wrong_password_message("INCORRECT key")
    assert not is_wrong_password_message("corrupt structure")

import io

import pikepdf
import pytest

from pdf_unlocker.core.backends import PikePdfWriter
from pdf_unlocker.core.decryptor import DecryptionEngine, ProgressTracker, remove_restrictions
from pdf_unlocker.utils.exceptions import DecryptionFailedError, WrongPasswordError
from tests.conftest import PAGE_SIZE, PASSWORD, FakeDocument, FakeReader, ProgressRecorder, page_count


class BrokenLoadWriter(PikePdfWriter):
    """Writer whose direct rewrite always fails, forcing the rasterize path"""

    def load(self, data, password=""):
        raise RuntimeError("unsupported security handler")


def assert_unencrypted(data: bytes, pages: int) -> None:
    with pikepdf.open(io.BytesIO(data)) as pdf:
        assert not pdf.is_encrypted
        assert len(pdf.pages) == pages


class TestDirectRewrite:
    def test_correct_password(self, rc4_pdf):
        output = DecryptionEngine().decrypt(rc4_pdf, PASSWORD)
        assert_unencrypted(output, 2)

    def test_aes256(self, aes256_pdf):
        output = DecryptionEngine().decrypt(aes256_pdf, PASSWORD)
        assert_unencrypted(output, 1)

    def test_unencrypted_round_trip(self, plain_pdf):
        output = DecryptionEngine().decrypt(plain_pdf, "")
        assert page_count(output) == page_count(plain_pdf)

    def test_owner_only_with_empty_password(self, owner_only_pdf):
        output = DecryptionEngine().decrypt(owner_only_pdf, "")
        assert_unencrypted(output, 2)

    def test_progress_reaches_100(self, rc4_pdf):
        progress = ProgressRecorder()
        DecryptionEngine().decrypt(rc4_pdf, PASSWORD, progress)
        assert progress.values[0] == 0
        assert progress.values[-1] == 100
        assert progress.non_decreasing
        assert all(0 <= value <= 100 for value in progress.values)

    def test_output_is_bytes(self, rc4_pdf):
        assert type(DecryptionEngine().decrypt(rc4_pdf, PASSWORD)) is bytes


class TestFailures:
    def test_wrong_password(self, rc4_pdf):
        progress = ProgressRecorder()
        with pytest.raises(WrongPasswordError) as excinfo:
            DecryptionEngine().decrypt(rc4_pdf, "wrong", progress)
        assert "password" in str(excinfo.value).lower()
        assert progress.values[0] == 0
        assert max(progress.values) <= 10
        assert progress.non_decreasing

    def test_missing_password(self, rc4_pdf):
        with pytest.raises(WrongPasswordError):
            DecryptionEngine().decrypt(rc4_pdf, None)

    def test_wrong_password_skips_rewrite(self, rc4_pdf):
        class RecordingWriter(PikePdfWriter):
            loads = 0

            def load(self, data, password=""):
                RecordingWriter.loads += 1
                return super().load(data, password)

        with pytest.raises(WrongPasswordError):
            DecryptionEngine(writer=RecordingWriter()).decrypt(rc4_pdf, "wrong")
        assert RecordingWriter.loads == 0

    def test_unparseable_document(self):
        with pytest.raises(DecryptionFailedError):
            DecryptionEngine().decrypt(b"this is not a pdf at all", "")

    def test_incorrect_message_is_wrong_password(self):
        engine = DecryptionEngine(reader=FakeReader(error=RuntimeError("Incorrect key supplied")))
        with pytest.raises(WrongPasswordError):
            engine.decrypt(b"%PDF", "pw")

    def test_reader_failure_is_other(self):
        engine = DecryptionEngine(reader=FakeReader(error=RuntimeError("xref table broken")))
        with pytest.raises(DecryptionFailedError) as excinfo:
            engine.decrypt(b"%PDF", "pw")
        assert "xref table broken" in str(excinfo.value)

    def test_rebuild_failure_is_other(self):
        class BrokenDocument(FakeDocument):
            def render_page(self, index, scale):
                raise RuntimeError("cannot render")

        engine = DecryptionEngine(reader=FakeReader(BrokenDocument()), writer=BrokenLoadWriter())
        with pytest.raises(DecryptionFailedError):
            engine.decrypt(b"%PDF", "pw")


class TestRasterizeFallback:
    def test_rebuilds_every_page(self, rc4_pdf):
        output = DecryptionEngine(writer=BrokenLoadWriter()).decrypt(rc4_pdf, PASSWORD)
        assert_unencrypted(output, 2)

    def test_keeps_page_size(self, rc4_pdf):
        output = DecryptionEngine(writer=BrokenLoadWriter()).decrypt(rc4_pdf, PASSWORD)
        with pikepdf.open(io.BytesIO(output)) as pdf:
            box = [float(v) for v in pdf.pages[0].MediaBox]
        assert box[2] - box[0] == pytest.approx(PAGE_SIZE[0], abs=1)
        assert box[3] - box[1] == pytest.approx(PAGE_SIZE[1], abs=1)

    def test_embeds_one_image_per_page(self, rc4_pdf):
        output = DecryptionEngine(writer=BrokenLoadWriter()).decrypt(rc4_pdf, PASSWORD)
        with pikepdf.open(io.BytesIO(output)) as pdf:
            for page in pdf.pages:
                xobjects = page.Resources.XObject
                assert len(xobjects.keys()) == 1
                image = xobjects[list(xobjects.keys())[0]]
                assert image.Subtype == pikepdf.Name.Image
                assert int(image.Width) == PAGE_SIZE[0] * 2

    def test_progress_window(self):
        progress = ProgressRecorder()
        engine = DecryptionEngine(reader=FakeReader(FakeDocument(pages=4)), writer=BrokenLoadWriter())
        engine.decrypt(b"%PDF", "pw", progress)
        assert progress.non_decreasing
        assert progress.values[-1] == 100
        per_page = [value for value in progress.values if 30 < value <= 95]
        assert per_page[:4] == pytest.approx([46.25, 62.5, 78.75, 95.0])


def test_remove_restrictions(owner_only_pdf):
    progress = ProgressRecorder()
    output = remove_restrictions(owner_only_pdf, progress)
    assert_unencrypted(output, 2)
    assert progress.values == [0, 20, 60, 100]


def test_progress_tracker_clamps_and_holds():
    progress = ProgressRecorder()
    tracker = ProgressTracker(progress)
    for value in (-5, 40, 30, 150):
        tracker.report(value)
    assert progress.values == [0, 40, 40, 100]

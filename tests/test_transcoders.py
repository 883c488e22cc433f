"""Tests for transcoder providers and option translation."""

import pytest

from autopicture_converter import (
    CwebpError,
    CwebpProvider,
    CwebpTranscoder,
    PillowProvider,
    StaticProvider,
    TranscodeError,
    Unavailable,
    acquire_transcoder,
)
from autopicture_converter import cwebp as cwebp_module
from autopicture_converter.cwebp import cwebp_args
from autopicture_converter.pillow import pillow_save_args

from .conftest import FakeTranscoder, make_image


class TestAcquire:
    """Test suite for acquire_transcoder."""

    def test_first_available_wins(self):
        first, second = FakeTranscoder(), FakeTranscoder()
        assert acquire_transcoder([StaticProvider(first), StaticProvider(second)]) is first

    def test_skips_unavailable(self):
        fake = FakeTranscoder()
        providers = [StaticProvider(Unavailable(("gone",)), name="a"), StaticProvider(fake)]
        assert acquire_transcoder(providers) is fake

    def test_collects_reasons(self):
        providers = [
            StaticProvider(Unavailable(("not on PATH",)), name="cwebp"),
            StaticProvider(Unavailable(("no webp",)), name="pillow"),
        ]
        result = acquire_transcoder(providers)
        assert isinstance(result, Unavailable)
        assert result.reasons == ("cwebp: not on PATH", "pillow: no webp")
        assert str(result) == "cwebp: not on PATH; pillow: no webp"

    def test_no_providers(self):
        assert str(acquire_transcoder([])) == "no transcoder available"


class TestCwebp:
    """Test suite for the cwebp wrapper."""

    def test_args(self):
        args = cwebp_args({
            "quality": 75,
            "method": 6,
            "lossless": True,
            "preset": "photo",
            "alpha_quality": 90,
            "unknown": 1,
        })
        assert args == ["-preset", "photo", "-lossless", "-q", "75", "-m", "6", "-alpha_q", "90"]

    def test_missing_binary_is_unavailable(self, monkeypatch):
        monkeypatch.setattr(cwebp_module.shutil, "which", lambda name: None)
        result = CwebpProvider().try_acquire()
        assert isinstance(result, Unavailable)
        assert "cwebp" in str(result)

    def test_found_binary(self, monkeypatch):
        monkeypatch.setattr(cwebp_module.shutil, "which", lambda name: "/usr/bin/cwebp")
        transcoder = CwebpProvider().try_acquire()
        assert isinstance(transcoder, CwebpTranscoder)
        assert transcoder.binary == "/usr/bin/cwebp"

    def test_command_line(self, tmp_path, monkeypatch):
        seen = []

        def fake_run(cmd, timeout):
            seen.append(cmd)
            return 0, "", ""

        monkeypatch.setattr(cwebp_module, "run_cwebp", fake_run)
        src = make_image(tmp_path / "a.png")
        CwebpTranscoder("cwebp").encode_file(src, tmp_path / "a.webp", {"quality": 80})
        assert seen == [["cwebp", "-quiet", "-mt", "-q", "80", str(src), "-o", str(tmp_path / "a.webp")]]

    def test_failure_raises(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cwebp_module, "run_cwebp", lambda cmd, timeout: (1, "", "Unsupported image format"))
        src = make_image(tmp_path / "a.png")
        with pytest.raises(CwebpError) as exc_info:
            CwebpTranscoder("cwebp").encode_file(src, tmp_path / "a.webp", {})
        assert exc_info.value.returncode == 1
        assert isinstance(exc_info.value, TranscodeError)

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CwebpTranscoder("cwebp").encode_file(tmp_path / "nope.png", tmp_path / "nope.webp", {})


class TestPillow:
    """Test suite for the Pillow transcoder."""

    @pytest.fixture
    def transcoder(self):
        result = PillowProvider().try_acquire()
        if isinstance(result, Unavailable):
            pytest.skip(str(result))
        return result

    def test_save_args(self):
        assert pillow_save_args({"quality": 70, "method": None, "preset": "photo"}) == {"quality": 70}

    def test_encode_bytes(self, tmp_path, transcoder):
        src = make_image(tmp_path / "a.png", color=(0, 0, 255, 100))
        data = transcoder.encode_bytes(src.read_bytes(), {"quality": 50})
        assert data[:4] == b"RIFF" and data[8:12] == b"WEBP"

    def test_encode_file_from_jpeg(self, tmp_path, transcoder):
        src = make_image(tmp_path / "a.jpg")
        transcoder.encode_file(src, tmp_path / "a.webp", {"quality": 82})
        assert (tmp_path / "a.webp").read_bytes()[8:12] == b"WEBP"

    def test_garbage_input(self, transcoder):
        with pytest.raises(TranscodeError):
            transcoder.encode_bytes(b"not an image", {})

    def test_missing_file(self, tmp_path, transcoder):
        with pytest.raises(FileNotFoundError):
            transcoder.encode_file(tmp_path / "nope.png", tmp_path / "nope.webp", {})

"""Shared fixtures: fake transcoders and small raster images."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from PIL import Image

from autopicture_converter import StaticProvider, TranscodeError, Unavailable


class FakeTranscoder:
    """Deterministic stand-in for a WebP encoder that records its calls."""

    name = "fake"

    def __init__(self, fail_on: set[str] | None = None):
        self.calls: list[Path] = []
        self.byte_calls = 0
        self.fail_on = fail_on or set()
        self._lock = threading.Lock()

    def encode_file(self, src: Path, dest: Path, options: dict) -> None:
        data = src.read_bytes()
        with self._lock:
            self.calls.append(Path(src))
        if src.name in self.fail_on:
            raise TranscodeError(f"cannot encode {src.name}")
        dest.write_bytes(self.encode_bytes(data, options))

    def encode_bytes(self, data: bytes, options: dict) -> bytes:
        with self._lock:
            self.byte_calls += 1
        q = str(options.get("quality", "")).encode()
        return b"RIFF\x00\x00\x00\x00WEBP" + q + b":" + data[:16]


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def fake_providers(fake_transcoder):
    return [StaticProvider(fake_transcoder, name="fake")]


@pytest.fixture
def unavailable_providers():
    return [StaticProvider(Unavailable(("simulated",)), name="missing")]


def make_image(path: Path, color=(200, 40, 40), size=(8, 8), fmt: str | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = "RGBA" if len(color) == 4 else "RGB"
    Image.new(mode, size, color).save(path, format=fmt)
    return path


@pytest.fixture
def image_factory():
    return make_image

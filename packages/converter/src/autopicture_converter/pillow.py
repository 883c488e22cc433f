"""
Pillow-backed WebP transcoder.

Pillow is imported when the provider is asked for a transcoder, not at
module import, so a broken or WebP-less Pillow only makes the provider
report Unavailable.
"""

from __future__ import annotations

import importlib
import io
import logging
from pathlib import Path
from typing import Any

from .capability import TranscodeError, Transcoder, Unavailable

logger = logging.getLogger(__name__)

_SAVE_KEYS = {
    "quality": "quality",
    "lossless": "lossless",
    "method": "method",
    "alpha_quality": "alpha_quality",
    "exact": "exact",
}


def pillow_save_args(options: dict[str, Any]) -> dict[str, Any]:
    """Translate encode options to Image.save() keyword arguments."""
    kwargs: dict[str, Any] = {}
    for key, value in options.items():
        target = _SAVE_KEYS.get(key)
        if target is None:
            logger.debug("Pillow ignores encode option: %s", key)
            continue
        if value is not None:
            kwargs[target] = value
    return kwargs


class PillowTranscoder:
    """Transcoder that encodes WebP in-process with Pillow."""

    name = "pillow"

    def __init__(self, image_module: Any):
        self._image = image_module

    def _prepare(self, img: Any) -> Any:
        has_alpha = img.mode in ("RGBA", "LA") or (
            img.mode == "P" and "transparency" in img.info
        )
        if has_alpha:
            return img.convert("RGBA") if img.mode != "RGBA" else img
        return img.convert("RGB") if img.mode != "RGB" else img

    def _encode(self, fp: Any, out: Any, options: dict[str, Any]) -> None:
        try:
            with self._image.open(fp) as img:
                img = self._prepare(img)
                img.save(out, format="WEBP", **pillow_save_args(options))
        except FileNotFoundError:
            raise
        except (OSError, ValueError) as e:
            raise TranscodeError(f"Pillow failed: {type(e).__name__}: {e}") from e

    def encode_file(self, src: Path, dest: Path, options: dict[str, Any]) -> None:
        buf = io.BytesIO()
        self._encode(src, buf, options)
        dest.write_bytes(buf.getvalue())

    def encode_bytes(self, data: bytes, options: dict[str, Any]) -> bytes:
        buf = io.BytesIO()
        self._encode(io.BytesIO(data), buf, options)
        return buf.getvalue()


class PillowProvider:
    """Provides a PillowTranscoder if Pillow imports and supports WebP."""

    name = "pillow"

    def try_acquire(self) -> Transcoder | Unavailable:
        try:
            image = importlib.import_module("PIL.Image")
            features = importlib.import_module("PIL.features")
        except ImportError as e:
            return Unavailable((f"Pillow not importable: {e}",))
        if not features.check("webp"):
            return Unavailable(("Pillow built without WebP support",))
        return PillowTranscoder(image)

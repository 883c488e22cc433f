"""
Transcoder capability providers.

Encoders are optional: the cwebp binary may not be installed and Pillow
may be built without WebP support. Providers report that as an explicit
Unavailable value so callers can skip work instead of failing a build.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)


class TranscodeError(RuntimeError):
    """Raised when an available transcoder fails on a particular input."""
    pass


@dataclass(frozen=True)
class Unavailable:
    """No working transcoder could be acquired."""
    reasons: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return "; ".join(self.reasons) or "no transcoder available"


class Transcoder(Protocol):
    """Raster bytes in, WebP bytes out."""

    name: str

    def encode_file(self, src: Path, dest: Path, options: dict[str, Any]) -> None:
        """Write a WebP rendition of src to dest, overwriting it."""
        ...

    def encode_bytes(self, data: bytes, options: dict[str, Any]) -> bytes:
        """Return a WebP rendition of the given raster bytes."""
        ...


class TranscoderProvider(Protocol):
    name: str

    def try_acquire(self) -> Transcoder | Unavailable: ...


class StaticProvider:
    """Provider that always yields the given transcoder (or Unavailable)."""

    def __init__(self, result: Transcoder | Unavailable, name: str = "static"):
        self.name = name
        self._result = result

    def try_acquire(self) -> Transcoder | Unavailable:
        return self._result


def acquire_transcoder(providers: Sequence[TranscoderProvider]) -> Transcoder | Unavailable:
    """Return the first transcoder a provider can supply."""
    reasons: list[str] = []
    for provider in providers:
        result = provider.try_acquire()
        if isinstance(result, Unavailable):
            reasons.extend(f"{provider.name}: {r}" for r in result.reasons)
            continue
        logger.debug("Using %s transcoder", result.name)
        return result
    return Unavailable(tuple(reasons))


def default_batch_providers() -> list[TranscoderProvider]:
    """cwebp first for final builds, Pillow as fallback."""
    from .cwebp import CwebpProvider
    from .pillow import PillowProvider

    return [CwebpProvider(), PillowProvider()]


def default_preview_providers() -> list[TranscoderProvider]:
    """Pillow first for request-time work (no subprocess), cwebp as fallback."""
    from .cwebp import CwebpProvider
    from .pillow import PillowProvider

    return [PillowProvider(), CwebpProvider()]

"""In-memory WebP transcoding for the dev server."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Sequence

from autopicture_shared.options import canonical_options

from .capability import (
    Transcoder,
    TranscoderProvider,
    Unavailable,
    acquire_transcoder,
    default_preview_providers,
)

logger = logging.getLogger(__name__)

MAX_CACHE_ENTRIES = 200


class PreviewTranscoder:
    """
    Transcodes source images on request and keeps the most recently
    inserted results. Eviction is by insertion order, not by use.
    """

    def __init__(
        self,
        encode_options: dict[str, Any],
        providers: Sequence[TranscoderProvider] | None = None,
        max_entries: int = MAX_CACHE_ENTRIES,
    ):
        self.encode_options = dict(encode_options)
        self.max_entries = max_entries
        self._providers = list(providers) if providers is not None else default_preview_providers()
        self._transcoder: Transcoder | Unavailable | None = None
        self._cache: dict[tuple[str, int, str], bytes] = {}
        self._lock = threading.Lock()

    def transcoder(self) -> Transcoder | Unavailable:
        """Acquire the encoder on first use and remember the outcome."""
        if self._transcoder is None:
            self._transcoder = acquire_transcoder(self._providers)
            if isinstance(self._transcoder, Unavailable):
                logger.info("Dev WebP preview disabled: %s", self._transcoder)
        return self._transcoder

    def __len__(self) -> int:
        return len(self._cache)

    def transcode(self, source: Path) -> bytes | Unavailable:
        """
        WebP bytes for source.

        Raises:
            FileNotFoundError: If source doesn't exist
            TranscodeError: If the encoder rejects the file
        """
        transcoder = self.transcoder()
        if isinstance(transcoder, Unavailable):
            return transcoder

        source = source.resolve()
        st = source.stat()
        key = (str(source), st.st_mtime_ns, canonical_options(self.encode_options))

        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        data = transcoder.encode_bytes(source.read_bytes(), self.encode_options)

        with self._lock:
            self._cache[key] = data
            while len(self._cache) > self.max_entries:
                del self._cache[next(iter(self._cache))]
        return data

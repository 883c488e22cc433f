"""
Batch WebP conversion over a build output directory.

This module handles the incremental conversion workflow:
1. Walk the output tree for raster files matching the include set
2. Decide per file, from the fingerprint store, whether to (re)encode
3. Run conversions on a fixed pool of threads draining one queue
4. Flush the fingerprint store once all workers are done
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from queue import Empty, Queue
from typing import Sequence

from autopicture_shared.files import (
    include_ext_pattern,
    is_conversion_candidate,
    iter_files,
    sha1_file,
    webp_output_path,
)
from autopicture_shared.options import PluginOptions

from .capability import (
    TranscodeError,
    Transcoder,
    TranscoderProvider,
    Unavailable,
    acquire_transcoder,
    default_batch_providers,
)
from .fingerprint import FingerprintRecord, FingerprintStore

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    CONVERTED = "converted"
    UP_TO_DATE = "up_to_date"
    REFRESHED = "refreshed"


@dataclass
class BatchResult:
    """Outcome of one batch run."""
    discovered: int = 0
    converted: list[Path] = field(default_factory=list)
    up_to_date: list[Path] = field(default_factory=list)
    refreshed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    unavailable: str | None = None

    def summary(self) -> str:
        if self.unavailable is not None:
            return f"{self.discovered} images found, WebP encoder unavailable ({self.unavailable})"
        return (
            f"{self.discovered} images: {len(self.converted)} converted, "
            f"{len(self.up_to_date) + len(self.refreshed)} up to date, "
            f"{len(self.failed)} skipped"
        )


class BatchConverter:
    """Converts every eligible raster file under a directory to WebP."""

    def __init__(
        self,
        options: PluginOptions,
        store: FingerprintStore,
        transcoder: Transcoder | Unavailable,
    ):
        self.options = options
        self.store = store
        self.transcoder = transcoder
        self._include_re = include_ext_pattern(options.include_ext)
        self._lock = threading.Lock()

    def discover(self, root: Path) -> list[Path]:
        """All conversion candidates under root, in walk order."""
        return [p for p in iter_files(root) if is_conversion_candidate(p, self._include_re)]

    def run(self, root: Path) -> BatchResult:
        jobs = self.discover(root)
        result = BatchResult(discovered=len(jobs))

        if isinstance(self.transcoder, Unavailable):
            result.unavailable = str(self.transcoder)
            logger.info("Skipping WebP conversion: %s", result.unavailable)
            return result
        transcoder = self.transcoder

        queue: Queue[Path] = Queue()
        for job in jobs:
            queue.put(job)

        n_workers = max(1, min(self.options.worker_count(), len(jobs)))
        threads = [
            threading.Thread(
                target=self._worker,
                args=(queue, result, transcoder),
                name=f"autopicture-worker-{i}",
                daemon=True,
            )
            for i in range(n_workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.store.flush()
        logger.info("WebP conversion: %s", result.summary())
        return result

    def _worker(self, queue: Queue[Path], result: BatchResult, transcoder: Transcoder) -> None:
        """Pull jobs until the queue is drained."""
        while True:
            try:
                source = queue.get_nowait()
            except Empty:
                return

            try:
                action = self.process(source, transcoder)
            except FileNotFoundError:
                if self.options.warn_on_missing_file:
                    logger.warning("Skipping: file not found %s", source)
                else:
                    logger.debug("Skipping: file not found %s", source)
                self._record(result.failed, source)
            except (TranscodeError, OSError) as e:
                logger.warning("Skipping %s: %s", source, e)
                self._record(result.failed, source)
            else:
                if action is Action.CONVERTED:
                    self._record(result.converted, source)
                elif action is Action.REFRESHED:
                    self._record(result.refreshed, source)
                else:
                    self._record(result.up_to_date, source)

    def _record(self, bucket: list[Path], source: Path) -> None:
        with self._lock:
            bucket.append(source)

    def process(self, source: Path, transcoder: Transcoder | None = None) -> Action:
        """
        Bring the WebP twin of source up to date.

        Uses the converter's own transcoder unless one is given.

        Raises:
            FileNotFoundError: If source vanished
            TranscodeError: If the encoder rejects the file
        """
        if transcoder is None:
            if isinstance(self.transcoder, Unavailable):
                raise TranscodeError(str(self.transcoder))
            transcoder = self.transcoder

        opts = self.options.encode_options
        st = source.stat()
        dest = webp_output_path(source)

        prev = self.store.get(source)
        if not dest.exists() or prev is None:
            content_hash = sha1_file(source)
            transcoder.encode_file(source, dest, opts)
            self.store.put(source, FingerprintRecord.from_stat(st, content_hash, opts))
            return Action.CONVERTED

        # input unchanged, only the options may have moved
        if prev.matches_stat(st):
            if prev.same_options(opts):
                return Action.UP_TO_DATE
            transcoder.encode_file(source, dest, opts)
            content_hash = sha1_file(source)
            self.store.put(source, FingerprintRecord.from_stat(st, content_hash, opts))
            return Action.CONVERTED

        # stat changed: the content hash decides
        content_hash = sha1_file(source)
        action = Action.REFRESHED
        if prev.content_hash != content_hash or not prev.same_options(opts):
            transcoder.encode_file(source, dest, opts)
            action = Action.CONVERTED
        self.store.put(source, FingerprintRecord.from_stat(st, content_hash, opts))
        return action


def convert_tree(
    root: Path,
    options: PluginOptions,
    providers: Sequence[TranscoderProvider] | None = None,
    store: FingerprintStore | None = None,
) -> BatchResult:
    """Load the store, acquire an encoder, and convert everything under root."""
    if store is None:
        store = FingerprintStore.load(options.cache_path())
    if providers is None:
        providers = default_batch_providers()
    transcoder = acquire_transcoder(providers)
    return BatchConverter(options, store, transcoder).run(root)

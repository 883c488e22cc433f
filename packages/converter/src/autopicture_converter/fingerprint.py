"""
Persistent fingerprint store for the batch converter.

Format:
    {"version": 1, "files": {"<resolved source path>": {record}}}

A store that can't be read, has the wrong shape or the wrong version is
treated as a cold start. It is loaded once per batch run and written
once at the end, only if something changed.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from autopicture_shared.files import write_text_atomic
from autopicture_shared.options import canonical_options

logger = logging.getLogger(__name__)

STORE_VERSION = 1


@dataclass(frozen=True)
class FingerprintRecord:
    """Last-known state of a source image and the options it was encoded with."""
    size: int
    mtime_ns: int
    content_hash: str
    encode_options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stat(cls, st: os.stat_result, content_hash: str, encode_options: dict[str, Any]) -> FingerprintRecord:
        return cls(
            size=st.st_size,
            mtime_ns=st.st_mtime_ns,
            content_hash=content_hash,
            encode_options=dict(encode_options),
        )

    def matches_stat(self, st: os.stat_result) -> bool:
        """True if size and mtime still match the live file."""
        return self.size == st.st_size and self.mtime_ns == st.st_mtime_ns

    def same_options(self, encode_options: dict[str, Any]) -> bool:
        return canonical_options(self.encode_options) == canonical_options(encode_options)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_record(data: Any) -> FingerprintRecord | None:
    """Build a record from stored JSON, or None if it is malformed."""
    if not isinstance(data, dict):
        return None
    try:
        size = data["size"]
        mtime_ns = data["mtime_ns"]
        content_hash = data["content_hash"]
    except KeyError:
        return None
    options = data.get("encode_options") or {}
    if not isinstance(size, int) or not isinstance(mtime_ns, int):
        return None
    if not isinstance(content_hash, str) or not isinstance(options, dict):
        return None
    return FingerprintRecord(size, mtime_ns, content_hash, options)


class FingerprintStore:
    """Maps resolved source paths to FingerprintRecords."""

    def __init__(self, path: Path, records: dict[str, FingerprintRecord] | None = None):
        self.path = path
        self._records: dict[str, FingerprintRecord] = dict(records or {})
        self._dirty = False
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> FingerprintStore:
        """Read the store from disk. Never raises; bad input gives an empty store."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No fingerprint store at %s yet", path)
            return cls(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Can't read fingerprint store %s: %s", path, e)
            return cls(path)

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt fingerprint store %s, starting empty: %s", path, e)
            return cls(path)

        if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
            logger.info("Fingerprint store %s has another version, starting empty", path)
            return cls(path)

        files = data.get("files")
        if not isinstance(files, dict):
            return cls(path)

        records: dict[str, FingerprintRecord] = {}
        for key, value in files.items():
            record = parse_record(value)
            if record is not None:
                records[str(key)] = record

        logger.debug("Loaded %d fingerprints from %s", len(records), path)
        return cls(path, records)

    @staticmethod
    def key_for(source: Path) -> str:
        return str(source.resolve())

    def get(self, source: Path) -> FingerprintRecord | None:
        return self._records.get(self.key_for(source))

    def put(self, source: Path, record: FingerprintRecord) -> None:
        with self._lock:
            self._records[self.key_for(source)] = record
            self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._records)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Plain-dict copy of all records, sorted by key."""
        with self._lock:
            return {k: self._records[k].to_dict() for k in sorted(self._records)}

    def flush(self) -> bool:
        """
        Write the store if it changed since the last load or flush.

        Returns True if the file was written. Write errors are logged and
        leave the in-memory state untouched.
        """
        with self._lock:
            if not self._dirty:
                return False
            payload = {
                "version": STORE_VERSION,
                "files": {k: self._records[k].to_dict() for k in sorted(self._records)},
            }
            try:
                write_text_atomic(self.path, json.dumps(payload, indent=2))
            except OSError as e:
                logger.warning("Can't write fingerprint store %s: %s", self.path, e)
                return False
            self._dirty = False
            logger.debug("Wrote %d fingerprints to %s", len(self._records), self.path)
            return True

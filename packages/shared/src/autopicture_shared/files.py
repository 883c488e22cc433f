"""
File handling utilities for the converter, dev server and pipeline
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import stat
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

from .urls import RASTER_RE, WEBP_RE

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 64 * 1024

# Probe order when looking for the raster original of a .webp path.
ORIGINAL_EXTS: tuple[str, ...] = (".png", ".jpg", ".jpeg", ".PNG", ".JPG", ".JPEG")


def is_in_dir(base: Path, target: Path) -> bool:
    """Check if target path is in base dir."""
    try:
        target.resolve().relative_to(base.resolve())
        return True
    except ValueError:
        return False


def include_ext_pattern(include_ext: Iterable[str]) -> re.Pattern[str] | None:
    """Regex matching any of the configured extensions, or None if unset."""
    clean = [re.escape(e.lstrip(".")) for e in include_ext if e and e.lstrip(".")]
    if not clean:
        return None
    return re.compile(rf"\.({'|'.join(clean)})(\?.*?)?$", re.IGNORECASE)


def is_conversion_candidate(path: Path | str, include_re: re.Pattern[str] | None) -> bool:
    """A file qualifies if it matches the include set and the raster pattern, and is not WebP."""
    name = str(path)
    if include_re is not None and not include_re.search(name):
        return False
    return bool(RASTER_RE.search(name)) and not WEBP_RE.search(name)


def iter_files(root: Path) -> Iterator[Path]:
    """Yield every regular file under root, depth first. Missing root yields nothing."""
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def webp_output_path(source: Path) -> Path:
    """Where the WebP twin of a raster file is written (same dir, ext swapped)."""
    return source.with_name(RASTER_RE.sub(".webp", source.name))


def find_original(webp_path: Path) -> Path | None:
    """Probe for the raster original of a .webp path; first existing match wins."""
    if not WEBP_RE.search(webp_path.name):
        return None
    stem = WEBP_RE.sub("", webp_path.name)
    for ext in ORIGINAL_EXTS:
        candidate = webp_path.with_name(stem + ext)
        if candidate.is_file():
            return candidate.resolve()
    return None


def sha1_file(path: Path) -> str:
    """SHA-1 hex digest of a file's contents."""
    h = hashlib.sha1()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def replacement_mode(target: Path) -> int:
    """Permission bits for a file about to replace target."""
    try:
        return stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def write_text_atomic(target: Path, text: str) -> None:
    """
    Write text next to target and move it into place.

    The result keeps target's permission bits, or gets the usual
    umask-derived ones if target is new.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    mode = replacement_mode(target)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

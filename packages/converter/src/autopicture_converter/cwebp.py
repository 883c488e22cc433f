"""
Wrapper for the cwebp command-line tool.

This module provides a transcoder backed by cwebp with:
- Encode option translation to cwebp flags
- Proper error handling and custom exceptions
- A timeout so a hung encoder can't block a worker forever
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from .capability import TranscodeError, Transcoder, Unavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class CwebpError(TranscodeError):
    """Raised when cwebp fails to convert an image."""

    def __init__(self, command: list[str], returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"cwebp failed (rc={returncode}): {stderr.strip()}")


def run_cwebp(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> tuple[int, str, str]:
    """Run cwebp with the given arguments."""
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return 124, "", f"TimeoutExpired after {timeout}s"
    except FileNotFoundError:
        return 127, "", "cwebp not found. Install webp package."


def cwebp_args(options: dict[str, Any]) -> list[str]:
    """Translate encode options to cwebp flags. Unknown keys are ignored."""
    args: list[str] = []

    # -preset overrides most other flags, so it goes first
    if options.get("preset"):
        args += ["-preset", str(options["preset"])]
    if options.get("lossless"):
        args.append("-lossless")
    if options.get("quality") is not None:
        args += ["-q", str(options["quality"])]
    if options.get("method") is not None:
        args += ["-m", str(options["method"])]
    if options.get("near_lossless") is not None:
        args += ["-near_lossless", str(options["near_lossless"])]
    if options.get("alpha_quality") is not None:
        args += ["-alpha_q", str(options["alpha_quality"])]
    if options.get("exact"):
        args.append("-exact")

    known = {"preset", "lossless", "quality", "method", "near_lossless", "alpha_quality", "exact"}
    unknown = sorted(set(options) - known)
    if unknown:
        logger.debug("cwebp ignores encode options: %s", ", ".join(unknown))
    return args


class CwebpTranscoder:
    """Transcoder that shells out to cwebp."""

    name = "cwebp"

    def __init__(self, binary: str, timeout: float = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def encode_file(self, src: Path, dest: Path, options: dict[str, Any]) -> None:
        """
        Convert src to WebP at dest.

        Raises:
            FileNotFoundError: If src doesn't exist
            CwebpError: If cwebp fails
        """
        if not src.exists():
            raise FileNotFoundError(f"Input file not found: {src}")

        cmd = [self.binary, "-quiet", "-mt"] + cwebp_args(options) + [str(src), "-o", str(dest)]

        logger.debug("Running: %s", " ".join(cmd))
        returncode, _stdout, stderr = run_cwebp(cmd, self.timeout)
        if returncode != 0:
            raise CwebpError(cmd, returncode, stderr)

    def encode_bytes(self, data: bytes, options: dict[str, Any]) -> bytes:
        with tempfile.TemporaryDirectory(prefix="autopicture-") as tmp:
            src = Path(tmp) / "input"
            dest = Path(tmp) / "output.webp"
            src.write_bytes(data)
            self.encode_file(src, dest, options)
            return dest.read_bytes()


class CwebpProvider:
    """Provides a CwebpTranscoder if cwebp is on PATH."""

    name = "cwebp"

    def __init__(self, binary: str = "cwebp", timeout: float = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def try_acquire(self) -> Transcoder | Unavailable:
        path = shutil.which(self.binary)
        if path is None:
            return Unavailable((f"{self.binary} not found on PATH",))
        return CwebpTranscoder(path, self.timeout)

"""
WebP Conversion Engine.

This package is the image side of the auto-picture stage:
- Transcoder capability providers (cwebp, Pillow)
- Fingerprint store for incremental builds
- Batch conversion of a build output directory
- In-memory transcoding for the dev server

Deployment:
    pip install webp-autopicture

This package has no networking dependencies. It's pure image processing.
"""

from .batch import Action, BatchConverter, BatchResult, convert_tree
from .capability import (
    StaticProvider,
    TranscodeError,
    Transcoder,
    TranscoderProvider,
    Unavailable,
    acquire_transcoder,
    default_batch_providers,
    default_preview_providers,
)
from .cwebp import CwebpError, CwebpProvider, CwebpTranscoder, run_cwebp
from .fingerprint import STORE_VERSION, FingerprintRecord, FingerprintStore
from .pillow import PillowProvider, PillowTranscoder
from .preview import MAX_CACHE_ENTRIES, PreviewTranscoder

__all__ = [
    "Action",
    "BatchConverter",
    "BatchResult",
    "convert_tree",
    "StaticProvider",
    "TranscodeError",
    "Transcoder",
    "TranscoderProvider",
    "Unavailable",
    "acquire_transcoder",
    "default_batch_providers",
    "default_preview_providers",
    "CwebpError",
    "CwebpProvider",
    "CwebpTranscoder",
    "run_cwebp",
    "STORE_VERSION",
    "FingerprintRecord",
    "FingerprintStore",
    "PillowProvider",
    "PillowTranscoder",
    "MAX_CACHE_ENTRIES",
    "PreviewTranscoder",
]

"""Configuration for pipeline runs."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class BuildConfig:
    """Where a build reads its project and writes its output."""

    out_dir: Path = Path("dist")
    root: Path = field(default_factory=Path.cwd)
    public_dir: str = "public"

    @classmethod
    def load(cls) -> BuildConfig:
        """Load from environment variables."""
        return cls(
            out_dir=Path(os.getenv("AUTOPICTURE_OUT_DIR", "dist")),
            root=Path(os.getenv("AUTOPICTURE_ROOT", os.getcwd())),
            public_dir=os.getenv("AUTOPICTURE_PUBLIC_DIR", "public"),
        )

"""Configuration management for the dev server."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class DevConfig:
    """Dev server configuration loaded from environment variables."""

    host: str = "127.0.0.1"
    port: int = 3000
    root: Path = field(default_factory=Path.cwd)
    public_dir: str = "public"
    out_dir: Path = Path("dist")

    @classmethod
    def load(cls) -> DevConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("AUTOPICTURE_DEV_HOST", "127.0.0.1"),
            port=int(os.getenv("AUTOPICTURE_DEV_PORT", "3000")),
            root=Path(os.getenv("AUTOPICTURE_ROOT", os.getcwd())),
            public_dir=os.getenv("AUTOPICTURE_PUBLIC_DIR", "public"),
            out_dir=Path(os.getenv("AUTOPICTURE_OUT_DIR", "dist")),
        )

    def root_path(self) -> Path:
        return self.root.resolve()

    def public_path(self) -> Path:
        return self.root_path() / self.public_dir

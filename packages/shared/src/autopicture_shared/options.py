"""
Option types for the WebP auto-picture pipeline stage.

Options flow:
    CLI / env / dict -> PluginOptions (what to convert, how to encode)
    Bundler          -> ResolvedConfig (where the project and output live)
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

ApplyMode = Literal["build", "serve"]
Command = Literal["build", "serve"]

DEFAULT_INCLUDE_EXT: tuple[str, ...] = (".png", ".jpg", ".jpeg")
DEFAULT_CACHE_FILE = ".cache/webp-autopicture.json"
DEFAULT_QUALITY = 82


class OptionsError(Exception):
    """Raised when plugin options fail validation."""
    pass


def _default_encode_options() -> dict[str, Any]:
    return {"quality": DEFAULT_QUALITY}


@dataclass(frozen=True)
class PluginOptions:
    """
    User-facing options of the auto-picture plugin. Encode options are
    passed through to the transcoder untouched.
    """
    include_ext: tuple[str, ...] = DEFAULT_INCLUDE_EXT
    skip_external: bool = True
    warn_on_missing_file: bool = True
    concurrency: int | Literal["auto"] = "auto"
    cache_file: Path = Path(DEFAULT_CACHE_FILE)
    encode_options: dict[str, Any] = field(default_factory=_default_encode_options)
    apply_mode: ApplyMode | None = None

    def worker_count(self) -> int:
        """Number of batch workers: explicit value, or 2..8 from CPU count."""
        if isinstance(self.concurrency, int) and self.concurrency > 0:
            return self.concurrency
        return max(2, min(8, os.cpu_count() or 4))

    def cache_path(self) -> Path:
        """Absolute fingerprint store path, relative to the working directory."""
        return (Path.cwd() / self.cache_file).resolve()

    def applies_to(self, command: str) -> bool:
        return self.apply_mode is None or self.apply_mode == command

    @classmethod
    def load(cls) -> PluginOptions:
        """Load options from AUTOPICTURE_* environment variables."""
        data: dict[str, Any] = {}
        env = os.environ

        if "AUTOPICTURE_INCLUDE_EXT" in env:
            raw = env["AUTOPICTURE_INCLUDE_EXT"]
            data["include_ext"] = [e.strip() for e in raw.split(",") if e.strip()]
        if "AUTOPICTURE_SKIP_EXTERNAL" in env:
            data["skip_external"] = _env_flag(env["AUTOPICTURE_SKIP_EXTERNAL"])
        if "AUTOPICTURE_WARN_ON_MISSING_FILE" in env:
            data["warn_on_missing_file"] = _env_flag(env["AUTOPICTURE_WARN_ON_MISSING_FILE"])
        if "AUTOPICTURE_CONCURRENCY" in env:
            data["concurrency"] = env["AUTOPICTURE_CONCURRENCY"]
        if "AUTOPICTURE_CACHE_FILE" in env:
            data["cache_file"] = env["AUTOPICTURE_CACHE_FILE"]
        if "AUTOPICTURE_ENCODE_OPTIONS" in env:
            try:
                data["encode_options"] = json.loads(env["AUTOPICTURE_ENCODE_OPTIONS"])
            except json.JSONDecodeError as e:
                raise OptionsError(f"AUTOPICTURE_ENCODE_OPTIONS is not valid JSON: {e}") from e
        if "AUTOPICTURE_APPLY_MODE" in env:
            data["apply_mode"] = env["AUTOPICTURE_APPLY_MODE"] or None
        return parse_plugin_options(data)


@dataclass(frozen=True)
class ResolvedConfig:
    """Final bundler configuration handed to plugins."""
    command: Command = "serve"
    root: Path = field(default_factory=Path.cwd)
    out_dir: Path = Path("dist")
    public_dir: str = "public"

    def out_path(self) -> Path:
        """Output directory, absolute."""
        return (Path.cwd() / self.out_dir).resolve()


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


_ALIASES = {
    "includeExt": "include_ext",
    "skipExternal": "skip_external",
    "warnOnMissingFile": "warn_on_missing_file",
    "cacheFile": "cache_file",
    "encodeOptions": "encode_options",
    "webpOptions": "encode_options",
    "applyMode": "apply_mode",
}


def _normalize_ext(ext: str) -> str:
    ext = ext.strip().lower()
    if not ext:
        return ""
    return ext if ext.startswith(".") else f".{ext}"


def _parse_concurrency(value: Any) -> int | Literal["auto"]:
    if value is None or value == "auto":
        return "auto"
    if isinstance(value, bool):
        raise OptionsError(f"concurrency must be a positive integer or 'auto', got {value!r}")
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise OptionsError(f"concurrency must be a positive integer or 'auto', got {value!r}") from None
    if n <= 0:
        raise OptionsError(f"concurrency must be positive, got {n}")
    return n


def parse_plugin_options(data: dict[str, Any] | None) -> PluginOptions:
    """Build PluginOptions from a plain mapping (camelCase or snake_case keys)."""
    if data is None:
        return PluginOptions()

    d = {_ALIASES.get(k, k): v for k, v in data.items()}

    include_ext = d.get("include_ext", DEFAULT_INCLUDE_EXT)
    if isinstance(include_ext, str):
        include_ext = [include_ext]
    cleaned = tuple(e for e in (_normalize_ext(str(x)) for x in include_ext if x) if e)

    encode_options = d.get("encode_options")
    if encode_options is None:
        encode_options = _default_encode_options()
    if not isinstance(encode_options, dict):
        raise OptionsError(f"encode_options must be a mapping, got {type(encode_options).__name__}")

    apply_mode = d.get("apply_mode")
    if apply_mode not in (None, "build", "serve"):
        raise OptionsError(f"apply_mode must be 'build', 'serve' or unset, got {apply_mode!r}")

    return PluginOptions(
        include_ext=cleaned,
        skip_external=bool(d.get("skip_external", True)),
        warn_on_missing_file=bool(d.get("warn_on_missing_file", True)),
        concurrency=_parse_concurrency(d.get("concurrency", "auto")),
        cache_file=Path(d.get("cache_file") or DEFAULT_CACHE_FILE),
        encode_options=dict(encode_options),
        apply_mode=apply_mode,
    )


def canonical_options(options: dict[str, Any] | None) -> str:
    """Stable string form of encode options, used for equality checks."""
    return json.dumps(options or {}, sort_keys=True, separators=(",", ":"), default=str)

"""Types exchanged between the pipeline host and its plugins."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from .options import ResolvedConfig

if TYPE_CHECKING:
    from flask import Flask

AssetType = Literal["asset", "chunk"]
Enforce = Literal["pre", "post"]


@dataclass
class BundleAsset:
    """One emitted file of a bundle. source may be text or raw bytes."""
    file_name: str
    source: str | bytes
    type: AssetType = "asset"

    def is_html(self) -> bool:
        return self.type == "asset" and self.file_name.endswith(".html")

    def text(self) -> str:
        if isinstance(self.source, bytes):
            return self.source.decode("utf-8")
        return str(self.source)


Bundle = dict[str, BundleAsset]


class PipelinePlugin(Protocol):
    """Hooks a plugin may implement. Hosts call only what is present."""

    name: str
    enforce: Enforce | None
    apply: str | None

    def config_resolved(self, resolved: ResolvedConfig) -> None: ...

    def transform_index_html(self, html: str) -> str: ...

    def configure_server(self, app: Flask) -> None: ...

    def generate_bundle(self, bundle: Bundle) -> None: ...

    def write_bundle(self) -> Any: ...


def plugin_applies(plugin: Any, command: str) -> bool:
    apply = getattr(plugin, "apply", None)
    return apply is None or apply == command


def order_plugins(plugins: list[Any]) -> list[Any]:
    """Order as bundlers do: enforce="pre" first, then normal, then "post"."""
    rank = {"pre": 0, None: 1, "post": 2}
    return sorted(plugins, key=lambda p: rank.get(getattr(p, "enforce", None), 1))

"""
The WebP auto-picture build-pipeline plugin.

Hooks, in the order a host calls them:
    config_resolved       -> learn command, root and output dir
    transform_index_html  -> rewrite each HTML document while serving
    configure_server      -> install the on-the-fly WebP middleware
    generate_bundle       -> rewrite each emitted HTML asset (build only)
    write_bundle          -> convert every raster image in the output (build only)

No hook raises: a failure costs at most one unoptimized image or document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from autopicture_converter import (
    BatchResult,
    PreviewTranscoder,
    TranscoderProvider,
    convert_tree,
)
from autopicture_shared.hooks import Bundle
from autopicture_shared.markup import PictureRewriter
from autopicture_shared.options import PluginOptions, ResolvedConfig

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

PLUGIN_NAME = "webp-auto-picture"


class WebpAutoPicturePlugin:
    """Injects WebP <source> elements and produces the matching .webp files."""

    name = PLUGIN_NAME
    # run after the bundler has rewritten asset URLs
    enforce = "post"

    def __init__(
        self,
        options: PluginOptions | None = None,
        batch_providers: Sequence[TranscoderProvider] | None = None,
        preview_providers: Sequence[TranscoderProvider] | None = None,
        rewriter: PictureRewriter | None = None,
    ):
        self.options = options or PluginOptions()
        self.apply = self.options.apply_mode
        self.batch_providers = batch_providers
        self.preview_providers = preview_providers
        self.rewriter = rewriter or PictureRewriter(skip_external=self.options.skip_external)

        self.command = "serve"
        self.out_dir = Path("dist")
        self.root = Path.cwd()
        self.public_dir = "public"

    def config_resolved(self, resolved: ResolvedConfig) -> None:
        self.command = resolved.command
        self.out_dir = resolved.out_path()
        self.root = resolved.root
        self.public_dir = resolved.public_dir

    def transform_index_html(self, html: str | bytes) -> str | bytes:
        try:
            text = html.decode("utf-8") if isinstance(html, bytes) else html
            out = self.rewriter.rewrite(text, inject_webp_sources=True)
        except Exception as e:
            logger.warning("[%s] transform_index_html: %s", self.name, e)
            return html
        if out is text:
            return html
        return out

    def configure_server(self, app: Flask) -> None:
        from autopicture_devserver.middleware import WebpPreviewMiddleware

        preview = PreviewTranscoder(self.options.encode_options, providers=self.preview_providers)
        app.wsgi_app = WebpPreviewMiddleware(app.wsgi_app, self.root, preview, self.public_dir)

    def generate_bundle(self, bundle: Bundle) -> None:
        if self.command != "build":
            return
        for file_name, asset in bundle.items():
            if not asset.is_html():
                continue
            try:
                src = asset.text()
                out = self.rewriter.rewrite(src, inject_webp_sources=True)
            except Exception as e:
                logger.warning("[%s] generate_bundle %s: %s", self.name, file_name, e)
                continue
            if out != src:
                asset.source = out

    def write_bundle(self) -> BatchResult | None:
        if self.command != "build":
            return None
        try:
            return convert_tree(self.out_dir, self.options, self.batch_providers)
        except Exception as e:
            logger.warning("[%s] write_bundle: %s", self.name, e)
            return None


def webp_auto_picture(options: PluginOptions | None = None, **kwargs) -> WebpAutoPicturePlugin:
    """Factory in the style bundler configs use."""
    return WebpAutoPicturePlugin(options, **kwargs)

"""
WebP auto-picture pipeline - plugin, build host and CLI

This app ties the pieces together. It:
1. Exposes the plugin with its build-pipeline hooks
2. Runs the build hooks over an emitted output directory
3. Starts the dev server with the plugin installed

Deployment:
    pip install webp-autopicture
    autopicture build ./dist
"""

from .config import BuildConfig
from .host import BuildReport, collect_html_assets, run_build
from .plugin import PLUGIN_NAME, WebpAutoPicturePlugin, webp_auto_picture

__all__ = [
    "BuildConfig",
    "BuildReport",
    "collect_html_assets",
    "run_build",
    "PLUGIN_NAME",
    "WebpAutoPicturePlugin",
    "webp_auto_picture",
]

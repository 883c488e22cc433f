"""
Shared types and helpers for the WebP auto-picture pipeline stage

The package is a dependency of the converter, the dev server and the pipeline:
- Options and resolved bundler configuration
- URL / srcset helpers used for every WebP path derivation
- The HTML rewriter that injects <source type="image/webp">

Deployment:
    pip install webp-autopicture
"""

from .options import (
    DEFAULT_CACHE_FILE,
    DEFAULT_INCLUDE_EXT,
    OptionsError,
    PluginOptions,
    ResolvedConfig,
    canonical_options,
    parse_plugin_options,
)
from .urls import (
    SourceSetEntry,
    build_srcset,
    is_external,
    map_srcset_to_webp,
    parse_srcset,
    srcset_signature,
    to_webp_url,
    webp_source_key,
)
from .files import (
    ORIGINAL_EXTS,
    find_original,
    is_in_dir,
    sha1_file,
    webp_output_path,
)
from .markup import (
    MarkupError,
    MarkupParser,
    PictureRewriter,
    rewrite_html,
)
from .hooks import (
    Bundle,
    BundleAsset,
    PipelinePlugin,
    order_plugins,
    plugin_applies,
)

__all__ = [
    # Options
    "DEFAULT_CACHE_FILE",
    "DEFAULT_INCLUDE_EXT",
    "OptionsError",
    "PluginOptions",
    "ResolvedConfig",
    "canonical_options",
    "parse_plugin_options",
    # URLs
    "SourceSetEntry",
    "build_srcset",
    "is_external",
    "map_srcset_to_webp",
    "parse_srcset",
    "srcset_signature",
    "to_webp_url",
    "webp_source_key",
    # Files
    "ORIGINAL_EXTS",
    "find_original",
    "is_in_dir",
    "sha1_file",
    "webp_output_path",
    # Markup
    "MarkupError",
    "MarkupParser",
    "PictureRewriter",
    "rewrite_html",
    # Hooks
    "Bundle",
    "BundleAsset",
    "PipelinePlugin",
    "order_plugins",
    "plugin_applies",
]

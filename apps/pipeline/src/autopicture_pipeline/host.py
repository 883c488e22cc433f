"""
Minimal pipeline host for an already emitted output directory.

Drives plugins through the build hooks the way a bundler would after it
has written its assets: resolve config, collect the HTML assets into a
bundle, generate_bundle, write changed assets back, write_bundle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from autopicture_shared.files import iter_files, write_text_atomic
from autopicture_shared.hooks import Bundle, BundleAsset, order_plugins, plugin_applies
from autopicture_shared.options import ResolvedConfig

from .config import BuildConfig

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """What a build run changed."""
    html_files: int = 0
    rewritten: list[str] = field(default_factory=list)
    plugin_results: dict[str, Any] = field(default_factory=dict)


def collect_html_assets(out_dir: Path) -> Bundle:
    """Read every HTML file under out_dir into a bundle keyed by relative path."""
    bundle: Bundle = {}
    for path in iter_files(out_dir):
        if path.suffix.lower() != ".html":
            continue
        rel = path.relative_to(out_dir).as_posix()
        bundle[rel] = BundleAsset(file_name=rel, source=path.read_bytes())
    return bundle


def run_build(config: BuildConfig, plugins: Sequence[Any]) -> BuildReport:
    """Run the build hooks of every plugin that applies to builds."""
    active = order_plugins([p for p in plugins if plugin_applies(p, "build")])
    resolved = ResolvedConfig(
        command="build",
        root=config.root.resolve(),
        out_dir=config.out_dir,
        public_dir=config.public_dir,
    )
    out_dir = resolved.out_path()
    report = BuildReport()

    for plugin in active:
        hook = getattr(plugin, "config_resolved", None)
        if hook is not None:
            hook(resolved)

    bundle = collect_html_assets(out_dir)
    report.html_files = len(bundle)
    originals = {name: asset.source for name, asset in bundle.items()}

    for plugin in active:
        hook = getattr(plugin, "generate_bundle", None)
        if hook is not None:
            hook(bundle)

    for name, asset in bundle.items():
        if asset.source == originals[name]:
            continue
        write_text_atomic(out_dir / name, asset.text())
        report.rewritten.append(name)
        logger.debug("Rewrote %s", name)

    for plugin in active:
        hook = getattr(plugin, "write_bundle", None)
        if hook is not None:
            report.plugin_results[plugin.name] = hook()

    logger.info("Build finished: %d/%d HTML files rewritten", len(report.rewritten), report.html_files)
    return report

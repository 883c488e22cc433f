"""CLI for the WebP auto-picture pipeline."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from autopicture_shared.options import OptionsError, PluginOptions, parse_plugin_options

from .config import BuildConfig
from .host import run_build
from .plugin import WebpAutoPicturePlugin


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _build_options(
    include_ext: tuple[str, ...],
    quality: int | None,
    concurrency: str | None,
    cache_file: str | None,
    keep_external: bool,
) -> PluginOptions:
    """Environment defaults, overridden by whatever was given on the command line."""
    try:
        base = PluginOptions.load()
        encode_options = dict(base.encode_options)
        if quality is not None:
            encode_options["quality"] = quality
        return parse_plugin_options({
            "include_ext": list(include_ext) or list(base.include_ext),
            "skip_external": base.skip_external and not keep_external,
            "warn_on_missing_file": base.warn_on_missing_file,
            "concurrency": concurrency or base.concurrency,
            "cache_file": cache_file or base.cache_file,
            "encode_options": encode_options,
            "apply_mode": base.apply_mode,
        })
    except OptionsError as e:
        raise click.UsageError(str(e)) from e


def plugin_options(f):
    f = click.option("-v", "--verbose", is_flag=True, help="Debug logging")(f)
    f = click.option("--keep-external", is_flag=True,
                     help="Also rewrite absolute/external image URLs")(f)
    f = click.option("--cache-file", default=None, help="Fingerprint store path")(f)
    f = click.option("-j", "--concurrency", default=None,
                     help="Conversion workers, or 'auto'")(f)
    f = click.option("-q", "--quality", default=None, type=click.IntRange(0, 100),
                     help="WebP quality")(f)
    f = click.option("--include-ext", multiple=True,
                     help="Raster extension to convert (repeatable)")(f)
    return f


@click.group()
def cli() -> None:
    """Add WebP <picture> sources to HTML and produce the .webp files."""


@cli.command()
@click.argument("out_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root")
@plugin_options
def build(out_dir: Path, root: Path | None, include_ext: tuple[str, ...], quality: int | None,
          concurrency: str | None, cache_file: str | None, keep_external: bool,
          verbose: bool) -> None:
    """Rewrite HTML in OUT_DIR and convert its images to WebP."""
    _setup_logging(verbose)
    options = _build_options(include_ext, quality, concurrency, cache_file, keep_external)

    base = BuildConfig.load()
    config = BuildConfig(out_dir=out_dir, root=root or base.root, public_dir=base.public_dir)

    report = run_build(config, [WebpAutoPicturePlugin(options)])
    result = report.plugin_results.get(WebpAutoPicturePlugin.name)
    click.echo(f"{len(report.rewritten)}/{report.html_files} HTML files rewritten")
    if result is not None:
        click.echo(result.summary())


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("-h", "--host", default="127.0.0.1", help="Dev server host")
@click.option("-p", "--port", default=3000, type=int, help="Dev server port")
@click.option("--public-dir", default="public", help="Public assets dir inside ROOT")
@plugin_options
def serve(root: Path, host: str, port: int, public_dir: str, include_ext: tuple[str, ...],
          quality: int | None, concurrency: str | None, cache_file: str | None,
          keep_external: bool, verbose: bool) -> None:
    """Serve ROOT with WebP sources injected and .webp generated on the fly."""
    from autopicture_devserver import DevConfig, create_app

    _setup_logging(verbose)
    options = _build_options(include_ext, quality, concurrency, cache_file, keep_external)

    config = DevConfig(host=host, port=port, root=root, public_dir=public_dir)
    app = create_app(config, [WebpAutoPicturePlugin(options)])
    try:
        app.run(host=host, port=port, debug=verbose, use_reloader=False)
    except KeyboardInterrupt:
        logging.info("Interrupted")


@cli.command()
@click.argument("html_file", type=click.File("r", encoding="utf-8"))
@click.option("--keep-external", is_flag=True, help="Also rewrite absolute/external image URLs")
def rewrite(html_file, keep_external: bool) -> None:
    """Print HTML_FILE with WebP sources injected ('-' for stdin)."""
    options = PluginOptions(skip_external=not keep_external)
    plugin = WebpAutoPicturePlugin(options)
    click.echo(plugin.transform_index_html(html_file.read()), nl=False)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

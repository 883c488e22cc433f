"""Static file and HTML document routes."""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, Response, abort, current_app, send_from_directory

from autopicture_shared.files import is_in_dir

logger = logging.getLogger(__name__)

pages_bp = Blueprint("pages", __name__)


def _locate(filename: str) -> Path | None:
    """Find filename under the project root, then under the public dir."""
    root: Path = current_app.config["project_root"]
    public: Path = current_app.config["public_dir"]

    for base in (root, public):
        candidate = (base / filename).resolve()
        if not is_in_dir(base, candidate):
            continue
        if candidate.is_dir():
            candidate = candidate / "index.html"
        if candidate.is_file():
            return candidate
    return None


def _transform_html(html: str) -> str:
    for plugin in current_app.config["plugins"]:
        transform = getattr(plugin, "transform_index_html", None)
        if transform is not None:
            html = transform(html)
    return html


@pages_bp.get("/", defaults={"filename": "index.html"})
@pages_bp.get("/<path:filename>")
def serve_file(filename: str):
    """Serve a project file; HTML documents go through the plugins first."""
    path = _locate(filename)
    if path is None:
        abort(404, description="File not found")

    if path.suffix.lower() in (".html", ".htm"):
        html = path.read_text(encoding="utf-8")
        return Response(_transform_html(html), mimetype="text/html")

    return send_from_directory(path.parent, path.name)

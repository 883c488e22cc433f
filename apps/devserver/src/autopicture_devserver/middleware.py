"""
On-the-fly WebP for the dev server.

While serving uncompiled sources there are no .webp files on disk yet,
but rewritten HTML already points at them. This middleware answers
GET requests for *.webp by transcoding the matching png/jpg original in
memory. Anything it can't answer goes to the wrapped application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Union

from werkzeug.wrappers import Request, Response

from autopicture_converter import PreviewTranscoder, Unavailable
from autopicture_shared.files import find_original, is_in_dir

logger = logging.getLogger(__name__)

FS_PREFIX = "/@fs/"

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


@dataclass(frozen=True)
class Handled:
    """The request was answered with these WebP bytes."""
    data: bytes


@dataclass(frozen=True)
class NotFound:
    """Nothing to transcode for this request."""
    reason: str = ""


Outcome = Union[Handled, Unavailable, NotFound]


class WebpPreviewMiddleware:
    """WSGI middleware serving just-in-time WebP renditions."""

    def __init__(
        self,
        app: WSGIApp,
        root: Path,
        preview: PreviewTranscoder,
        public_dir: str = "public",
    ):
        self.app = app
        self.root = root.resolve()
        self.public = self.root / public_dir
        self.preview = preview

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        request = Request(environ)
        outcome = self.resolve(request.method, request.path)

        if isinstance(outcome, Handled):
            response = Response(outcome.data, status=200, mimetype="image/webp")
            response.headers["Cache-Control"] = "no-store"
            return response(environ, start_response)

        if isinstance(outcome, Unavailable):
            logger.debug("WebP preview unavailable for %s: %s", request.path, outcome)
        return self.app(environ, start_response)

    def candidate_paths(self, path: str) -> list[Path]:
        """
        Filesystem locations a request path may refer to, in probe order.

        /@fs/<abs> is tried as an absolute path first; like every other path
        it is then looked up under the project root and the public dir.
        """
        candidates: list[Path] = []
        if path.startswith(FS_PREFIX):
            candidates.append(Path("/" + path[len(FS_PREFIX):].lstrip("/")).resolve())

        rel = path.lstrip("/")

        in_root = (self.root / rel).resolve()
        if is_in_dir(self.root, in_root):
            candidates.append(in_root)

        in_public = (self.public / rel).resolve()
        if is_in_dir(self.public, in_public):
            candidates.append(in_public)
        return candidates

    def resolve(self, method: str, path: str) -> Outcome:
        if method != "GET":
            return NotFound("not a GET request")
        if not path.lower().endswith(".webp"):
            return NotFound("not a .webp path")

        try:
            original = None
            for candidate in self.candidate_paths(path):
                original = find_original(candidate)
                if original is not None:
                    break
            if original is None:
                return NotFound("no png/jpg original")

            data = self.preview.transcode(original)
        except Exception as e:
            # never turn a preview problem into an error response
            logger.debug("WebP preview failed for %s: %s: %s", path, type(e).__name__, e)
            return NotFound(str(e))

        if isinstance(data, Unavailable):
            return data
        return Handled(data)

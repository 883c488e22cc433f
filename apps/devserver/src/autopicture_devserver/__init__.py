"""
Auto-picture dev server - Flask app serving an uncompiled project

This app is used during interactive development. It:
1. Serves project files, falling back to the public dir
2. Runs HTML documents through the pipeline plugins
3. Hosts middleware such as the on-the-fly WebP preview

Deployment:
    pip install webp-autopicture
    autopicture serve ./src
"""

from .app import create_app
from .config import DevConfig
from .middleware import Handled, NotFound, WebpPreviewMiddleware

__all__ = ["create_app", "DevConfig", "Handled", "NotFound", "WebpPreviewMiddleware"]

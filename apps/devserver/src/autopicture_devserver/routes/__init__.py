"""Dev server HTTP routes."""

from .pages import pages_bp

__all__ = ["pages_bp"]

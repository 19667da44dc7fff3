"""
newslens - Short-video news feed client core.

Caches feed videos on disk, deduplicates concurrent downloads, and keeps
exactly one video playing while the feed scrolls.
"""

from __future__ import annotations

__version__ = "0.4.0"
__author__ = "newslens"
__email__ = "noreply@newslens.dev"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__", "__author__", "__email__", "__license__"]

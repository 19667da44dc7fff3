"""
Configuration management module for newslens.

Handles application settings, environment variables, cache locations,
and download limits.
"""

from __future__ import annotations

__all__: list[str] = []

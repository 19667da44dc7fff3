"""
CLI interface module for newslens.

Provides a Typer-based command-line interface for inspecting and managing
the local video cache.
"""

from __future__ import annotations

__all__: list[str] = []

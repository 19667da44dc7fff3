"""Typer sub-applications for the newslens CLI."""

from __future__ import annotations

__all__: list[str] = []

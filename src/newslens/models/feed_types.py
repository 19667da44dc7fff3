"""
Custom validated types for feed entities.

Provides annotated string types for video identifiers and remote locators
so that malformed values are rejected at the model boundary.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import BeforeValidator, Field

_LOCATOR_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def validate_video_id(v: str) -> str:
    """Validate a feed video identifier."""
    if not isinstance(v, str):
        raise TypeError("VideoId must be a string")

    if not v:
        raise ValueError("VideoId cannot be empty")

    if len(v) > 128:
        raise ValueError(f"VideoId must be at most 128 characters, got {len(v)}")

    if any(ch.isspace() for ch in v):
        raise ValueError(f"VideoId cannot contain whitespace: {v!r}")

    return v


def validate_remote_locator(v: str) -> str:
    """Validate a remote storage locator (must be scheme-qualified)."""
    if not isinstance(v, str):
        raise TypeError("RemoteLocator must be a string")

    cleaned = v.strip()
    if not cleaned:
        raise ValueError("RemoteLocator cannot be empty")

    if not _LOCATOR_SCHEME.match(cleaned):
        raise ValueError(f"RemoteLocator must be scheme-qualified, got: {v}")

    return cleaned


# Type aliases for use in Pydantic models
VideoId = Annotated[
    str,
    BeforeValidator(validate_video_id),
    Field(description="Feed video identifier (non-empty, no whitespace, max 128 chars)"),
]

RemoteLocator = Annotated[
    str,
    BeforeValidator(validate_remote_locator),
    Field(description="Scheme-qualified object storage locator (e.g. gs://bucket/path)"),
]

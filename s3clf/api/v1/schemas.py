"""Request bodies for the conversion endpoints."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ConvertRequest:
    """Lines to convert, with optional per-request filter overrides."""

    lines: list[str]
    copy_operation: str | None = field(default=None)
    recalculate_partial_content: bool | None = field(default=None)
    max_kbitrate: float | None = field(default=None)


@dataclass
class ParseRequest:
    """A single S3 access log line."""

    line: str

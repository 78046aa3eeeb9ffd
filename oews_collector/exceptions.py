"""
Exception hierarchy for the OEWS collector.

All exceptions are rooted at OEWSError so scripts can catch broadly
(except OEWSError) and report the failing file, batch or series before
exiting non-zero. Duplicate natural keys on insert are not errors: the
upsert layer skips them silently.
"""
from __future__ import annotations

from typing import Any, List, Optional


class OEWSError(Exception):
    """Base exception for all collector errors."""


class ConfigurationError(OEWSError):
    """Raised when a required setting is missing or a tunable is invalid."""


class StructuralParseError(OEWSError):
    """Raised when a line cannot be decomposed into its declared fields."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class HeaderMismatchError(StructuralParseError):
    """Raised when a flat file's header row differs from the expected fields."""


class ValidationError(OEWSError):
    """
    Raised when a batch fails its declared schema.

    Carries every violation so a rejected batch can be diagnosed in one pass.
    """

    def __init__(self, message: str, errors: List[str], data: Any = None, context: Optional[str] = None):
        self.errors = errors
        self.data = data
        self.context = context
        detail = "; ".join(errors[:10])
        if len(errors) > 10:
            detail += f"; ... ({len(errors) - 10} more)"
        super().__init__(f"{message}: {detail}" if detail else message)


class ResponseValidationError(ValidationError):
    """Raised when an API response body does not match the expected shape."""


class TransportError(OEWSError):
    """Raised on network failures and non-success responses from the BLS API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class CrawlCancelled(OEWSError):
    """Raised when a crawl is interrupted at a batch boundary."""

"""
Error taxonomy for the opportunity pipeline.

ParseError and ValidationError mean the upstream model response could not be
processed; callers may retry the provider call. RenderError is fatal for the
run.
"""

from typing import Optional


class ScannerError(Exception):
    """Base class for pipeline failures."""
    pass


class ParseError(ScannerError):
    """Raised when the raw response cannot be turned into a JSON array."""

    PREVIEW_LENGTH = 200

    def __init__(self, message: str, text: str = ""):
        self.preview = (text or "")[:self.PREVIEW_LENGTH]
        super().__init__(f"{message} (preview: {self.preview!r})" if self.preview else message)


class ValidationError(ScannerError):
    """Raised when a parsed record does not conform to the opportunity model."""

    def __init__(self, message: str, index: Optional[int] = None, field: Optional[str] = None):
        self.index = index
        self.field = field
        location = []
        if index is not None:
            location.append(f"record {index}")
        if field:
            location.append(f"field '{field}'")
        prefix = ", ".join(location)
        super().__init__(f"{prefix}: {message}" if prefix else message)


class RenderError(ScannerError):
    """Raised when document construction fails after valid data was produced."""
    pass

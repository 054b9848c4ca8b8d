"""
Exception types raised at the engine's edges.
State machine invariant violations are not exceptions; they are logged no-ops.
"""


class CollaboratorError(Exception):
    """The generator or extractor was unreachable or returned unusable output."""


class ProfileValidationError(ValueError):
    """User input that can be corrected and resubmitted."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class UnsupportedDocumentError(ProfileValidationError):
    def __init__(self, mime_type: str):
        super().__init__("file", "Please upload a PDF or DOCX file only")
        self.mime_type = mime_type


class DocumentTooLargeError(ProfileValidationError):
    def __init__(self, size: int, limit_mb: int):
        super().__init__("file", f"File must be smaller than {limit_mb}MB")
        self.size = size


class NoActiveInterviewError(LookupError):
    """A user action needs a current interview and there is none."""

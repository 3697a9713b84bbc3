"""
Chapter Upload Errors Module

Exception taxonomy for the chapter upload flow. Validation problems with
candidate files are reported as text, never raised; ValidationError is
only raised for invalid batch mutations.

Author: CourseHub Development Team
"""

from typing import Optional

class UploadError(Exception):
    """Base class for chapter upload failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(UploadError):
    """Invalid batch mutation (unknown file, batch busy)."""

class BatchNotFound(UploadError):
    """No open batch with the requested id."""

class RequestError(UploadError):
    """Upload URL issuance failed; no file left the pending state."""

class TransferError(UploadError):
    """
    A single binary PUT failed.

    Attributes:
        file_name: Name of the file that failed
        status: HTTP status, None for network failures
    """

    def __init__(self, file_name: str, message: str, status: Optional[int] = None):
        super().__init__(f"{file_name}: {message}")
        self.file_name = file_name
        self.status = status

class CompletionError(UploadError):
    """The complete call failed after all bytes were transferred."""

class BatchBusy(ValidationError):
    """Mutation attempted while the batch is uploading."""

class FileNotInBatch(ValidationError):
    """The referenced file is not part of the batch."""

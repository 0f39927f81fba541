"""Error taxonomy for multipart uploads.

Every expected failure of an upload is an ``UploadError`` subclass, so
callers can tell which stage failed:

- InvalidInputError: the file is missing, empty or too large to split
- SourceReadError: the local file could not be opened or read
- InitiationError: the store refused to start the upload
- TransferError: a part failed to upload or came back without an ETag
- CompletionError: the store rejected the final assembly
- UploadCancelled: the caller's cancellation token was set
"""

from typing import Optional


class UploadError(Exception):
    """Base class for expected upload failures."""

    def __init__(self, message: str, part_number: Optional[int] = None):
        super().__init__(message)
        self.part_number = part_number


class InvalidInputError(UploadError):
    """Raised when the file or its size cannot be uploaded."""

    pass


class SourceReadError(UploadError):
    """Raised when reading the local file fails."""

    pass


class InitiationError(UploadError):
    """Raised when the store does not return an upload ID."""

    pass


class TransferError(UploadError):
    """Raised when a part upload fails."""

    pass


class CompletionError(UploadError):
    """Raised when the store rejects the completion request."""

    pass


class UploadCancelled(UploadError):
    """Raised when an upload is cancelled between parts."""

    pass

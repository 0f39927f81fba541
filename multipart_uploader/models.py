"""Data models for the multipart uploader."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from multipart_uploader.errors import UploadError

# 5 MiB: S3 minimum size for every part except the last
DEFAULT_PART_SIZE_THRESHOLD = 5 * 1024 * 1024

# Presigned part URLs stay valid this long after generation
DEFAULT_URL_EXPIRY_SECONDS = 12 * 60 * 60


class UploadState(Enum):
    """Lifecycle state of a multipart upload session."""

    IDLE = "idle"
    INITIATED = "initiated"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.COMPLETED, UploadState.ABORTED)


class TransferMode(Enum):
    """How part bytes reach the store."""

    DIRECT = "direct"
    PRESIGNED = "presigned"


@dataclass
class StoreConfig:
    """Connection settings for an S3-compatible store."""

    bucket_name: str
    aws_access_key_id: str
    aws_secret_access_key: str
    endpoint_url: Optional[str] = None
    region_name: Optional[str] = None
    addressing_style: str = "path"


@dataclass
class UploaderConfig:
    """Full configuration for one uploader run."""

    store: StoreConfig
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    transfer_mode: TransferMode = TransferMode.DIRECT
    part_size_threshold: int = DEFAULT_PART_SIZE_THRESHOLD
    presigned_url_expiry_seconds: int = DEFAULT_URL_EXPIRY_SECONDS
    max_workers: int = 1
    max_attempts: int = 1

    @property
    def object_key(self) -> Optional[str]:
        """Object key: explicit file name, else the base name of file_path."""
        if self.file_name:
            return self.file_name
        if self.file_path:
            return os.path.basename(self.file_path)
        return None


@dataclass
class UploadSession:
    """Store-side multipart upload context, scoped to a single upload call."""

    upload_id: str
    bucket: str
    key: str
    state: UploadState = UploadState.INITIATED


@dataclass(frozen=True)
class PartPlan:
    """How a file is split into parts.

    ``part_size`` is ``total_size // part_count``; the last part also carries
    the ``total_size % part_count`` remainder bytes.
    """

    total_size: int
    part_size: int
    part_count: int

    @property
    def last_part_size(self) -> int:
        return self.part_size + self.total_size % self.part_count

    def part_sizes(self) -> list[int]:
        """Byte size of every part, in part-number order."""
        return [self.part_size] * (self.part_count - 1) + [self.last_part_size]


@dataclass(frozen=True)
class PartResult:
    """A successfully stored part."""

    part_number: int
    etag: str

    def to_dict(self) -> dict[str, Any]:
        """Shape expected by boto3's ``MultipartUpload={"Parts": [...]}``."""
        return {"PartNumber": self.part_number, "ETag": self.etag}


@dataclass(frozen=True)
class PresignedUrl:
    """A time-limited URL authorizing the PUT of one part."""

    url: str
    part_number: int
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


@dataclass
class CompletionRequest:
    """Final assembly request, parts ordered by part number."""

    upload_id: str
    bucket: str
    key: str
    parts: list[PartResult]

    def to_params(self) -> dict[str, Any]:
        """Keyword arguments for ``complete_multipart_upload``."""
        return {
            "Bucket": self.bucket,
            "Key": self.key,
            "UploadId": self.upload_id,
            "MultipartUpload": {"Parts": [p.to_dict() for p in self.parts]},
        }


@dataclass
class UploadResult:
    """Outcome of one upload call."""

    success: bool
    state: UploadState
    key: str
    upload_id: Optional[str] = None
    parts: list[PartResult] = field(default_factory=list)
    error: Optional["UploadError"] = None
    bytes_uploaded: int = 0
    duration_seconds: float = 0.0

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "state": self.state.value,
            "key": self.key,
            "upload_id": self.upload_id,
            "part_count": len(self.parts),
            "parts": [p.to_dict() for p in self.parts],
            "bytes_uploaded": self.bytes_uploaded,
            "duration_seconds": self.duration_seconds,
            "error_type": type(self.error).__name__ if self.error else None,
            "error_message": self.error_message,
        }

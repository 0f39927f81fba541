"""Multipart upload session lifecycle.

Handles the store-side calls of one multipart upload:
- Initiate upload
- Complete with the collected part ETags
- Abort and clean up on failure

One ``MultipartUpload`` is created per upload call, so the upload ID
never lives on a shared object.
"""

import logging
from typing import Any, Iterable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from multipart_uploader.errors import CompletionError, InitiationError
from multipart_uploader.models import (
    CompletionRequest,
    PartResult,
    UploadSession,
    UploadState,
)

logger = logging.getLogger(__name__)


def build_completion_request(
    session: UploadSession,
    parts: Iterable[PartResult],
    part_count: int,
) -> CompletionRequest:
    """Sort the collected parts and check they cover 1..part_count exactly.

    Raises:
        CompletionError: If a part is missing or recorded twice.
    """
    ordered = sorted(parts, key=lambda p: p.part_number)
    numbers = [p.part_number for p in ordered]
    expected = list(range(1, part_count + 1))
    if numbers != expected:
        missing = sorted(set(expected) - set(numbers))
        duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
        unexpected = sorted(set(numbers) - set(expected))
        raise CompletionError(
            f"Collected parts do not match the plan of {part_count}: "
            f"missing={missing} duplicates={duplicates} unexpected={unexpected}"
        )

    return CompletionRequest(
        upload_id=session.upload_id,
        bucket=session.bucket,
        key=session.key,
        parts=ordered,
    )


class MultipartUpload:
    """Manages the lifecycle of one multipart upload.

    Can be used as a context manager: the upload is initiated on entry
    and aborted on exit if an exception escapes before it completed.
    """

    def __init__(self, s3_client: Any, bucket: str, key: str):
        """Initialize the multipart upload manager.

        Args:
            s3_client: boto3 S3 client
            bucket: Destination bucket
            key: Destination object key
        """
        self.s3_client = s3_client
        self.bucket = bucket
        self.key = key
        self.session: Optional[UploadSession] = None

    @property
    def state(self) -> UploadState:
        if self.session is None:
            return UploadState.IDLE
        return self.session.state

    def initiate(self) -> UploadSession:
        """Initiate a new multipart upload.

        Returns:
            The new UploadSession.

        Raises:
            InitiationError: If the call fails or returns no upload ID.
        """
        try:
            response = self.s3_client.create_multipart_upload(
                Bucket=self.bucket,
                Key=self.key,
            )
        except (BotoCoreError, ClientError) as e:
            raise InitiationError(
                f"Could not initiate upload of s3://{self.bucket}/{self.key}: {e}"
            ) from e

        upload_id = response.get("UploadId") if response else None
        if not upload_id:
            raise InitiationError(
                f"Store returned no upload ID for s3://{self.bucket}/{self.key}"
            )

        self.session = UploadSession(upload_id=upload_id, bucket=self.bucket, key=self.key)
        logger.info("Initiated upload %s for s3://%s/%s", upload_id, self.bucket, self.key)
        return self.session

    def mark_in_progress(self) -> None:
        self._require_session().state = UploadState.IN_PROGRESS

    def complete(self, parts: Iterable[PartResult], part_count: int) -> dict:
        """Complete the multipart upload.

        Args:
            parts: Results of every uploaded part, in any order.
            part_count: Number of parts in the plan.

        Returns:
            The API response.

        Raises:
            RuntimeError: If the upload was not initiated or already ended.
            CompletionError: If the parts do not match the plan or the
                store rejects the request.
        """
        session = self._require_session()
        request = build_completion_request(session, parts, part_count)

        try:
            response = self.s3_client.complete_multipart_upload(**request.to_params())
        except (BotoCoreError, ClientError) as e:
            raise CompletionError(f"Store rejected completion of {session.upload_id}: {e}") from e

        status = (response or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status != 200:
            raise CompletionError(
                f"Completion of {session.upload_id} returned status {status}"
            )

        session.state = UploadState.COMPLETED
        logger.info(
            "Completed upload %s (%d parts) for s3://%s/%s",
            session.upload_id, len(request.parts), session.bucket, session.key,
        )
        return response

    def abort(self) -> bool:
        """Abort the multipart upload.

        Cleans up any uploaded parts on the store's side. Failures are
        logged rather than raised. Safe to call before initiation or after
        the upload already ended.

        Returns:
            True if the store acknowledged the abort.
        """
        if self.session is None or self.session.state.is_terminal:
            return False

        self.session.state = UploadState.ABORTED
        try:
            self.s3_client.abort_multipart_upload(
                Bucket=self.session.bucket,
                Key=self.session.key,
                UploadId=self.session.upload_id,
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Abort of upload %s failed: %s", self.session.upload_id, e)
            return False

        logger.info("Aborted upload %s", self.session.upload_id)
        return True

    def _require_session(self) -> UploadSession:
        if self.session is None:
            raise RuntimeError("Upload not initiated")
        if self.session.state.is_terminal:
            raise RuntimeError(f"Upload {self.session.upload_id} already {self.session.state.value}")
        return self.session

    def __enter__(self) -> "MultipartUpload":
        """Enter context manager - initiates upload."""
        self.initiate()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Exit context manager - aborts on exception."""
        if exc_type is not None:
            self.abort()
        return False  # Don't suppress exceptions

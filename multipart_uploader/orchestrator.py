"""Upload orchestrator.

Drives one multipart upload through its states:

    IDLE -> INITIATED -> IN_PROGRESS -> COMPLETED | ABORTED

The file is planned before anything is sent to the store, so invalid
input fails while still IDLE. Once the upload is initiated, every failure
aborts the session (and waits for the abort call) before the failure is
reported. Per-upload state lives in a fresh ``MultipartUpload``, which
makes one orchestrator safe to reuse across uploads.
"""

import logging
import os
import threading
import time
from datetime import timedelta
from typing import Any, Optional

import httpx

from multipart_uploader.errors import UploadError
from multipart_uploader.models import PartPlan, PartResult, TransferMode, UploadResult, UploadState
from multipart_uploader.multipart import MultipartUpload
from multipart_uploader.planner import DEFAULT_PART_SIZE_THRESHOLD, plan_for_file
from multipart_uploader.reporters.base import Reporter
from multipart_uploader.s3_client import build_http_client
from multipart_uploader.source import PartSource
from multipart_uploader.strategies import SequentialStrategy, TransferStrategy
from multipart_uploader.transfer import DEFAULT_URL_EXPIRY, TransferBackend, select_backend

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Uploads files to one bucket as multipart uploads.

    Coordinates:
    - Planning the parts of the file
    - Initiating, completing and aborting the store-side session
    - Reading parts and handing them to the transfer backend
    - Calling reporter callbacks for progress
    """

    def __init__(
        self,
        s3_client: Any,
        bucket_name: str,
        http_client: Optional[httpx.Client] = None,
        part_size_threshold: int = DEFAULT_PART_SIZE_THRESHOLD,
        url_expiry: timedelta = DEFAULT_URL_EXPIRY,
        strategy: Optional[TransferStrategy] = None,
        max_attempts: int = 1,
        reporter: Optional[Reporter] = None,
    ):
        """Initialize the orchestrator.

        Args:
            s3_client: boto3 S3 client, shared across uploads
            bucket_name: Destination bucket
            http_client: httpx client for presigned transfers; one is built
                when omitted
            part_size_threshold: Target part size in bytes
            url_expiry: Lifetime of presigned part URLs
            strategy: How parts are transferred (sequential by default)
            max_attempts: Attempts per presigned PUT, 1 disables retrying
            reporter: Optional reporter for progress callbacks
        """
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.http_client = http_client if http_client is not None else build_http_client()
        self.part_size_threshold = part_size_threshold
        self.url_expiry = url_expiry
        self.strategy = strategy or SequentialStrategy()
        self.max_attempts = max_attempts
        self.reporter = reporter

    def upload_file(
        self,
        file_path: str,
        use_direct_transfer: bool = True,
        key: Optional[str] = None,
    ) -> bool:
        """Upload a file and report only whether it succeeded.

        Expected failures (bad input, I/O, store and transfer errors) come
        back as False. Anything else still propagates after the session
        has been aborted.
        """
        return self.upload(file_path, use_direct_transfer=use_direct_transfer, key=key).success

    def upload(
        self,
        file_path: str,
        use_direct_transfer: bool = True,
        key: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> UploadResult:
        """Upload a file as a multipart upload.

        Args:
            file_path: Path of the file to upload.
            use_direct_transfer: True for authenticated upload_part calls,
                False for presigned URLs.
            key: Object key; defaults to the file's base name.
            cancel_event: Optional token checked before every part.

        Returns:
            UploadResult describing the outcome. ``error`` holds the
            UploadError subclass when the upload failed.
        """
        key = key or os.path.basename(file_path)
        start_time = time.time()
        upload = MultipartUpload(self.s3_client, self.bucket_name, key)
        plan: Optional[PartPlan] = None
        parts: list[PartResult] = []

        try:
            plan = plan_for_file(file_path, self.part_size_threshold)
            parts = self._run(upload, file_path, plan, use_direct_transfer, cancel_event)
        except UploadError as e:
            logger.error("Upload of %s to s3://%s/%s failed: %s", file_path, self.bucket_name, key, e)
            result = self._result(upload, key, start_time, plan, parts, error=e)
        else:
            result = self._result(upload, key, start_time, plan, parts)

        if self.reporter:
            self.reporter.on_upload_complete(result)
        return result

    def _run(
        self,
        upload: MultipartUpload,
        file_path: str,
        plan: PartPlan,
        use_direct_transfer: bool,
        cancel_event: Optional[threading.Event],
    ) -> list[PartResult]:
        backend = select_backend(
            use_direct_transfer,
            self.s3_client,
            http_client=self.http_client,
            url_expiry=self.url_expiry,
            max_attempts=self.max_attempts,
        )
        mode = TransferMode.DIRECT if use_direct_transfer else TransferMode.PRESIGNED
        logger.info(
            "Uploading %s (%d bytes) in %d parts of ~%d bytes via %s transfer",
            file_path, plan.total_size, plan.part_count, plan.part_size, mode.value,
        )

        # Aborts on any exception escaping before completion
        with upload:
            if self.reporter:
                self.reporter.on_upload_start(upload.key, plan, mode)

            upload.mark_in_progress()
            with PartSource(file_path, plan) as source:
                parts = self.strategy.transfer_all(
                    source,
                    lambda part_number, data: self._transfer_part(
                        backend, upload, part_number, data
                    ),
                    cancel_event=cancel_event,
                )

            upload.complete(parts, plan.part_count)
        return parts

    def _transfer_part(
        self,
        backend: TransferBackend,
        upload: MultipartUpload,
        part_number: int,
        data: bytes,
    ) -> str:
        etag = backend.upload_part(upload.session, part_number, data)
        logger.debug("Stored part %d (%d bytes), ETag %s", part_number, len(data), etag)
        if self.reporter:
            self.reporter.on_part_complete(
                upload.key, PartResult(part_number=part_number, etag=etag), len(data)
            )
        return etag

    def _result(
        self,
        upload: MultipartUpload,
        key: str,
        start_time: float,
        plan: Optional[PartPlan],
        parts: list[PartResult],
        error: Optional[UploadError] = None,
    ) -> UploadResult:
        state = upload.state
        success = error is None and state == UploadState.COMPLETED
        return UploadResult(
            success=success,
            state=state,
            key=key,
            upload_id=upload.session.upload_id if upload.session else None,
            parts=parts,
            error=error,
            bytes_uploaded=plan.total_size if success and plan else 0,
            duration_seconds=time.time() - start_time,
        )

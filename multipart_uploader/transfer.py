"""Transfer backends that move one part's bytes to the store.

Two backends are available and one is chosen per upload:

- DirectTransfer: authenticated ``upload_part`` call through boto3
- PresignedTransfer: boto3 presigns a PUT URL for the part, then httpx
  PUTs the bytes to it without further authentication
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from multipart_uploader.errors import TransferError
from multipart_uploader.models import DEFAULT_URL_EXPIRY_SECONDS, PresignedUrl, UploadSession
from multipart_uploader.retry import DEFAULT_DELAYS, RetryExhausted, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_URL_EXPIRY = timedelta(seconds=DEFAULT_URL_EXPIRY_SECONDS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransferBackend(ABC):
    """Uploads a single part of a multipart upload."""

    @abstractmethod
    def upload_part(self, session: UploadSession, part_number: int, data: bytes) -> str:
        """Upload ``data`` as ``part_number`` of ``session``.

        Returns:
            The ETag the store assigned to the part.

        Raises:
            TransferError: If the part was not stored.
        """
        pass


class DirectTransfer(TransferBackend):
    """Uploads parts with authenticated ``upload_part`` calls."""

    def __init__(self, s3_client: Any):
        self.s3_client = s3_client

    def upload_part(self, session: UploadSession, part_number: int, data: bytes) -> str:
        try:
            response = self.s3_client.upload_part(
                Bucket=session.bucket,
                Key=session.key,
                UploadId=session.upload_id,
                PartNumber=part_number,
                ContentLength=len(data),
                Body=data,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransferError(
                f"upload_part failed for part {part_number}: {e}",
                part_number=part_number,
            ) from e

        etag = response.get("ETag") if response else None
        if not etag:
            raise TransferError(
                f"Store returned no ETag for part {part_number}",
                part_number=part_number,
            )
        return etag


class PresignedTransfer(TransferBackend):
    """Uploads parts through presigned PUT URLs.

    A fresh URL is generated for every part. The PUT is refused locally if
    the URL has already expired, and only an HTTP 200 carrying an ETag
    header counts as success. Transient failures are retried only when
    ``max_attempts`` is above 1.
    """

    def __init__(
        self,
        s3_client: Any,
        http_client: httpx.Client,
        url_expiry: timedelta = DEFAULT_URL_EXPIRY,
        max_attempts: int = 1,
        retry_delays: tuple = DEFAULT_DELAYS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the presigned backend.

        Args:
            s3_client: boto3 S3 client used to sign URLs
            http_client: httpx client used for the PUTs
            url_expiry: Lifetime of each presigned URL
            max_attempts: Attempts per PUT, 1 disables retrying
            retry_delays: Backoff delays between attempts
            clock: Returns the current UTC time
        """
        if url_expiry <= timedelta(0):
            raise ValueError(f"url_expiry must be positive, got {url_expiry}")
        self.s3_client = s3_client
        self.http_client = http_client
        self.url_expiry = url_expiry
        self.max_attempts = max_attempts
        self.retry_delays = retry_delays
        self._clock = clock

    def get_presigned_url(self, session: UploadSession, part_number: int) -> PresignedUrl:
        """Generate a URL authorizing the PUT of one part.

        Raises:
            TransferError: If the URL cannot be signed.
        """
        issued_at = self._clock()
        try:
            url = self.s3_client.generate_presigned_url(
                "upload_part",
                Params={
                    "Bucket": session.bucket,
                    "Key": session.key,
                    "UploadId": session.upload_id,
                    "PartNumber": part_number,
                },
                ExpiresIn=int(self.url_expiry.total_seconds()),
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            raise TransferError(
                f"Could not presign part {part_number}: {e}",
                part_number=part_number,
            ) from e

        return PresignedUrl(
            url=url,
            part_number=part_number,
            expires_at=issued_at + self.url_expiry,
        )

    def upload_to_url(self, presigned_url: PresignedUrl, data: bytes) -> str:
        """PUT ``data`` to a presigned URL and return the ETag header.

        Raises:
            TransferError: If the URL has expired, the PUT fails, the status
                is not 200, or the response has no ETag header.
        """
        part_number = presigned_url.part_number
        try:
            response = retry_with_backoff(
                self._put,
                max_attempts=self.max_attempts,
                delays=self.retry_delays,
                args=(presigned_url, data),
            )
        except RetryExhausted as e:
            raise TransferError(
                f"PUT of part {part_number} failed after {e.attempts} attempts: {e.last_error}",
                part_number=part_number,
            ) from e
        except httpx.HTTPError as e:
            raise TransferError(
                f"PUT of part {part_number} failed: {e}",
                part_number=part_number,
            ) from e

        if response.status_code != 200:
            raise TransferError(
                f"PUT of part {part_number} returned HTTP {response.status_code}",
                part_number=part_number,
            )

        etag = response.headers.get("ETag")
        if not etag:
            raise TransferError(
                f"PUT of part {part_number} returned no ETag header",
                part_number=part_number,
            )
        return etag

    def upload_part(self, session: UploadSession, part_number: int, data: bytes) -> str:
        presigned_url = self.get_presigned_url(session, part_number)
        return self.upload_to_url(presigned_url, data)

    def _put(self, presigned_url: PresignedUrl, data: bytes) -> httpx.Response:
        # Checked before every attempt, retries included
        if presigned_url.is_expired(self._clock()):
            raise TransferError(
                f"Presigned URL for part {presigned_url.part_number} expired at "
                f"{presigned_url.expires_at.isoformat()}",
                part_number=presigned_url.part_number,
            )
        response = self.http_client.put(
            presigned_url.url,
            content=data,
            headers={"Content-Length": str(len(data))},
        )
        response.raise_for_status()
        return response


def select_backend(
    use_direct_transfer: bool,
    s3_client: Any,
    http_client: Optional[httpx.Client] = None,
    url_expiry: timedelta = DEFAULT_URL_EXPIRY,
    max_attempts: int = 1,
) -> TransferBackend:
    """Build the backend for one upload.

    Raises:
        ValueError: If presigned transfer is requested without an HTTP client.
    """
    if use_direct_transfer:
        return DirectTransfer(s3_client)
    if http_client is None:
        raise ValueError("Presigned transfer requires an http_client")
    return PresignedTransfer(
        s3_client,
        http_client,
        url_expiry=url_expiry,
        max_attempts=max_attempts,
    )

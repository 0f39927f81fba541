"""Client factories for the multipart uploader.

``build_s3_client`` creates the boto3 S3 client used for the session
calls (initiate, upload part, presign, complete, abort).
``build_http_client`` creates the httpx client used to PUT parts to
presigned URLs. Both are safe to share across uploads.

Presigned URLs are signed with 's3v4'; older signature versions cannot
carry the upload ID and part number in the query string on every
S3-compatible store.
"""

from typing import Optional

import boto3
import httpx
from botocore.client import Config

from multipart_uploader.models import StoreConfig

# Seconds allowed for a single part PUT to complete
DEFAULT_HTTP_TIMEOUT = 300.0


def build_s3_client(config: StoreConfig, max_attempts: Optional[int] = None):
    """Build a boto3 S3 client for the given store configuration.

    Args:
        config: Store configuration containing endpoint, credentials,
               region, and addressing style.
        max_attempts: Optional botocore retry budget for API calls.

    Returns:
        A boto3 S3 client configured for the store.
    """
    config_kwargs = {
        "signature_version": "s3v4",
        "s3": {"addressing_style": config.addressing_style},
    }
    if max_attempts is not None:
        config_kwargs["retries"] = {"max_attempts": max_attempts, "mode": "standard"}

    return boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        region_name=config.region_name,
        config=Config(**config_kwargs),
    )


def build_http_client(timeout: float = DEFAULT_HTTP_TIMEOUT) -> httpx.Client:
    """Build the httpx client used for presigned part uploads."""
    return httpx.Client(timeout=timeout)

"""
S3 Multipart Uploader.

Uploads large files to S3-compatible storage by splitting them into parts,
sending each part directly or through a presigned URL, and completing or
aborting the upload on the server.
"""

__version__ = "1.0.0"

from multipart_uploader.cli import main
from multipart_uploader.orchestrator import UploadOrchestrator

__all__ = ["main", "UploadOrchestrator", "__version__"]

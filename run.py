#!/usr/bin/env python3
"""
S3 Multipart Uploader

Run this script to upload a file to an S3-compatible bucket as a
multipart upload.

Usage:
    python run.py big.iso                   # Use config.json
    python run.py big.iso -c custom.json    # Use custom config
    python run.py big.iso -m presigned      # Upload parts via presigned URLs
    python run.py big.iso -w 4              # Upload 4 parts at a time
    python run.py big.iso -j result.json    # Output JSON result
"""

import sys
from multipart_uploader.cli import main

if __name__ == "__main__":
    sys.exit(main())

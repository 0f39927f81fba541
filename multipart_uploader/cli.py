"""Command-line interface for the multipart uploader.

Provides argument parsing and main entry point for uploading a file
from the command line.
"""

import argparse
import logging
import sys
from datetime import timedelta
from typing import Optional

from multipart_uploader.config import ConfigError, load_config
from multipart_uploader.models import TransferMode, UploaderConfig
from multipart_uploader.orchestrator import UploadOrchestrator
from multipart_uploader.reporters import ConsoleReporter, JsonReporter, Reporter
from multipart_uploader.s3_client import build_http_client, build_s3_client
from multipart_uploader.strategies import build_strategy


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_upload_start(self, key, plan, mode) -> None:
        for reporter in self._reporters:
            reporter.on_upload_start(key, plan, mode)

    def on_part_complete(self, key, part, size) -> None:
        for reporter in self._reporters:
            reporter.on_part_complete(key, part, size)

    def on_upload_complete(self, result) -> None:
        for reporter in self._reporters:
            reporter.on_upload_complete(result)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="multipart-uploader",
        description="Upload a file to S3-compatible storage as a multipart upload",
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="File to upload (overrides file_path from the configuration)",
    )

    parser.add_argument(
        "-c", "--config",
        default="config.json",
        help="Path to configuration file (default: config.json)",
    )

    parser.add_argument(
        "-k", "--key",
        help="Object key (default: the file's base name)",
    )

    parser.add_argument(
        "-m", "--mode",
        choices=[mode.value for mode in TransferMode],
        help="Transfer mode (overrides transfer_mode from the configuration)",
    )

    parser.add_argument(
        "--part-size",
        type=int,
        metavar="BYTES",
        help="Target part size in bytes (default: 5 MiB)",
    )

    parser.add_argument(
        "--url-expiry",
        type=int,
        metavar="SECONDS",
        help="Lifetime of presigned part URLs (default: 12 hours)",
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        metavar="N",
        help="Parts uploaded concurrently (default: 1, sequential)",
    )

    parser.add_argument(
        "--attempts",
        type=int,
        metavar="N",
        help="Attempts per presigned PUT (default: 1, no retry)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-part output, show only summary",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write JSON result to file",
    )

    parser.add_argument(
        "--github-actions",
        action="store_true",
        help="Enable GitHub Actions output mode",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def apply_overrides(config: UploaderConfig, args: argparse.Namespace) -> UploaderConfig:
    """Apply command-line overrides to the loaded configuration.

    Raises:
        ConfigError: If an override value is not positive.
    """
    if args.file:
        config.file_path = args.file
    if args.key:
        config.file_name = args.key
    if args.mode:
        config.transfer_mode = TransferMode(args.mode)

    for attr, value in (
        ("part_size_threshold", args.part_size),
        ("presigned_url_expiry_seconds", args.url_expiry),
        ("max_workers", args.workers),
        ("max_attempts", args.attempts),
    ):
        if value is None:
            continue
        if value <= 0:
            raise ConfigError(f"{attr} must be positive, got {value}")
        setattr(config, attr, value)

    return config


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create reporters based on command-line arguments."""
    reporters: list[Reporter] = [ConsoleReporter(quiet=args.quiet)]

    if args.json_output or args.github_actions:
        reporters.append(JsonReporter(
            output_path=args.json_output,
            github_output=args.github_actions,
        ))

    return reporters


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for a failed upload, 2 for errors
    """
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if not config.file_path:
        print("No file to upload: pass a file or set file_path", file=sys.stderr)
        return 2

    reporters = create_reporters(args)
    reporter = reporters[0] if len(reporters) == 1 else CompositeReporter(reporters)

    s3_client = build_s3_client(config.store)
    http_client = build_http_client()
    try:
        orchestrator = UploadOrchestrator(
            s3_client,
            config.store.bucket_name,
            http_client=http_client,
            part_size_threshold=config.part_size_threshold,
            url_expiry=timedelta(seconds=config.presigned_url_expiry_seconds),
            strategy=build_strategy(config.max_workers),
            max_attempts=config.max_attempts,
            reporter=reporter,
        )
        result = orchestrator.upload(
            config.file_path,
            use_direct_transfer=config.transfer_mode == TransferMode.DIRECT,
            key=config.object_key,
        )
    finally:
        http_client.close()

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

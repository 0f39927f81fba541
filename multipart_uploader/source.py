"""Sequential reader that yields a file's bytes part by part."""

import logging
from typing import BinaryIO, Generator, Optional

from multipart_uploader.errors import SourceReadError
from multipart_uploader.models import PartPlan

logger = logging.getLogger(__name__)


class PartSource:
    """Reads the parts of a file in byte-offset order.

    Use as a context manager; the file is opened on entry and closed on
    exit, whether or not the upload succeeded. Iteration is lazy and can
    only happen once.
    """

    def __init__(self, file_path: str, plan: PartPlan):
        """Initialize the part source.

        Args:
            file_path: Path to the file to read.
            plan: Part plan computed for the file.
        """
        self.file_path = file_path
        self.plan = plan
        self.bytes_read = 0
        self._file: Optional[BinaryIO] = None
        self._consumed = False

    def open(self) -> None:
        """Open the file for reading.

        Raises:
            SourceReadError: If the file cannot be opened.
        """
        try:
            self._file = open(self.file_path, "rb")
        except OSError as e:
            raise SourceReadError(f"Cannot open {self.file_path}: {e}") from e

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def iterate_parts(self) -> Generator[tuple[int, bytes], None, None]:
        """Iterate over file parts.

        Yields:
            Tuples of (part_number, chunk_data), part numbers starting at 1.

        Raises:
            SourceReadError: If the source is not open, was already consumed,
                or a read fails or comes back short.
        """
        if self._file is None:
            raise SourceReadError(f"Part source for {self.file_path} is not open")
        if self._consumed:
            raise SourceReadError(f"Part source for {self.file_path} was already read")
        self._consumed = True

        for part_number, size in enumerate(self.plan.part_sizes(), start=1):
            try:
                chunk = self._file.read(size)
            except OSError as e:
                raise SourceReadError(
                    f"Read of part {part_number} from {self.file_path} failed: {e}",
                    part_number=part_number,
                ) from e

            if len(chunk) != size:
                # File shrank after it was planned
                raise SourceReadError(
                    f"Short read for part {part_number}: expected {size} bytes, "
                    f"got {len(chunk)}",
                    part_number=part_number,
                )

            self.bytes_read += len(chunk)
            logger.debug("Read part %d (%d bytes) from %s", part_number, size, self.file_path)
            yield part_number, chunk

    def __iter__(self) -> Generator[tuple[int, bytes], None, None]:
        return self.iterate_parts()

    def __enter__(self) -> "PartSource":
        """Enter context manager - opens the file."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Exit context manager - always closes the file."""
        self.close()
        return False  # Don't suppress exceptions

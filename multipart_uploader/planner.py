"""Part size planning.

The part count is ``total_size // threshold`` (at least one part), and the
part size is ``total_size // part_count``. Parts therefore come out
near-equal instead of exactly threshold-sized, and the last part carries
the remainder. For some sizes this yields parts a little under the
threshold.
"""

import os

from multipart_uploader.errors import InvalidInputError
from multipart_uploader.models import DEFAULT_PART_SIZE_THRESHOLD, PartPlan

# S3 hard limit on parts per upload
MAX_PART_COUNT = 10_000


def plan_parts(
    total_size: int,
    threshold: int = DEFAULT_PART_SIZE_THRESHOLD,
) -> PartPlan:
    """Split ``total_size`` bytes into parts.

    Args:
        total_size: Size of the file in bytes. Must be positive.
        threshold: Target part size in bytes.

    Returns:
        The PartPlan for the file.

    Raises:
        InvalidInputError: If the size or threshold is not positive, or the
            file would need more parts than the store allows.
    """
    if isinstance(total_size, bool) or not isinstance(total_size, int) or total_size <= 0:
        raise InvalidInputError(f"File size must be a positive integer, got {total_size!r}")
    if threshold <= 0:
        raise InvalidInputError(f"Part size threshold must be positive, got {threshold!r}")

    # Files under the threshold would otherwise plan zero parts
    part_count = max(total_size // threshold, 1)
    if part_count > MAX_PART_COUNT:
        raise InvalidInputError(
            f"File of {total_size} bytes needs {part_count} parts; "
            f"the limit is {MAX_PART_COUNT}"
        )

    return PartPlan(
        total_size=total_size,
        part_size=total_size // part_count,
        part_count=part_count,
    )


def plan_for_file(
    file_path: str,
    threshold: int = DEFAULT_PART_SIZE_THRESHOLD,
) -> PartPlan:
    """Stat ``file_path`` and plan its parts.

    Raises:
        InvalidInputError: If the path is not a readable regular file or is empty.
    """
    if not os.path.isfile(file_path):
        raise InvalidInputError(f"Not a file: {file_path}")

    try:
        size = os.path.getsize(file_path)
    except OSError as e:
        raise InvalidInputError(f"Cannot stat {file_path}: {e}") from e

    return plan_parts(size, threshold)

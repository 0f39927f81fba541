"""Strategies for transferring every planned part.

Both strategies take the parts as an iterable of ``(part_number, data)``
and a ``transfer`` callable that uploads one part and returns its ETag.
They return the PartResults sorted by part number and re-raise the first
failure, leaving the abort decision to the caller.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Optional

from multipart_uploader.errors import UploadCancelled
from multipart_uploader.models import PartResult

logger = logging.getLogger(__name__)

PartTransfer = Callable[[int, bytes], str]


def _check_cancelled(cancel_event: Optional[threading.Event], part_number: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise UploadCancelled(
            f"Upload cancelled before part {part_number}",
            part_number=part_number,
        )


class TransferStrategy(ABC):
    """Transfers all parts of an upload."""

    @abstractmethod
    def transfer_all(
        self,
        parts: Iterable[tuple[int, bytes]],
        transfer: PartTransfer,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[PartResult]:
        pass


class SequentialStrategy(TransferStrategy):
    """Reads, transfers and acknowledges one part before the next read."""

    def transfer_all(
        self,
        parts: Iterable[tuple[int, bytes]],
        transfer: PartTransfer,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[PartResult]:
        results: list[PartResult] = []
        for part_number, data in parts:
            _check_cancelled(cancel_event, part_number)
            etag = transfer(part_number, data)
            results.append(PartResult(part_number=part_number, etag=etag))
        return results


class ThreadPoolStrategy(TransferStrategy):
    """Transfers up to ``max_workers`` parts at once.

    Parts are still read in order on the calling thread, and a part is only
    submitted once fewer than ``max_workers`` transfers are in flight, so at
    most ``max_workers + 1`` parts are held in memory. On the first failure
    queued work is cancelled and the failure is re-raised once running
    transfers have settled.
    """

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def transfer_all(
        self,
        parts: Iterable[tuple[int, bytes]],
        transfer: PartTransfer,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[PartResult]:
        results: list[PartResult] = []
        in_flight: dict[Future, int] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            try:
                for part_number, data in parts:
                    _check_cancelled(cancel_event, part_number)
                    while len(in_flight) >= self.max_workers:
                        self._drain(in_flight, results)
                    in_flight[executor.submit(transfer, part_number, data)] = part_number

                while in_flight:
                    self._drain(in_flight, results)
            except BaseException:
                for future in in_flight:
                    future.cancel()
                raise

        results.sort(key=lambda r: r.part_number)
        return results

    @staticmethod
    def _drain(
        in_flight: dict[Future, int],
        results: list[PartResult],
    ) -> None:
        done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
        for future in done:
            part_number = in_flight.pop(future)
            # Raises the transfer's exception, if any
            etag = future.result()
            results.append(PartResult(part_number=part_number, etag=etag))
            logger.debug("Part %d finished on worker thread", part_number)


def build_strategy(max_workers: int = 1) -> TransferStrategy:
    """Sequential for one worker, a bounded thread pool otherwise."""
    if max_workers <= 1:
        return SequentialStrategy()
    return ThreadPoolStrategy(max_workers=max_workers)

"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from multipart_uploader.models import PartPlan, PartResult, TransferMode, UploadResult


class Reporter(ABC):
    """Abstract base class for upload progress reporters."""

    @abstractmethod
    def on_upload_start(self, key: str, plan: "PartPlan", mode: "TransferMode") -> None:
        """Called once the upload has been initiated."""
        pass

    @abstractmethod
    def on_part_complete(self, key: str, part: "PartResult", size: int) -> None:
        """Called when a part has been stored."""
        pass

    @abstractmethod
    def on_upload_complete(self, result: "UploadResult") -> None:
        """Called when the upload completed or was aborted."""
        pass

"""JSON reporter for structured output and GitHub Actions integration."""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from multipart_uploader.models import PartPlan, PartResult, TransferMode, UploadResult
from multipart_uploader.reporters.base import Reporter


class JsonReporter(Reporter):
    """Writes the upload result as JSON.

    Args:
        output_path: Optional file path to write JSON output
        github_output: If True, write to GITHUB_OUTPUT for Actions
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        github_output: bool = False,
    ):
        self.output_path = output_path
        self.github_output = github_output
        self._mode: Optional[TransferMode] = None
        self._plan: Optional[PartPlan] = None

    def on_upload_start(self, key: str, plan: PartPlan, mode: TransferMode) -> None:
        """Remembers the plan and mode for the final output."""
        self._plan = plan
        self._mode = mode

    def on_part_complete(self, key: str, part: PartResult, size: int) -> None:
        """No-op - parts come from the final result."""
        pass

    def on_upload_complete(self, result: UploadResult) -> dict:
        """Generates and writes the JSON output.

        Returns:
            The generated JSON data as a dictionary
        """
        output = self._generate_output(result)

        if self.output_path:
            self._write_to_file(output)

        if self.github_output:
            self._write_github_output(output)

        # The next upload may fail before on_upload_start
        self._plan = None
        self._mode = None
        return output

    def _generate_output(self, result: UploadResult) -> dict:
        output = result.to_dict()
        output["timestamp"] = datetime.now(timezone.utc).isoformat()
        output["transfer_mode"] = self._mode.value if self._mode else None
        if self._plan is not None:
            output["plan"] = {
                "total_size": self._plan.total_size,
                "part_size": self._plan.part_size,
                "part_count": self._plan.part_count,
            }
        return output

    def _write_to_file(self, output: dict) -> None:
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(output, f, indent=2)

    def _write_github_output(self, output: dict) -> None:
        github_output_file = os.environ.get("GITHUB_OUTPUT")
        if not github_output_file:
            return

        with open(github_output_file, "a", encoding="utf-8") as f:
            f.write(f"success={str(output['success']).lower()}\n")
            f.write(f"upload_id={output['upload_id'] or ''}\n")
            f.write(f"part_count={output['part_count']}\n")

            # Write full JSON as multiline output
            f.write("result<<EOF\n")
            f.write(json.dumps(output))
            f.write("\nEOF\n")

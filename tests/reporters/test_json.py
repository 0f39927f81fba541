"""Tests for JsonReporter.

Tests JSON file output and GitHub Actions integration.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from multipart_uploader.errors import CompletionError
from multipart_uploader.models import PartPlan, PartResult, TransferMode, UploadResult, UploadState
from multipart_uploader.reporters.base import Reporter
from multipart_uploader.reporters.json_reporter import JsonReporter


@pytest.fixture
def completed_result() -> UploadResult:
    return UploadResult(
        success=True,
        state=UploadState.COMPLETED,
        key="big.iso",
        upload_id="upload-123",
        parts=[PartResult(1, '"a"'), PartResult(2, '"b"')],
        bytes_uploaded=11,
        duration_seconds=0.5,
    )


@pytest.fixture
def aborted_result() -> UploadResult:
    return UploadResult(
        success=False,
        state=UploadState.ABORTED,
        key="big.iso",
        upload_id="upload-456",
        error=CompletionError("Store rejected completion"),
    )


class TestJsonReporterInterface:
    """Tests that JsonReporter implements Reporter interface."""

    def test_inherits_from_reporter(self):
        assert isinstance(JsonReporter(), Reporter)

    def test_part_callback_is_silent(self):
        reporter = JsonReporter()
        assert reporter.on_part_complete("k", PartResult(1, '"a"'), 10) is None


class TestJsonReporterOutput:
    """Tests for generated JSON data."""

    def test_returns_result_fields(self, completed_result):
        output = JsonReporter().on_upload_complete(completed_result)

        assert output["success"] is True
        assert output["state"] == "completed"
        assert output["upload_id"] == "upload-123"
        assert output["part_count"] == 2
        assert output["parts"] == [
            {"PartNumber": 1, "ETag": '"a"'},
            {"PartNumber": 2, "ETag": '"b"'},
        ]
        assert "timestamp" in output

    def test_includes_plan_and_mode(self, completed_result):
        reporter = JsonReporter()
        reporter.on_upload_start(
            "big.iso",
            PartPlan(total_size=11, part_size=5, part_count=2),
            TransferMode.PRESIGNED,
        )

        output = reporter.on_upload_complete(completed_result)

        assert output["transfer_mode"] == "presigned"
        assert output["plan"] == {"total_size": 11, "part_size": 5, "part_count": 2}

    def test_without_start_has_no_plan(self, aborted_result):
        output = JsonReporter().on_upload_complete(aborted_result)

        assert output["transfer_mode"] is None
        assert "plan" not in output
        assert output["error_type"] == "CompletionError"
        assert output["error_message"] == "Store rejected completion"


    def test_reuse_does_not_leak_previous_plan(self, completed_result):
        """An upload failing before it starts must not show the last upload's plan."""
        reporter = JsonReporter()
        reporter.on_upload_start(
            "big.iso",
            PartPlan(total_size=100, part_size=100, part_count=1),
            TransferMode.DIRECT,
        )
        reporter.on_upload_complete(completed_result)

        output = reporter.on_upload_complete(
            UploadResult(success=False, state=UploadState.IDLE, key="other.bin")
        )

        assert "plan" not in output
        assert output["transfer_mode"] is None
        assert output["key"] == "other.bin"


class TestJsonReporterFileOutput:
    """Tests for writing JSON to a file."""

    def test_writes_json_file(self, tmp_path: Path, completed_result):
        output_path = tmp_path / "result.json"

        JsonReporter(output_path=str(output_path)).on_upload_complete(completed_result)

        data = json.loads(output_path.read_text())
        assert data["key"] == "big.iso"
        assert data["success"] is True

    def test_creates_parent_directories(self, tmp_path: Path, completed_result):
        output_path = tmp_path / "nested" / "dir" / "result.json"

        JsonReporter(output_path=str(output_path)).on_upload_complete(completed_result)

        assert output_path.exists()

    def test_no_file_without_path(self, tmp_path: Path, completed_result):
        JsonReporter().on_upload_complete(completed_result)

        assert list(tmp_path.iterdir()) == []


class TestJsonReporterGitHubOutput:
    """Tests for GitHub Actions output."""

    def test_writes_github_output(self, tmp_path: Path, aborted_result):
        github_output = tmp_path / "github_output"
        github_output.touch()

        with patch.dict("os.environ", {"GITHUB_OUTPUT": str(github_output)}):
            JsonReporter(github_output=True).on_upload_complete(aborted_result)

        content = github_output.read_text()
        assert "success=false\n" in content
        assert "upload_id=upload-456\n" in content
        assert "part_count=0\n" in content
        assert "result<<EOF\n" in content
        assert content.endswith("\nEOF\n")

        payload = content.split("result<<EOF\n", 1)[1].rsplit("\nEOF\n", 1)[0]
        assert json.loads(payload)["state"] == "aborted"

    def test_missing_upload_id_written_empty(self, tmp_path: Path):
        github_output = tmp_path / "github_output"
        result = UploadResult(success=False, state=UploadState.IDLE, key="big.iso")

        with patch.dict("os.environ", {"GITHUB_OUTPUT": str(github_output)}):
            JsonReporter(github_output=True).on_upload_complete(result)

        assert "upload_id=\n" in github_output.read_text()

    def test_skips_without_env_variable(self, tmp_path: Path, completed_result):
        with patch.dict("os.environ", {}, clear=True):
            JsonReporter(github_output=True).on_upload_complete(completed_result)

        assert list(tmp_path.iterdir()) == []

"""Tests for the background render worker."""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from talent_reports.config import Settings
from talent_reports.models import RenderJob
from talent_reports.rendering.errors import EmptyDocumentError, RenderTimeoutError
from talent_reports.rendering.worker import RenderWorker
from talent_reports.services.s3_storage import StorageError


@pytest.fixture
def settings():
    return Settings(render_storage_prefix="reports/")


@pytest.fixture
def renderer():
    mock = MagicMock()
    mock.render = AsyncMock(return_value=b"%PDF-1.4 test")
    return mock


@pytest.fixture
def worker(mock_snowflake, mock_s3, mock_redis, renderer, settings):
    mock_snowflake.next_queued_render.return_value = {
        "assignment_id": "a1", "pdf_version": 2, "pdf_job_id": "job-1",
    }
    mock_snowflake.claim_render.return_value = True
    return RenderWorker(mock_snowflake, mock_s3, mock_redis, renderer, settings=settings)


class TestUrls:
    def test_view_url_carries_token(self, worker):
        url = worker.view_url("a1", "tok/+=")
        assert url == "http://localhost:8000/reports/a1/view?service_role_token=tok%2F%2B%3D"

    def test_storage_key_is_versioned(self, worker):
        assert worker.storage_key("a1", 3) == "reports/a1/v3.pdf"


class TestPollOnce:
    """One claim-render-store cycle."""

    def test_success_uploads_and_completes(self, worker, mock_snowflake, mock_s3, mock_redis, renderer):
        result = asyncio.run(worker.poll_once())

        assert result == "a1"
        mock_redis.issue_token.assert_called_once_with("a1", 300)
        renderer.render.assert_awaited_once()
        assert "service_role_token=token-123" in renderer.render.await_args.args[0]
        key, content = mock_s3.upload_document.call_args.args[:2]
        assert key == "reports/a1/v3.pdf"
        assert content == b"%PDF-1.4 test"
        assert mock_s3.upload_document.call_args.kwargs["overwrite"] is True
        mock_snowflake.claim_render.assert_called_once_with("a1", "job-1")
        mock_snowflake.complete_render.assert_called_once_with("a1", "job-1", "reports/a1/v3.pdf", 3)
        mock_snowflake.fail_render.assert_not_called()

    def test_nothing_queued(self, worker, mock_snowflake, renderer):
        mock_snowflake.next_queued_render.return_value = None
        assert asyncio.run(worker.poll_once()) is None
        mock_snowflake.claim_render.assert_not_called()
        renderer.render.assert_not_called()

    def test_lost_claim_does_not_render(self, worker, mock_snowflake, renderer):
        mock_snowflake.claim_render.return_value = False
        assert asyncio.run(worker.poll_once()) is None
        renderer.render.assert_not_called()
        mock_snowflake.complete_render.assert_not_called()

    def test_datastore_error_is_logged_and_skipped(self, worker, mock_snowflake, renderer):
        mock_snowflake.next_queued_render.side_effect = RuntimeError("warehouse suspended")
        assert asyncio.run(worker.poll_once()) is None
        renderer.render.assert_not_called()


class TestFailures:
    """Every failure lands the job in failed with its message."""

    @pytest.mark.parametrize(
        "error",
        [
            EmptyDocumentError("No .page-container found in print view"),
            RenderTimeoutError("Render exceeded 180s"),
        ],
    )
    def test_render_errors(self, worker, mock_snowflake, renderer, error):
        renderer.render.side_effect = error
        asyncio.run(worker.poll_once())
        mock_snowflake.fail_render.assert_called_once_with("a1", "job-1", str(error))
        mock_snowflake.complete_render.assert_not_called()

    def test_upload_error(self, worker, mock_snowflake, mock_s3):
        mock_s3.upload_document.side_effect = StorageError("Upload failed for a1/v3.pdf")
        assert asyncio.run(worker.process(RenderJob(assignment_id="a1", current_version=2))) is False
        mock_snowflake.fail_render.assert_called_once_with("a1", None, "Upload failed for a1/v3.pdf")

    def test_token_not_issued(self, worker, mock_snowflake, mock_redis, renderer):
        mock_redis.issue_token.return_value = None
        asyncio.run(worker.poll_once())
        renderer.render.assert_not_called()
        assert mock_snowflake.fail_render.call_args.args[0] == "a1"

    def test_fail_record_error_does_not_escape(self, worker, mock_snowflake, renderer):
        renderer.render.side_effect = RuntimeError("browser crashed")
        mock_snowflake.fail_render.side_effect = RuntimeError("datastore down")
        assert asyncio.run(worker.process(RenderJob(assignment_id="a1"))) is False


class TestRequeuedWhileGenerating:
    """An operator re-enqueue during a render keeps the newer job."""

    def test_completion_of_old_job_is_not_recorded(self, worker, mock_snowflake, mock_s3):
        mock_snowflake.complete_render.return_value = False

        assert asyncio.run(worker.process(RenderJob(assignment_id="a1", current_version=2, job_id="job-1"))) is False

        mock_s3.upload_document.assert_called_once()
        mock_snowflake.complete_render.assert_called_once_with("a1", "job-1", "reports/a1/v3.pdf", 3)
        mock_snowflake.fail_render.assert_not_called()

    def test_failure_of_old_job_is_not_recorded(self, worker, mock_snowflake, renderer):
        renderer.render.side_effect = RuntimeError("browser crashed")
        mock_snowflake.fail_render.return_value = False

        assert asyncio.run(worker.process(RenderJob(assignment_id="a1", job_id="job-1"))) is False
        mock_snowflake.fail_render.assert_called_once_with("a1", "job-1", "browser crashed")


class TestRun:
    def test_single_pass(self, worker, renderer):
        assert asyncio.run(worker.run(loop=False)) == 0
        renderer.render.assert_awaited_once()

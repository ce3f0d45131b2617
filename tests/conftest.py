"""Pytest fixtures and configuration."""
import pytest
from uuid import uuid4
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, AsyncMock, patch

from talent_reports.models import (
    DimensionReport360,
    DimensionReportLeaderBlocker,
    ParticipantResponseSummary,
    RaterBreakdown,
    Report360Data,
    ReportLeaderBlockerData,
    SubdimensionReport,
)

GENERATED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_snowflake():
    """Mock Snowflake service."""
    mock = MagicMock()
    mock.health_check = AsyncMock(return_value=(True, None))
    mock.execute_query = MagicMock(return_value=[])
    mock.execute_one = MagicMock(return_value=None)
    mock.execute_write = MagicMock(return_value=1)
    mock.get_report_row = MagicMock(return_value=None)
    mock.get_report_template = MagicMock(return_value=None)
    return mock


@pytest.fixture
def mock_redis():
    """Mock Redis cache."""
    mock = MagicMock()
    mock.health_check = AsyncMock(return_value=(True, None))
    mock.get = MagicMock(return_value=None)
    mock.set = MagicMock(return_value=True)
    mock.delete = MagicMock(return_value=True)
    mock.issue_token = MagicMock(return_value="token-123")
    mock.consume_token = MagicMock(return_value=True)
    return mock


@pytest.fixture
def mock_s3():
    """Mock S3 service."""
    mock = MagicMock()
    mock.health_check = AsyncMock(return_value=(True, None))
    mock.generate_presigned_url = MagicMock(return_value="https://signed.example/report.pdf")
    return mock


@pytest.fixture
def client(mock_snowflake, mock_redis, mock_s3):
    """Create test client with mocked services."""
    with patch("talent_reports.routers.health.get_snowflake_service", return_value=mock_snowflake):
        with patch("talent_reports.routers.health.get_redis_cache", return_value=mock_redis):
            with patch("talent_reports.routers.health.get_s3_storage", return_value=mock_s3):
                from talent_reports.main import app
                yield TestClient(app)


@pytest.fixture
def sample_assignment_id():
    return str(uuid4())


@pytest.fixture
def sample_assessment_id():
    return str(uuid4())


@pytest.fixture
def report_360(sample_assignment_id, sample_assessment_id):
    """A complete 360 report with one fully populated dimension."""
    return Report360Data(
        assignment_id=sample_assignment_id,
        assessment_id=sample_assessment_id,
        assessment_title="Leadership 360",
        group_id="g1",
        group_name="Ops Leaders",
        target_id="t1",
        target_name="Pat Lee",
        target_email="pat@example.com",
        overall_score=3.5,
        generated_at=GENERATED_AT,
        dimensions=[
            DimensionReport360(
                dimension_id="d1",
                dimension_name="Communication",
                dimension_code="COM",
                overall_score=3.5,
                rater_breakdown=RaterBreakdown(peer=3.0, supervisor=4.0, all_raters=3.5),
                industry_benchmark=3.8,
                geonorm=3.6,
                geonorm_participant_count=4,
                improvement_needed=True,
                text_feedback=["<p>Listens well</p>"],
            ),
        ],
        overall_text_feedback=["Great teammate"],
        partial=False,
        participant_response_summary=ParticipantResponseSummary(completed=3, total=3),
    )


@pytest.fixture
def report_leader(sample_assignment_id, sample_assessment_id):
    """A single-rater report with one parent dimension and one subdimension."""
    return ReportLeaderBlockerData(
        assignment_id=sample_assignment_id,
        assessment_id=sample_assessment_id,
        assessment_title="Leader Check",
        user_id="u1",
        user_name="Sam Roe",
        user_email="sam@example.com",
        overall_score=4.0,
        generated_at=GENERATED_AT,
        dimensions=[
            DimensionReportLeaderBlocker(
                dimension_id="d1",
                dimension_name="Strategy",
                dimension_code="STR",
                target_score=4.0,
                industry_benchmark=3.0,
                specific_feedback=["<b>Think</b> long term"],
                specific_feedback_ids=["f2"],
                subdimensions=[
                    SubdimensionReport(dimension_id="d1a", dimension_name="Vision", target_score=4.0),
                ],
            ),
        ],
        overall_feedback=["Strong overall"],
        overall_feedback_ids=["f1"],
    )


@pytest.fixture
def empty_leader_report(sample_assignment_id, sample_assessment_id):
    """Single-rater report with no scored dimensions."""
    return ReportLeaderBlockerData(
        assignment_id=sample_assignment_id,
        assessment_id=sample_assessment_id,
        assessment_title="Empty Survey",
        user_id="u1",
        generated_at=GENERATED_AT,
    )


@pytest.fixture
def empty_360_report(sample_assignment_id, sample_assessment_id):
    """360 report for a target nobody has rated yet."""
    return Report360Data(
        assignment_id=sample_assignment_id,
        assessment_id=sample_assessment_id,
        assessment_title="Leadership 360",
        target_id="t1",
        generated_at=GENERATED_AT,
        partial=True,
        participant_response_summary=ParticipantResponseSummary(completed=0, total=4),
    )

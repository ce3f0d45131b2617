"""Snowflake database service."""
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Iterable, Optional
from uuid import uuid4

import snowflake.connector
from snowflake.connector import SnowflakeConnection
from snowflake.connector.cursor import SnowflakeCursor

from talent_reports.config import get_settings

logger = logging.getLogger(__name__)


def _placeholders(values: Iterable[Any]) -> str:
    """Build a "%s, %s, ..." list for an IN clause."""
    return ", ".join(["%s"] * len(list(values)))


def _load_variant(value: Any) -> Any:
    """VARIANT columns come back as JSON text."""
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


class SnowflakeService:
    """Service for Snowflake database operations."""

    def __init__(self):
        self.settings = get_settings()
        self._connection: Optional[SnowflakeConnection] = None

    def _get_connection_params(self) -> dict[str, Any]:
        """Get connection parameters."""
        return {
            "account": self.settings.snowflake_account,
            "user": self.settings.snowflake_user,
            "password": self.settings.snowflake_password,
            "database": self.settings.snowflake_database,
            "schema": self.settings.snowflake_schema,
            "warehouse": self.settings.snowflake_warehouse,
        }

    def connect(self) -> SnowflakeConnection:
        """Establish connection to Snowflake."""
        if self._connection is None or self._connection.is_closed():
            self._connection = snowflake.connector.connect(
                **self._get_connection_params()
            )
        return self._connection

    def disconnect(self) -> None:
        """Close the Snowflake connection."""
        if self._connection and not self._connection.is_closed():
            self._connection.close()
            self._connection = None

    @contextmanager
    def cursor(self) -> Generator[SnowflakeCursor, None, None]:
        """Context manager for database cursor."""
        conn = self.connect()
        cur = conn.cursor()
        try:
            yield cur
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            cur.close()

    async def health_check(self) -> tuple[bool, Optional[str]]:
        """Check if Snowflake connection is healthy."""
        try:
            with self.cursor() as cur:
                cur.execute("SELECT 1")
                result = cur.fetchone()
                return result is not None, None
        except Exception as e:
            return False, str(e)

    def execute_query(
        self,
        query: str,
        params: Optional[tuple] = None
    ) -> list[dict[str, Any]]:
        """Execute a query and return results as list of dicts."""
        with self.cursor() as cur:
            cur.execute(query, params)
            columns = [desc[0].lower() for desc in cur.description] if cur.description else []
            rows = cur.fetchall()
            return [dict(zip(columns, row)) for row in rows]

    def execute_one(
        self,
        query: str,
        params: Optional[tuple] = None
    ) -> Optional[dict[str, Any]]:
        """Execute a query and return single result."""
        results = self.execute_query(query, params)
        return results[0] if results else None

    def execute_write(
        self,
        query: str,
        params: Optional[tuple] = None
    ) -> int:
        """Execute an INSERT/UPDATE/DELETE and return affected rows."""
        with self.cursor() as cur:
            cur.execute(query, params)
            return cur.rowcount

    # ================================================================
    # Assignments, profiles and groups (read-only)
    # ================================================================

    def get_assignment(self, assignment_id: str) -> Optional[dict[str, Any]]:
        """Assignment joined with its assessment's title and mode flags."""
        query = """
            SELECT a.id, a.user_id, a.target_id, a.group_id, a.assessment_id,
                   a.completed, a.completed_at,
                   s.title AS assessment_title, s.is_360, s.type AS assessment_type
            FROM assignments a
            LEFT JOIN assessments s ON s.id = a.assessment_id
            WHERE a.id = %s
        """
        return self.execute_one(query, (assignment_id,))

    def get_assignments(self, assignment_ids: list[str]) -> list[dict[str, Any]]:
        """Completion state for a batch of assignments."""
        if not assignment_ids:
            return []
        query = f"""
            SELECT id, completed, completed_at FROM assignments
            WHERE id IN ({_placeholders(assignment_ids)})
        """
        return self.execute_query(query, tuple(assignment_ids))

    def get_profile(self, profile_id: Optional[str]) -> Optional[dict[str, Any]]:
        """Profile name, email and industry."""
        if not profile_id:
            return None
        return self.execute_one(
            "SELECT id, name, email, industry_id FROM profiles WHERE id = %s",
            (profile_id,),
        )

    def get_group(self, group_id: str) -> Optional[dict[str, Any]]:
        return self.execute_one(
            "SELECT id, name, target_id FROM groups WHERE id = %s",
            (group_id,),
        )

    def get_group_for_target(self, target_id: str) -> Optional[dict[str, Any]]:
        """The 360 group built around a target."""
        return self.execute_one(
            "SELECT id, name, target_id FROM groups WHERE target_id = %s ORDER BY created_at LIMIT 1",
            (target_id,),
        )

    def get_group_for_member(self, profile_id: str) -> Optional[dict[str, Any]]:
        """First group a profile belongs to."""
        query = """
            SELECT g.id, g.name, g.target_id
            FROM group_members gm
            JOIN groups g ON g.id = gm.group_id
            WHERE gm.profile_id = %s
            ORDER BY gm.created_at
            LIMIT 1
        """
        return self.execute_one(query, (profile_id,))

    def get_group_members(self, group_id: str) -> list[dict[str, Any]]:
        """Members of a group with their rater role."""
        return self.execute_query(
            "SELECT profile_id, role FROM group_members WHERE group_id = %s",
            (group_id,),
        )

    def get_completed_target_assignments(
        self,
        target_id: str,
        assessment_id: str,
        user_ids: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """Completed rater assignments about a target, optionally limited to some raters."""
        query = """
            SELECT id, user_id, target_id FROM assignments
            WHERE target_id = %s AND assessment_id = %s AND completed = TRUE
        """
        params: list[Any] = [target_id, assessment_id]
        if user_ids is not None:
            if not user_ids:
                return []
            query += f" AND user_id IN ({_placeholders(user_ids)})"
            params.extend(user_ids)
        return self.execute_query(query + " ORDER BY completed_at, id", tuple(params))

    def get_completed_assignments_for_users(
        self,
        user_ids: list[str],
        assessment_id: str,
    ) -> list[dict[str, Any]]:
        """Completed assignments of an assessment taken by any of the given users."""
        if not user_ids:
            return []
        query = f"""
            SELECT id, user_id, target_id FROM assignments
            WHERE assessment_id = %s AND completed = TRUE
              AND user_id IN ({_placeholders(user_ids)})
        """
        return self.execute_query(query, (assessment_id, *user_ids))

    # ================================================================
    # Dimensions, answers and scores
    # ================================================================

    def get_dimensions(self, assessment_id: str) -> list[dict[str, Any]]:
        """All dimensions of an assessment, ordered by name."""
        query = """
            SELECT id, assessment_id, name, code, parent_id
            FROM dimensions
            WHERE assessment_id = %s
            ORDER BY name
        """
        return self.execute_query(query, (assessment_id,))

    def get_text_answers(self, assignment_ids: list[str]) -> list[dict[str, Any]]:
        """Free-text answers with the dimension of their field, in submission order."""
        if not assignment_ids:
            return []
        query = f"""
            SELECT a.assignment_id, a.value, f.dimension_id
            FROM answers a
            JOIN fields f ON f.id = a.field_id
            WHERE f.type = 'text_input'
              AND a.assignment_id IN ({_placeholders(assignment_ids)})
            ORDER BY a.created_at, a.id
        """
        return self.execute_query(query, tuple(assignment_ids))

    def get_dimension_scores(
        self,
        assignment_ids: list[str],
        dimension_ids: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """Cached dimension averages for a set of assignments."""
        if not assignment_ids:
            return []
        query = f"""
            SELECT assignment_id, dimension_id, avg_score, answer_count
            FROM assignment_dimension_scores
            WHERE assignment_id IN ({_placeholders(assignment_ids)})
        """
        params: list[Any] = list(assignment_ids)
        if dimension_ids is not None:
            if not dimension_ids:
                return []
            query += f" AND dimension_id IN ({_placeholders(dimension_ids)})"
            params.extend(dimension_ids)
        return self.execute_query(query, tuple(params))

    def refresh_dimension_scores(self, assignment_id: str) -> None:
        """Recompute the assignment's cached averages server-side."""
        self.execute_query("CALL refresh_dimension_scores_for_assignment(%s)", (assignment_id,))

    def get_benchmarks(
        self,
        dimension_ids: list[str],
        industry_id: Optional[str],
    ) -> list[dict[str, Any]]:
        """Industry benchmarks for the given dimensions."""
        if not dimension_ids or not industry_id:
            return []
        query = f"""
            SELECT dimension_id, value FROM benchmarks
            WHERE industry_id = %s AND dimension_id IN ({_placeholders(dimension_ids)})
        """
        return self.execute_query(query, (industry_id, *dimension_ids))

    # ================================================================
    # Feedback library and templates
    # ================================================================

    def get_feedback_library(self, assessment_id: str) -> list[dict[str, Any]]:
        """Feedback entries in library order."""
        query = """
            SELECT id, assessment_id, dimension_id, type, feedback,
                   min_score, max_score, sort_order, created_at
            FROM feedback_library
            WHERE assessment_id = %s
            ORDER BY sort_order, created_at, id
        """
        return self.execute_query(query, (assessment_id,))

    def get_report_template(self, assessment_id: str) -> Optional[dict[str, Any]]:
        """Default template for an assessment, else the newest one."""
        query = """
            SELECT id, assessment_id, name, is_default, components, labels, styling, created_at
            FROM report_templates
            WHERE assessment_id = %s
            ORDER BY is_default DESC, created_at DESC
            LIMIT 1
        """
        row = self.execute_one(query, (assessment_id,))
        if row:
            for key in ("components", "labels", "styling"):
                row[key] = _load_variant(row.get(key)) or {}
        return row

    # ================================================================
    # Report cache (report_data)
    # ================================================================

    def get_report_row(self, assignment_id: str) -> Optional[dict[str, Any]]:
        """Cached report row; VARIANT columns parsed."""
        query = """
            SELECT assignment_id, overall_score, dimension_scores, feedback_assigned,
                   calculated_at, updated_at, pdf_status, pdf_storage_path,
                   pdf_generated_at, pdf_version, pdf_last_error, pdf_job_id
            FROM report_data
            WHERE assignment_id = %s
        """
        row = self.execute_one(query, (assignment_id,))
        if row:
            row["dimension_scores"] = _load_variant(row.get("dimension_scores"))
            row["feedback_assigned"] = _load_variant(row.get("feedback_assigned")) or []
        return row

    def get_report_rows(self, assignment_ids: list[str]) -> list[dict[str, Any]]:
        """Render state for a batch of assignments."""
        if not assignment_ids:
            return []
        query = f"""
            SELECT assignment_id, pdf_status, pdf_version
            FROM report_data
            WHERE assignment_id IN ({_placeholders(assignment_ids)})
        """
        return self.execute_query(query, tuple(assignment_ids))

    def ensure_report_row(self, assignment_id: str) -> None:
        """Insert an empty report_data row when none exists, in one statement."""
        self.execute_write(
            """
            MERGE INTO report_data t
            USING (SELECT %s AS id, %s AS assignment_id, %s AS updated_at) s
            ON t.assignment_id = s.assignment_id
            WHEN NOT MATCHED THEN INSERT
                (id, assignment_id, dimension_scores, feedback_assigned,
                 pdf_status, pdf_version, updated_at)
            VALUES (s.id, s.assignment_id, PARSE_JSON('{}'), PARSE_JSON('[]'),
                    'not_requested', 0, s.updated_at)
            """,
            (str(uuid4()), assignment_id, datetime.now(timezone.utc)),
        )

    def upsert_report(
        self,
        assignment_id: str,
        overall_score: float,
        report_json: str,
        calculated_at: datetime,
    ) -> None:
        """Store a freshly computed report; last write wins."""
        self.ensure_report_row(assignment_id)
        self.execute_write(
            """
            UPDATE report_data
            SET overall_score = %s, dimension_scores = PARSE_JSON(%s),
                calculated_at = %s, updated_at = %s
            WHERE assignment_id = %s
            """,
            (overall_score, report_json, calculated_at, datetime.now(timezone.utc), assignment_id),
        )

    def set_feedback_assigned(self, assignment_id: str, feedback: list[dict[str, Any]]) -> None:
        """Overwrite the assignment's assigned feedback."""
        self.ensure_report_row(assignment_id)
        self.execute_write(
            """
            UPDATE report_data
            SET feedback_assigned = PARSE_JSON(%s), updated_at = %s
            WHERE assignment_id = %s
            """,
            (json.dumps(feedback, default=str), datetime.now(timezone.utc), assignment_id),
        )

    # ================================================================
    # Render jobs
    # ================================================================

    def queue_render(
        self,
        assignment_id: str,
        job_id: str,
        from_statuses: Iterable[str],
    ) -> int:
        """Move a row to queued if its current status is one of from_statuses."""
        statuses = list(from_statuses)
        query = f"""
            UPDATE report_data
            SET pdf_status = 'queued', pdf_job_id = %s, updated_at = %s
            WHERE assignment_id = %s
              AND COALESCE(pdf_status, 'not_requested') IN ({_placeholders(statuses)})
        """
        return self.execute_write(
            query,
            (job_id, datetime.now(timezone.utc), assignment_id, *statuses),
        )

    def next_queued_render(self) -> Optional[dict[str, Any]]:
        """Oldest queued render job."""
        query = """
            SELECT assignment_id, pdf_version, pdf_job_id
            FROM report_data
            WHERE pdf_status = 'queued'
            ORDER BY updated_at
            LIMIT 1
        """
        return self.execute_one(query)

    def claim_render(self, assignment_id: str, job_id: Optional[str]) -> bool:
        """Atomically move queued -> generating; False when another worker won."""
        rowcount = self.execute_write(
            """
            UPDATE report_data
            SET pdf_status = 'generating', updated_at = %s
            WHERE assignment_id = %s AND pdf_status = 'queued'
              AND pdf_job_id IS NOT DISTINCT FROM %s
            """,
            (datetime.now(timezone.utc), assignment_id, job_id),
        )
        return rowcount == 1

    def complete_render(
        self,
        assignment_id: str,
        job_id: Optional[str],
        storage_path: str,
        version: int,
    ) -> bool:
        """generating -> ready for the claimed job; False when the row was re-queued meanwhile."""
        now = datetime.now(timezone.utc)
        rowcount = self.execute_write(
            """
            UPDATE report_data
            SET pdf_status = 'ready', pdf_storage_path = %s, pdf_generated_at = %s,
                pdf_version = %s, pdf_last_error = NULL, updated_at = %s
            WHERE assignment_id = %s AND pdf_status = 'generating'
              AND pdf_job_id IS NOT DISTINCT FROM %s
            """,
            (storage_path, now, version, now, assignment_id, job_id),
        )
        return rowcount > 0

    def fail_render(self, assignment_id: str, job_id: Optional[str], message: str) -> bool:
        """generating -> failed for the claimed job; False when the row was re-queued meanwhile."""
        rowcount = self.execute_write(
            """
            UPDATE report_data
            SET pdf_status = 'failed', pdf_last_error = %s, updated_at = %s
            WHERE assignment_id = %s AND pdf_status = 'generating'
              AND pdf_job_id IS NOT DISTINCT FROM %s
            """,
            (message, datetime.now(timezone.utc), assignment_id, job_id),
        )
        return rowcount > 0


# Singleton instance
_snowflake_service: Optional[SnowflakeService] = None


def get_snowflake_service() -> SnowflakeService:
    """Get or create Snowflake service singleton."""
    global _snowflake_service
    if _snowflake_service is None:
        _snowflake_service = SnowflakeService()
    return _snowflake_service

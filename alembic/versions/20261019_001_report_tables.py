"""Report tables and dimension-score refresh procedure - v1.0

Revision ID: 001_report_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from snowflake.sqlalchemy import VARIANT

# revision identifiers, used by Alembic.
revision: str = '001_report_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Parents are averaged over their children one tree level per pass.
MAX_DIMENSION_DEPTH = 10

REFRESH_PROCEDURE = f"""
CREATE OR REPLACE PROCEDURE refresh_dimension_scores_for_assignment(p_assignment_id VARCHAR)
RETURNS VARCHAR
LANGUAGE SQL
AS
$$
BEGIN
    DELETE FROM assignment_dimension_scores WHERE assignment_id = :p_assignment_id;

    INSERT INTO assignment_dimension_scores (assignment_id, dimension_id, avg_score, answer_count, calculated_at)
    WITH scored AS (
        SELECT f.dimension_id,
               CASE f.type
                   WHEN 'multiple_choice' THEN
                       COALESCE(TRY_TO_DOUBLE(GET(f.anchors, TRY_TO_NUMBER(a.value)):value::VARCHAR), 0)
                   WHEN 'slider' THEN COALESCE(TRY_TO_DOUBLE(a.value), 0)
               END AS score
        FROM answers a
        JOIN fields f ON f.id = a.field_id
        WHERE a.assignment_id = :p_assignment_id
          AND f.dimension_id IS NOT NULL
          AND f.type IN ('multiple_choice', 'slider')
    ),
    direct AS (
        SELECT dimension_id, AVG(score) AS avg_score, COUNT(*) AS answer_count
        FROM scored
        GROUP BY dimension_id
    )
    SELECT :p_assignment_id, d.id, COALESCE(direct.avg_score, 0), COALESCE(direct.answer_count, 0),
           CURRENT_TIMESTAMP()
    FROM dimensions d
    JOIN assignments asg ON asg.assessment_id = d.assessment_id AND asg.id = :p_assignment_id
    LEFT JOIN direct ON direct.dimension_id = d.id;

    FOR i IN 1 TO {MAX_DIMENSION_DEPTH} DO
        UPDATE assignment_dimension_scores s
        SET avg_score = c.child_avg
        FROM (
            SELECT d.parent_id, AVG(COALESCE(cs.avg_score, 0)) AS child_avg
            FROM dimensions d
            LEFT JOIN assignment_dimension_scores cs
              ON cs.dimension_id = d.id AND cs.assignment_id = :p_assignment_id
            WHERE d.parent_id IS NOT NULL
            GROUP BY d.parent_id
        ) c
        WHERE s.assignment_id = :p_assignment_id AND s.dimension_id = c.parent_id;
    END FOR;

    RETURN 'ok';
END;
$$
"""


def upgrade() -> None:
    """Create the report cache, score cache, feedback library and template tables."""

    # ===== 1. REPORT_DATA =====
    op.create_table(
        'report_data',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('assignment_id', sa.String(36), nullable=False, unique=True),
        sa.Column('overall_score', sa.Float(), nullable=True),
        sa.Column('dimension_scores', VARIANT(), nullable=True),
        sa.Column('feedback_assigned', VARIANT(), nullable=True),
        sa.Column('calculated_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('pdf_status', sa.String(20), nullable=False, server_default='not_requested'),
        sa.Column('pdf_storage_path', sa.String(500), nullable=True),
        sa.Column('pdf_generated_at', sa.DateTime(), nullable=True),
        sa.Column('pdf_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pdf_last_error', sa.Text(), nullable=True),
        sa.Column('pdf_job_id', sa.String(36), nullable=True),
    )

    # ===== 2. ASSIGNMENT_DIMENSION_SCORES =====
    op.create_table(
        'assignment_dimension_scores',
        sa.Column('assignment_id', sa.String(36), primary_key=True),
        sa.Column('dimension_id', sa.String(36), primary_key=True),
        sa.Column('avg_score', sa.Float(), nullable=False),
        sa.Column('answer_count', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.DateTime(), nullable=False),
    )

    # ===== 3. FEEDBACK_LIBRARY =====
    op.create_table(
        'feedback_library',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('assessment_id', sa.String(36), nullable=False),
        sa.Column('dimension_id', sa.String(36), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False),
        sa.Column('min_score', sa.Float(), nullable=True),
        sa.Column('max_score', sa.Float(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # ===== 4. REPORT_TEMPLATES =====
    op.create_table(
        'report_templates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('assessment_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('components', VARIANT(), nullable=True),
        sa.Column('labels', VARIANT(), nullable=True),
        sa.Column('styling', VARIANT(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # ===== INDEXES =====
    op.create_index('idx_report_data_pdf_status', 'report_data', ['pdf_status'])
    op.create_index('idx_feedback_library_assessment', 'feedback_library', ['assessment_id'])
    op.create_index('idx_report_templates_assessment', 'report_templates', ['assessment_id'])

    # ===== PROCEDURES =====
    op.execute(REFRESH_PROCEDURE)


def downgrade() -> None:
    """Drop the procedure and the report tables."""
    op.execute("DROP PROCEDURE IF EXISTS refresh_dimension_scores_for_assignment(VARCHAR)")

    op.drop_index('idx_report_templates_assessment', table_name='report_templates')
    op.drop_index('idx_feedback_library_assessment', table_name='feedback_library')
    op.drop_index('idx_report_data_pdf_status', table_name='report_data')

    op.drop_table('report_templates')
    op.drop_table('feedback_library')
    op.drop_table('assignment_dimension_scores')
    op.drop_table('report_data')

"""create interview, session and report tables

Revision ID: a7c1e0f3b2d4
Revises:
Create Date: 2025-09-01 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7c1e0f3b2d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'interviews',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('user_id', sa.String(length=128), nullable=False, index=True),
        sa.Column('job_title', sa.String(length=255), nullable=False),
        sa.Column('job_description', sa.Text(), nullable=True),
        sa.Column('user_summary', sa.Text(), nullable=False, server_default=''),
        sa.Column('job_summary', sa.Text(), nullable=False, server_default=''),
        sa.Column('mentor_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('session_id', sa.String(length=32), nullable=True),
        sa.Column('report_id', sa.String(length=32), nullable=True),
        sa.Column('report_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'interview_sessions',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('interview_id', sa.String(length=32), nullable=False, index=True),
        sa.Column('user_id', sa.String(length=128), nullable=False, index=True),
        sa.Column('messages', sa.JSON(), nullable=False),
        sa.Column('metrics', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active', index=True),
        sa.Column('video_url', sa.Text(), nullable=True),
        sa.Column('report_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'interview_reports',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('interview_id', sa.String(length=32), nullable=False, index=True),
        sa.Column('session_id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False, index=True),
        sa.Column('job_title', sa.String(length=255), nullable=False),
        sa.Column('mentor_name', sa.String(length=128), nullable=False),
        sa.Column('performance_analysis', sa.JSON(), nullable=False),
        sa.Column('detailed_feedback', sa.JSON(), nullable=False),
        sa.Column('analysis_flags', sa.JSON(), nullable=False),
        sa.Column('interview_duration', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('report_version', sa.String(length=10), nullable=False, server_default='2.0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade():
    op.drop_table('interview_reports')
    op.drop_table('interview_sessions')
    op.drop_table('interviews')

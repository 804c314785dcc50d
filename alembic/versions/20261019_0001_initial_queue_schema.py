"""Initial work queue schema: jobs, render tasks, worker heartbeats."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "video_processing_jobs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), server_default="default_user", nullable=False),
        sa.Column("job_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("render_status", sa.String(), nullable=True),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("parent_id", sa.String(), nullable=True),
        sa.Column("source_platform", sa.String(), nullable=True),
        sa.Column("source_query", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("keywords", sa.String(), nullable=True),
        sa.Column("source_url", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("viral_score", sa.Integer(), nullable=True),
        sa.Column("duration", sa.Float(), nullable=True),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("output_json", sa.Text(), nullable=True),
        sa.Column("result_url", sa.String(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["parent_id"],
            ["video_processing_jobs.id"],
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_video_processing_jobs_queue",
        "video_processing_jobs",
        ["job_type", "status", "created_at"],
    )
    op.create_index("ix_video_processing_jobs_user_id", "video_processing_jobs", ["user_id"])
    op.create_index("ix_video_processing_jobs_job_type", "video_processing_jobs", ["job_type"])
    op.create_index("ix_video_processing_jobs_status", "video_processing_jobs", ["status"])
    op.create_index("ix_video_processing_jobs_owner_id", "video_processing_jobs", ["owner_id"])
    op.create_index("ix_video_processing_jobs_parent_id", "video_processing_jobs", ["parent_id"])

    op.create_table(
        "render_tasks",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("job_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), server_default="default_user", nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column("input_json", sa.Text(), nullable=False),
        sa.Column("output_json", sa.Text(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["video_processing_jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_render_tasks_queue", "render_tasks", ["status", "created_at"])
    op.create_index("ix_render_tasks_job_id", "render_tasks", ["job_id"])
    op.create_index("ix_render_tasks_user_id", "render_tasks", ["user_id"])
    op.create_index("ix_render_tasks_status", "render_tasks", ["status"])
    op.create_index("ix_render_tasks_owner_id", "render_tasks", ["owner_id"])

    op.create_table(
        "worker_heartbeat",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_worker_heartbeat_source_time",
        "worker_heartbeat",
        ["source", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("worker_heartbeat")
    op.drop_table("render_tasks")
    op.drop_table("video_processing_jobs")

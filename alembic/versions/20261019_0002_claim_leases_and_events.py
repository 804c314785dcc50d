"""Add claim leases for crashed-owner reclaim and the work item event trail."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    for table in ("video_processing_jobs", "render_tasks"):
        with op.batch_alter_table(table) as batch:
            batch.add_column(
                sa.Column("lease_expires_at", sa.DateTime(timezone=True), nullable=True),
            )
            batch.add_column(
                sa.Column("attempt", sa.Integer(), nullable=False, server_default="0"),
            )
    # Rows claimed before leases existed get an already expired lease so they can be reclaimed.
    op.execute(
        sa.text(
            """
            UPDATE video_processing_jobs
            SET lease_expires_at = updated_at, attempt = 1
            WHERE status = 'processing'
            """,
        ),
    )
    op.execute(
        sa.text(
            """
            UPDATE render_tasks
            SET lease_expires_at = updated_at, attempt = 1
            WHERE status = 'rendering'
            """,
        ),
    )

    op.create_table(
        "work_item_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_kind", sa.String(), nullable=False),
        sa.Column("item_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("status_from", sa.String(), nullable=True),
        sa.Column("status_to", sa.String(), nullable=True),
        sa.Column("details_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_work_item_events_item_time",
        "work_item_events",
        ["item_kind", "item_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("work_item_events")
    for table in ("render_tasks", "video_processing_jobs"):
        with op.batch_alter_table(table) as batch:
            batch.drop_column("attempt")
            batch.drop_column("lease_expires_at")

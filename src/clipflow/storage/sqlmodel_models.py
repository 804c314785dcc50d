"""SQLModel ORM tables for the work queue store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Text
from sqlmodel import Field, SQLModel

DEFAULT_USER_ID = "default_user"


class VideoProcessingJob(SQLModel, table=True):
    __tablename__ = "video_processing_jobs"  # type: ignore[bad-override]
    __table_args__ = (
        Index("idx_video_processing_jobs_queue", "job_type", "status", "created_at"),
    )

    id: str = Field(primary_key=True)
    user_id: str = Field(default=DEFAULT_USER_ID, index=True)
    job_type: str = Field(index=True)
    status: str = Field(index=True)
    render_status: str | None = None
    owner_id: str | None = Field(default=None, index=True)
    lease_expires_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
    attempt: int = Field(default=0)
    parent_id: str | None = Field(
        default=None,
        sa_column=Column(
            ForeignKey("video_processing_jobs.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    source_platform: str | None = None
    source_query: str | None = None
    category: str | None = None
    keywords: str | None = None
    source_url: str | None = None
    title: str | None = None
    viral_score: int | None = None
    duration: float | None = Field(default=None, sa_column=Column(Float))
    thumbnail_url: str | None = None
    output_json: str | None = Field(default=None, sa_column=Column(Text))
    result_url: str | None = None
    error: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class RenderTask(SQLModel, table=True):
    __tablename__ = "render_tasks"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_render_tasks_queue", "status", "created_at"),)

    id: str = Field(primary_key=True)
    job_id: str = Field(
        sa_column=Column(
            ForeignKey("video_processing_jobs.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    user_id: str = Field(default=DEFAULT_USER_ID, index=True)
    status: str = Field(index=True)
    owner_id: str | None = Field(default=None, index=True)
    lease_expires_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
    attempt: int = Field(default=0)
    input_json: str = Field(sa_column=Column(Text, nullable=False))
    output_json: str | None = Field(default=None, sa_column=Column(Text))
    error: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class WorkerHeartbeat(SQLModel, table=True):
    __tablename__ = "worker_heartbeat"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_worker_heartbeat_source_time", "source", "created_at"),)

    id: int | None = Field(default=None, primary_key=True)
    source: str
    message: str
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class WorkItemEvent(SQLModel, table=True):
    __tablename__ = "work_item_events"  # type: ignore[bad-override]
    __table_args__ = (
        Index("idx_work_item_events_item_time", "item_kind", "item_id", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    item_kind: str
    item_id: str
    event_type: str
    status_from: str | None = None
    status_to: str | None = None
    details_json: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

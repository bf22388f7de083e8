import datetime
import uuid

import sqlalchemy as sa

from batchupload.db.base import Base
from batchupload.utils.types import UploadStatus


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class UploadSession(Base):
    __tablename__ = "upload_sessions"
    __table_args__ = (
        sa.UniqueConstraint("owner_id", "batch_id", "batch_position", name="uq_upload_sessions_batch_position"),
        sa.Index("ix_upload_sessions_batch_owner", "batch_id", "owner_id"),
        sa.CheckConstraint("declared_size > 0", name="ck_upload_sessions_declared_size"),
        sa.CheckConstraint("bytes_uploaded >= 0", name="ck_upload_sessions_bytes_uploaded"),
    )

    id = sa.Column(sa.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    owner_id = sa.Column(sa.String(128), nullable=False, index=True)
    batch_id = sa.Column(sa.String(64), nullable=False)

    filename = sa.Column(sa.String(512), nullable=False)
    declared_size = sa.Column(sa.BigInteger, nullable=False)
    # original_name, mime_type, last_modified, project_label
    metadata_ = sa.Column("metadata", sa.JSON, nullable=False, default=dict)

    batch_total_files = sa.Column(sa.Integer, nullable=False)
    batch_position = sa.Column(sa.Integer, nullable=False)

    bytes_uploaded = sa.Column(sa.BigInteger, nullable=False, default=0)
    status = sa.Column(sa.String(32), nullable=False, default=UploadStatus.PENDING.value)
    error_message = sa.Column(sa.Text, nullable=True)

    created_at = sa.Column(sa.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = sa.Column(sa.DateTime(timezone=True), default=utcnow, nullable=False)

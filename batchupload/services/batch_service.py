import re
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from batchupload.config import config
from batchupload.db import session_store as store
from batchupload.db.models.upload_session import UploadSession
from batchupload.services.errors import BatchConflict, BatchTooLarge, InvalidManifestEntry
from batchupload.utils.types import UploadStatus

MAX_BATCH_ID_LENGTH = 64
# batch ids travel as a single URL path segment
BATCH_ID_PATTERN = re.compile(rf"[A-Za-z0-9][A-Za-z0-9._:-]{{0,{MAX_BATCH_ID_LENGTH - 1}}}")


@dataclass
class ManifestEntry:
    filename: str
    size: int
    mime_type: Optional[str] = None
    last_modified: Optional[int] = None


@dataclass
class CreatedSession:
    upload_id: uuid.UUID
    filename: str
    declared_size: int
    batch_position: int


@dataclass
class BatchInit:
    batch_id: str
    total_files: int
    sessions: List[CreatedSession]


class BatchService:
    @staticmethod
    def validate_manifest(manifest: Sequence[ManifestEntry]) -> None:
        if not manifest:
            raise InvalidManifestEntry("The manifest must list at least one file.")

        if len(manifest) > config.MAX_BATCH_FILES:
            raise BatchTooLarge(f"A batch holds at most {config.MAX_BATCH_FILES} files, got {len(manifest)}.")

        for position, entry in enumerate(manifest, start=1):
            if not entry.filename or not entry.filename.strip():
                raise InvalidManifestEntry(f"File #{position} has no filename.")

            size = entry.size
            if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
                raise InvalidManifestEntry(f"File #{position} ('{entry.filename}') must declare a positive size.")

            if size > config.MAX_FILE_SIZE:
                raise InvalidManifestEntry(
                    f"File #{position} ('{entry.filename}') exceeds the maximum file size of {config.MAX_FILE_SIZE} bytes."
                )

    @staticmethod
    def _same_manifest(existing: Sequence[UploadSession], manifest: Sequence[ManifestEntry]) -> bool:
        if len(existing) != len(manifest):
            return False

        return all(
            session.batch_position == position
            and session.filename == entry.filename
            and session.declared_size == entry.size
            for position, (session, entry) in enumerate(zip(existing, manifest), start=1)
        )

    @staticmethod
    def _result(batch_id: str, sessions: Sequence[UploadSession]) -> BatchInit:
        return BatchInit(
            batch_id=batch_id,
            total_files=len(sessions),
            sessions=[
                CreatedSession(
                    upload_id=session.id,
                    filename=session.filename,
                    declared_size=session.declared_size,
                    batch_position=session.batch_position,
                )
                for session in sessions
            ],
        )

    @classmethod
    async def init_batch(
            cls,
            db: AsyncSession,
            owner_id: str,
            manifest: Sequence[ManifestEntry],
            batch_id: Optional[str] = None,
            project_label: Optional[str] = None,
    ) -> BatchInit:
        cls.validate_manifest(manifest)

        if batch_id is not None and not BATCH_ID_PATTERN.fullmatch(batch_id):
            raise InvalidManifestEntry(
                f"Batch id must be 1 to {MAX_BATCH_ID_LENGTH} letters, digits or '._:-', starting with a letter or digit."
            )

        if batch_id is not None:
            existing = await store.list_by_batch(db, batch_id, owner_id)
            if existing:
                if not cls._same_manifest(existing, manifest):
                    raise BatchConflict(f"Batch '{batch_id}' already exists with a different manifest.")

                logger.info(f"Batch {batch_id} re-initialised by {owner_id}, returning existing sessions")
                return cls._result(batch_id, existing)

        else:
            batch_id = str(uuid.uuid4())

        sessions = [
            UploadSession(
                id=uuid.uuid4(),
                owner_id=owner_id,
                batch_id=batch_id,
                filename=entry.filename,
                declared_size=entry.size,
                metadata_={
                    "original_name": entry.filename,
                    "mime_type": entry.mime_type,
                    "last_modified": entry.last_modified,
                    "project_label": project_label,
                },
                batch_total_files=len(manifest),
                batch_position=position,
                bytes_uploaded=0,
                status=UploadStatus.PENDING.value,
            )
            for position, entry in enumerate(manifest, start=1)
        ]

        await store.create_many(db, sessions)
        logger.info(f"Created batch {batch_id} with {len(sessions)} upload sessions for {owner_id}")

        return cls._result(batch_id, sessions)

"""Session store: the only shared state of the upload service.

Every function takes the request's ``AsyncSession`` and scopes reads and
writes to the caller's ``owner_id``. A row that exists but belongs to another
owner is reported exactly like a missing row.
"""
import asyncio
import contextlib
import uuid
from typing import Iterable, List, Optional, Sequence

import sqlalchemy as sa
from loguru import logger
from sqlalchemy.engine import Row
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from batchupload.config import config
from batchupload.db.models.upload_session import UploadSession, utcnow
from batchupload.services.errors import DuplicateKey, NotFound, StoreUnavailable
from batchupload.utils.types import UploadStatus


@contextlib.asynccontextmanager
async def store_call(operation: str):
    try:
        async with asyncio.timeout(config.STORE_TIMEOUT_SECONDS):
            yield

    except TimeoutError as e:
        logger.warning(f"Session store timed out during '{operation}'")
        raise StoreUnavailable("The upload store timed out. Retry the request.") from e

    except (OperationalError, InterfaceError) as e:
        logger.warning(f"Session store unavailable during '{operation}': {e}")
        raise StoreUnavailable("The upload store is unavailable. Retry the request.") from e

    except DBAPIError as e:
        if not e.connection_invalidated:
            raise
        logger.warning(f"Session store connection lost during '{operation}'")
        raise StoreUnavailable("The upload store connection was lost. Retry the request.") from e


async def create_many(db: AsyncSession, sessions: List[UploadSession]) -> List[UploadSession]:
    """Insert every session in one transaction, or none of them."""
    async with store_call("create"):
        db.add_all(sessions)
        try:
            await db.commit()

        except IntegrityError as e:
            await db.rollback()
            raise DuplicateKey("An upload with the same identifier already exists. Retry the request.") from e

    return sessions


async def create(db: AsyncSession, session: UploadSession) -> UploadSession:
    (created,) = await create_many(db, [session])
    return created


async def get(db: AsyncSession, upload_id: uuid.UUID, owner_id: str) -> UploadSession:
    async with store_call("get"):
        session: Optional[UploadSession] = await db.scalar(
            sa.select(UploadSession)
            .where(UploadSession.id == upload_id, UploadSession.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )

    if session is None:
        raise NotFound()

    return session


async def list_by_batch(db: AsyncSession, batch_id: str, owner_id: str) -> Sequence[UploadSession]:
    async with store_call("list_by_batch"):
        result = await db.scalars(
            sa.select(UploadSession)
            .where(UploadSession.batch_id == batch_id, UploadSession.owner_id == owner_id)
            .order_by(UploadSession.batch_position)
            .execution_options(populate_existing=True)
        )
        return result.all()


async def increment_progress(
        db: AsyncSession,
        upload_id: uuid.UUID,
        owner_id: str,
        chunk_length: int,
        is_last_chunk: bool,
) -> Row:
    """Add ``chunk_length`` bytes and advance the status in a single UPDATE.

    The statement reads and writes the row under the database's own row lock,
    so two chunks for the same upload never overwrite each other's counter.
    The status only moves forward: a last chunk lifts pending/uploading to
    ready_for_processing, any other chunk lifts pending to uploading, and
    everything else keeps its current status.
    """
    if is_last_chunk:
        advance_from = (UploadStatus.PENDING, UploadStatus.UPLOADING)
        target = UploadStatus.READY_FOR_PROCESSING
    else:
        advance_from = (UploadStatus.PENDING,)
        target = UploadStatus.UPLOADING

    stmt = (
        sa.update(UploadSession)
        .where(UploadSession.id == upload_id, UploadSession.owner_id == owner_id)
        .values(
            bytes_uploaded=UploadSession.bytes_uploaded + chunk_length,
            status=sa.case(
                (UploadSession.status.in_([s.value for s in advance_from]), target.value),
                else_=UploadSession.status,
            ),
            updated_at=utcnow(),
        )
        .returning(
            UploadSession.id,
            UploadSession.bytes_uploaded,
            UploadSession.declared_size,
            UploadSession.status,
        )
        .execution_options(synchronize_session=False)
    )

    async with store_call("increment_progress"):
        row = (await db.execute(stmt)).one_or_none()
        if row is None:
            await db.rollback()
            raise NotFound()

        await db.commit()

    return row


async def transition(
        db: AsyncSession,
        upload_id: uuid.UUID,
        owner_id: str,
        status: UploadStatus,
        from_statuses: Iterable[UploadStatus],
        error_message: Optional[str] = None,
) -> bool:
    """Move a session to ``status`` if it currently sits in ``from_statuses``.

    Returns False when no owned row matched the guard; the caller decides
    whether that means missing or an illegal transition.
    """
    stmt = (
        sa.update(UploadSession)
        .where(
            UploadSession.id == upload_id,
            UploadSession.owner_id == owner_id,
            UploadSession.status.in_([s.value for s in from_statuses]),
        )
        .values(status=status.value, error_message=error_message, updated_at=utcnow())
        .returning(UploadSession.id)
        .execution_options(synchronize_session=False)
    )

    async with store_call("transition"):
        updated = (await db.execute(stmt)).scalar_one_or_none()
        if updated is None:
            await db.rollback()
            return False

        await db.commit()

    return True

import base64
import binascii
import hashlib
import uuid
from pathlib import Path

from loguru import logger

from batchupload.config import config
from batchupload.services.errors import InvalidChunk
from batchupload.utils.files import write_file_bytes, delete_file


class ChunkStorage:
    """Filesystem home for chunk bytes.

    Chunks land in ``STORAGE_PATH/uploads/<owner digest>/<upload id>/<index>.part``;
    assembling and verifying them is left to whatever later marks the upload
    completed.
    """

    @staticmethod
    def decode_chunk(chunk_data: str) -> bytes:
        try:
            data = base64.b64decode(chunk_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidChunk("Chunk data is not valid base64.") from e

        if not data:
            raise InvalidChunk("Chunk data is empty.")

        if len(data) > config.MAX_CHUNK_SIZE:
            raise InvalidChunk(f"Chunk exceeds the maximum chunk size of {config.MAX_CHUNK_SIZE} bytes.")

        return data

    @staticmethod
    def chunk_path(owner_id: str, upload_id: uuid.UUID, chunk_index: int) -> Path:
        # owner ids are opaque and may contain path separators
        owner_dir = hashlib.sha256(owner_id.encode()).hexdigest()[:32]
        return config.STORAGE_PATH / "uploads" / owner_dir / str(upload_id) / f"{chunk_index:06d}.part"

    @classmethod
    async def write_chunk(cls, owner_id: str, upload_id: uuid.UUID, chunk_index: int, data: bytes) -> Path:
        if chunk_index < 0:
            raise InvalidChunk("Chunk index must not be negative.")

        path = cls.chunk_path(owner_id, upload_id, chunk_index)
        await write_file_bytes(data, path)
        return path

    @staticmethod
    async def discard_chunk(path: Path) -> None:
        if not await delete_file(path):
            logger.warning(f"Could not remove orphaned chunk file {path}")

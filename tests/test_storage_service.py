"""Tests for the filesystem chunk store."""
import base64
import uuid

import pytest

from batchupload.services.errors import InvalidChunk
from batchupload.services.storage_service import ChunkStorage


def test_decode_chunk_returns_raw_bytes():
    assert ChunkStorage.decode_chunk(base64.b64encode(b"hello").decode()) == b"hello"


@pytest.mark.parametrize("chunk_data", ["", "not base64!", "YWJj="])
def test_decode_chunk_rejects_empty_or_malformed_data(chunk_data):
    with pytest.raises(InvalidChunk):
        ChunkStorage.decode_chunk(chunk_data)


def test_decode_chunk_rejects_oversize_chunks():
    # MAX_CHUNK_SIZE is 64 KiB in the test environment
    with pytest.raises(InvalidChunk):
        ChunkStorage.decode_chunk(base64.b64encode(b"x" * (64 * 1024 + 1)).decode())


def test_chunk_path_does_not_trust_owner_id(storage_path):
    path = ChunkStorage.chunk_path("../../etc", uuid.uuid4(), 3)

    assert path.is_relative_to(storage_path / "uploads")
    assert path.name == "000003.part"


@pytest.mark.asyncio
async def test_write_and_discard_chunk(storage_path):
    upload_id = uuid.uuid4()

    path = await ChunkStorage.write_chunk("owner-1", upload_id, 0, b"abc")

    assert path.read_bytes() == b"abc"
    assert path.parent.name == str(upload_id)

    await ChunkStorage.discard_chunk(path)
    assert not path.exists()


@pytest.mark.asyncio
async def test_negative_chunk_index_is_rejected(storage_path):
    with pytest.raises(InvalidChunk):
        await ChunkStorage.write_chunk("owner-1", uuid.uuid4(), -1, b"abc")

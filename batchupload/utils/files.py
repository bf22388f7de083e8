import asyncio
from pathlib import Path

import aiofiles
import aiofiles.os

from batchupload.config import config

SEM = asyncio.Semaphore(config.MAX_CONCURRENT_IO)


async def write_file_bytes(data: bytes, path: Path) -> None:
    async with SEM:
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)


async def delete_file(path: Path) -> bool:
    async with SEM:
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return True
        except OSError:
            return False

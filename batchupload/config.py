from pathlib import Path
from typing import List

import humanfriendly
from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


class Config(BaseModel):
    # Database
    DATABASE_URL: str
    STORE_TIMEOUT_SECONDS: float
    CREATE_TABLES: bool

    # Identity
    JWT_SECRET: str
    JWT_ALG: str

    # Uploads
    MAX_BATCH_FILES: int
    MAX_FILE_SIZE: int
    MAX_CHUNK_SIZE: int
    STORAGE_PATH: Path

    # FastAPI
    FASTAPI_HOST: str
    FASTAPI_PORT: int
    CORS_ORIGINS: List[str]

    # Async I/O
    MAX_CONCURRENT_IO: int

    # Logging
    LOG_LEVEL: str


config = Config(
    DATABASE_URL=os.environ["DATABASE_URL"],
    STORE_TIMEOUT_SECONDS=float(os.getenv("STORE_TIMEOUT_SECONDS", "10")),
    CREATE_TABLES=os.getenv("CREATE_TABLES", "true").lower() in ("1", "true", "yes"),

    JWT_SECRET=os.environ["JWT_SECRET"],
    JWT_ALG=os.getenv("JWT_ALG", "HS256"),

    MAX_BATCH_FILES=int(os.getenv("MAX_BATCH_FILES", "50")),
    MAX_FILE_SIZE=humanfriendly.parse_size(os.getenv("MAX_FILE_SIZE", "10 GiB"), binary=True),
    MAX_CHUNK_SIZE=humanfriendly.parse_size(os.getenv("MAX_CHUNK_SIZE", "8 MiB"), binary=True),
    STORAGE_PATH=Path(os.getenv("STORAGE_PATH", "storage")),

    FASTAPI_HOST=os.getenv("FASTAPI_HOST", "0.0.0.0"),
    FASTAPI_PORT=int(os.getenv("FASTAPI_PORT", "8000")),
    CORS_ORIGINS=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()],

    MAX_CONCURRENT_IO=int(os.getenv("MAX_CONCURRENT_IO", "16")),

    LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
)

__all__ = ["config"]

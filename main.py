import contextlib

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from batchupload.config import config
from batchupload.db.session import create_tables
from batchupload.routers import register_routers
from batchupload.services.errors import UploadError
from batchupload.utils.log import setup_logging

setup_logging()


@contextlib.asynccontextmanager
async def lifespan(_app: FastAPI):
    if config.CREATE_TABLES:
        await create_tables()
    logger.info("Upload service started")
    yield


app = FastAPI(lifespan=lifespan)

# browser clients upload straight from the page
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_routers(app)


@app.exception_handler(UploadError)
async def upload_error_handler(_request: Request, exc: UploadError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "Internal server error."},
    )


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.FASTAPI_HOST, port=config.FASTAPI_PORT, log_config=None)

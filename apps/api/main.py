"""
Tubely: video upload API.

Run from apps/api/:
  uvicorn main:create_app --factory

Endpoints:
  POST /api/v1/videos                        Create a draft video
  GET  /api/v1/videos                        List the caller's videos
  GET  /api/v1/videos/{id}                   Fetch one video
  POST /api/v1/videos/{id}/thumbnail         Upload thumbnail (form field "thumbnail")
  POST /api/v1/videos/{id}/video             Upload MP4 (form field "video") → ffmpeg → S3
  GET  /assets/{file}                        Thumbnails served from ASSETS_ROOT
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from config import Settings
from db.engine import close_db, init_db
from db.queries import PostgresVideoStore
from errors import TubelyError, request_validation_handler, tubely_error_handler
from media.ffmpeg import FFmpegMediaProcessor
from routers import videos
from storage.local import AssetFiles, LocalStorage
from storage.s3 import S3ObjectStore

logger = logging.getLogger(__name__)


# ── Lifespan: DB pool and S3 client ───────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.db_pool = await init_db(settings.database_url)
    app.state.video_store = PostgresVideoStore(app.state.db_pool)
    logger.info("Database pool initialized")

    app.state.object_store = S3ObjectStore.from_region(settings.s3_region)
    logger.info("S3 client ready (bucket=%s, region=%s)", settings.s3_bucket, settings.s3_region)
    yield
    await close_db(app.state.db_pool)
    logger.info("Database pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    assets = LocalStorage(settings.assets_root)
    assets.ensure_dirs()

    app = FastAPI(title="Tubely", lifespan=lifespan)
    app.state.settings = settings
    app.state.local_storage = assets
    app.state.media_processor = FFmpegMediaProcessor(
        ffprobe_path=settings.ffprobe_path,
        ffmpeg_path=settings.ffmpeg_path,
        timeout=settings.media_tool_timeout,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TubelyError, tubely_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(videos.router, prefix="/api/v1")
    app.mount("/assets", AssetFiles(directory=str(settings.assets_root)), name="assets")
    return app

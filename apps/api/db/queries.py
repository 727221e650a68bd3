"""Typed queries for the videos table."""

from __future__ import annotations

import logging
import uuid
from typing import Protocol

import asyncpg

from errors import PersistError
from schemas.video import Video

logger = logging.getLogger(__name__)


class VideoStore(Protocol):
    async def get_video(self, video_id: uuid.UUID) -> Video | None: ...

    async def update_video(self, video: Video) -> Video: ...

    async def create_video(self, *, user_id: uuid.UUID, title: str, description: str) -> Video: ...

    async def list_videos_for_user(self, user_id: uuid.UUID, limit: int = 50, offset: int = 0) -> list[Video]: ...


class PostgresVideoStore:
    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_video(self, video_id: uuid.UUID) -> Video | None:
        try:
            row = await self.pool.fetchrow("SELECT * FROM videos WHERE id = $1", video_id)
        except (asyncpg.PostgresError, OSError) as exc:
            raise PersistError("Unable to load video") from exc
        return Video(**dict(row)) if row else None

    async def update_video(self, video: Video) -> Video:
        """Persist title, description and URLs. Raises PersistError if the row is gone."""
        try:
            row = await self.pool.fetchrow(
                """
                UPDATE videos
                SET title = $1, description = $2, thumbnail_url = $3, video_url = $4, updated_at = now()
                WHERE id = $5
                RETURNING *
                """,
                video.title, video.description, video.thumbnail_url, video.video_url, video.id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise PersistError("Unable to update video metadata") from exc
        if row is None:
            raise PersistError("Unable to update video metadata")
        return Video(**dict(row))

    async def create_video(self, *, user_id: uuid.UUID, title: str, description: str) -> Video:
        try:
            row = await self.pool.fetchrow(
                """
                INSERT INTO videos (title, description, user_id)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                title, description, user_id,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise PersistError("Unable to create video") from exc
        return Video(**dict(row))

    async def list_videos_for_user(self, user_id: uuid.UUID, limit: int = 50, offset: int = 0) -> list[Video]:
        try:
            rows = await self.pool.fetch(
                "SELECT * FROM videos WHERE user_id = $1 ORDER BY created_at DESC LIMIT $2 OFFSET $3",
                user_id, limit, offset,
            )
        except (asyncpg.PostgresError, OSError) as exc:
            raise PersistError("Unable to list videos") from exc
        return [Video(**dict(r)) for r in rows]

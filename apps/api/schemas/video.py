import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class Video(BaseModel):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    title: str
    description: str = ""
    thumbnail_url: str | None = None
    video_url: str | None = None
    user_id: uuid.UUID


class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""


class VideoList(BaseModel):
    videos: list[Video]
    count: int

"""FastAPI dependencies: settings, collaborators and the authenticated user.

Everything is read from ``app.state``, populated once by the app factory and
lifespan. Tests swap collaborators through ``app.dependency_overrides``.
"""

import uuid

from fastapi import Depends, Request

from auth.tokens import get_bearer_token, validate_jwt
from config import Settings
from db.queries import VideoStore
from errors import InvalidInputError
from media.ffmpeg import MediaProcessor
from storage.local import LocalStorage
from storage.s3 import ObjectStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_video_store(request: Request) -> VideoStore:
    return request.app.state.video_store


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def get_media_processor(request: Request) -> MediaProcessor:
    return request.app.state.media_processor


def get_local_storage(request: Request) -> LocalStorage:
    return request.app.state.local_storage


def parse_video_id(video_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(video_id)
    except ValueError as exc:
        raise InvalidInputError("Invalid ID") from exc


def current_user_id(request: Request, settings: Settings = Depends(get_settings)) -> uuid.UUID:
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.jwt_secret)

"""Video metadata and upload endpoints.

Both upload handlers run the same linear pipeline: authenticate, check
ownership, validate the part's content type, stage to disk, (video only)
probe and remux, store, then persist the new URL. Any failure ends the
request; only local temp files are cleaned up, nothing is rolled back.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import FormData, UploadFile
from starlette.types import Message

from config import THUMBNAIL_MAX_BYTES, VIDEO_MAX_BYTES, Settings
from db.queries import VideoStore
from dependencies import (
    current_user_id,
    get_local_storage,
    get_media_processor,
    get_object_store,
    get_settings,
    get_video_store,
    parse_video_id,
)
from errors import (
    AuthError,
    FileIOError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    PersistError,
    UnsupportedMediaTypeError,
)
from media.ffmpeg import MediaProcessor
from media.mediatype import media_subtype, parse_media_type
from schemas.video import Video, VideoCreate, VideoList
from storage.keys import video_object_key
from storage.local import LocalStorage
from storage.s3 import ObjectStore
from storage.staging import staged_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

VIDEO_MEDIA_TYPE = "video/mp4"


async def _load_owned_video(store: VideoStore, video_id: uuid.UUID, user_id: uuid.UUID) -> Video:
    video = await store.get_video(video_id)
    if video is None:
        raise NotFoundError("Video not found.")
    if video.user_id != user_id:
        raise AuthError("You don't own this video")
    return video


def _capped_request(request: Request, max_bytes: int) -> Request:
    """Return a view of ``request`` whose body read fails past ``max_bytes``.

    A declared Content-Length over the limit is rejected up front; chunked
    bodies are cut off as soon as the running total crosses it, before the
    multipart parser spools the rest to disk.
    """
    too_large = f"Request exceeds {max_bytes // (1024 * 1024)} MB."
    raw = request.headers.get("content-length")
    if raw and raw.isdigit() and int(raw) > max_bytes:
        raise PayloadTooLargeError(too_large)

    receive = request.receive
    received = 0

    async def capped_receive() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_bytes:
                raise PayloadTooLargeError(too_large)
        return message

    return Request(request.scope, capped_receive)


def _form_file(form: FormData, field: str) -> UploadFile:
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        raise InvalidInputError(f"Missing '{field}' file in form")
    return upload


def _video_url(settings: Settings, key: str) -> str:
    # Without a CDN the record keeps "bucket,key" and is signed on every read
    if settings.signs_video_urls:
        return f"{settings.s3_bucket},{key}"
    return f"{settings.s3_cf_distribution}/{key}"


async def _sign_video(video: Video, settings: Settings, objects: ObjectStore) -> Video:
    url = video.video_url
    if not url or "://" in url or "," not in url:
        return video
    bucket, key = url.split(",", 1)
    signed = await objects.presign_get_object(bucket, key, settings.presign_ttl_seconds)
    return video.model_copy(update={"video_url": signed})


async def _video_response(video: Video, settings: Settings, objects: ObjectStore) -> JSONResponse:
    video = await _sign_video(video, settings, objects)
    return JSONResponse(content=video.model_dump(mode="json"))


@router.post("/videos")
async def create_video(
    body: VideoCreate,
    user_id: uuid.UUID = Depends(current_user_id),
    store: VideoStore = Depends(get_video_store),
):
    """Create a draft video owned by the caller; media is attached later."""
    video = await store.create_video(user_id=user_id, title=body.title, description=body.description)
    logger.info("Created video %s for user %s", video.id, user_id)
    return JSONResponse(status_code=201, content=video.model_dump(mode="json"))


@router.get("/videos")
async def list_videos(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: uuid.UUID = Depends(current_user_id),
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
    objects: ObjectStore = Depends(get_object_store),
):
    """List the caller's videos, newest first."""
    videos = await store.list_videos_for_user(user_id, limit=limit, offset=offset)
    signed = [await _sign_video(v, settings, objects) for v in videos]
    return JSONResponse(content=VideoList(videos=signed, count=len(signed)).model_dump(mode="json"))


@router.get("/videos/{video_id}")
async def get_video(
    video_uuid: uuid.UUID = Depends(parse_video_id),
    user_id: uuid.UUID = Depends(current_user_id),
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
    objects: ObjectStore = Depends(get_object_store),
):
    video = await _load_owned_video(store, video_uuid, user_id)
    return await _video_response(video, settings, objects)


@router.post("/videos/{video_id}/thumbnail")
async def upload_thumbnail(
    request: Request,
    video_uuid: uuid.UUID = Depends(parse_video_id),
    user_id: uuid.UUID = Depends(current_user_id),
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
    objects: ObjectStore = Depends(get_object_store),
    assets: LocalStorage = Depends(get_local_storage),
):
    """Store a thumbnail under /assets/<video-id>.<ext>.

    Any non-empty content type is accepted; its subtype becomes the file
    extension. Re-uploading overwrites the previous file.
    """
    logger.info("Uploading thumbnail for video %s by user %s", video_uuid, user_id)
    video = await _load_owned_video(store, video_uuid, user_id)
    capped = _capped_request(request, THUMBNAIL_MAX_BYTES)

    async with capped.form(max_files=1) as form:
        upload = _form_file(form, "thumbnail")
        extension = media_subtype(parse_media_type(upload.content_type))
        filename = assets.thumbnail_name(str(video_uuid), extension)

        # Staged on the same filesystem as the assets so the final move is an atomic rename
        async with staged_upload(
            upload, max_bytes=THUMBNAIL_MAX_BYTES, directory=assets.staging_dir, suffix=".tmp"
        ) as staged:
            assets.save_thumbnail(staged, str(video_uuid), extension)

    video = video.model_copy(update={"thumbnail_url": assets.asset_url(filename)})
    video = await store.update_video(video)
    return await _video_response(video, settings, objects)


@router.post("/videos/{video_id}/video")
async def upload_video(
    request: Request,
    video_uuid: uuid.UUID = Depends(parse_video_id),
    user_id: uuid.UUID = Depends(current_user_id),
    settings: Settings = Depends(get_settings),
    store: VideoStore = Depends(get_video_store),
    objects: ObjectStore = Depends(get_object_store),
    media: MediaProcessor = Depends(get_media_processor),
):
    """Upload an MP4, remux it for fast start and store it in S3."""
    logger.info("Uploading video for video %s by user %s", video_uuid, user_id)
    video = await _load_owned_video(store, video_uuid, user_id)
    capped = _capped_request(request, VIDEO_MAX_BYTES)

    async with capped.form(max_files=1) as form:
        upload = _form_file(form, "video")
        media_type = parse_media_type(upload.content_type)
        if media_type != VIDEO_MEDIA_TYPE:
            raise UnsupportedMediaTypeError("Please upload an MP4 video")

        async with staged_upload(
            upload, max_bytes=VIDEO_MAX_BYTES, directory=settings.staging_dir, suffix=".mp4"
        ) as staged:
            aspect_ratio = await media.inspect(staged)
            processed = await media.normalize(staged)
            try:
                key = video_object_key(aspect_ratio, media_subtype(media_type))
                try:
                    body = processed.open("rb")
                except OSError as exc:
                    raise FileIOError("Unable to open processed file") from exc
                with body:
                    await objects.put_object(settings.s3_bucket, key, body, media_type)
            finally:
                processed.unlink(missing_ok=True)

    video = video.model_copy(update={"video_url": _video_url(settings, key)})
    try:
        video = await store.update_video(video)
    except PersistError:
        logger.warning("Object %s/%s is orphaned: metadata update failed", settings.s3_bucket, key)
        raise

    logger.info("Video %s stored at %s (%s)", video_uuid, key, aspect_ratio)
    return await _video_response(video, settings, objects)

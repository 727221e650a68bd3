import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from auth.tokens import make_jwt
from config import Settings
from dependencies import get_media_processor, get_object_store, get_video_store
from errors import PersistError, ProcessError, UploadError
from main import create_app
from schemas.video import Video

JWT_SECRET = "test-secret"
CDN = "https://cdn.example.com"


class FakeVideoStore:
    def __init__(self):
        self.videos: dict[uuid.UUID, Video] = {}
        self.updates: list[Video] = []
        self.fail_update = False

    def add(self, user_id: uuid.UUID, **fields) -> Video:
        now = datetime.now(timezone.utc)
        video = Video(
            id=fields.pop("id", uuid.uuid4()),
            created_at=now,
            updated_at=now,
            title=fields.pop("title", "Boots demo"),
            user_id=user_id,
            **fields,
        )
        self.videos[video.id] = video
        return video

    async def get_video(self, video_id):
        return self.videos.get(video_id)

    async def update_video(self, video):
        if self.fail_update or video.id not in self.videos:
            raise PersistError("Unable to update video metadata")
        self.updates.append(video)
        self.videos[video.id] = video
        return video

    async def create_video(self, *, user_id, title, description):
        return self.add(user_id, title=title, description=description)

    async def list_videos_for_user(self, user_id, limit=50, offset=0):
        owned = [v for v in self.videos.values() if v.user_id == user_id]
        return owned[offset:offset + limit]


class FakeObjectStore:
    def __init__(self):
        self.puts: list[dict] = []
        self.fail = False

    async def put_object(self, bucket, key, body, content_type):
        if self.fail:
            raise UploadError("Unable to upload video to S3")
        self.puts.append({
            "bucket": bucket, "key": key, "body": body.read(), "content_type": content_type,
        })

    async def presign_get_object(self, bucket, key, expires_in):
        return f"https://{bucket}.s3.amazonaws.com/{key}?X-Amz-Expires={expires_in}"


class FakeMediaProcessor:
    def __init__(self, aspect_ratio: str = "16:9"):
        self.aspect_ratio = aspect_ratio
        self.inspected: list[Path] = []
        self.normalized: list[Path] = []
        self.fail_inspect = False

    async def inspect(self, path):
        self.inspected.append(path)
        if self.fail_inspect:
            raise ProcessError("ffprobe failed")
        return self.aspect_ratio

    async def normalize(self, path):
        self.normalized.append(path)
        output = path.with_name(path.name + ".processing")
        output.write_bytes(b"faststart:" + path.read_bytes())
        return output


@pytest.fixture
def settings(tmp_path):
    staging = tmp_path / "staging"
    staging.mkdir()
    return Settings(
        jwt_secret=JWT_SECRET,
        database_url="postgresql://unused",
        s3_bucket="tubely-test",
        s3_cf_distribution=CDN,
        assets_root=tmp_path / "assets",
        staging_dir=staging,
    )


@pytest.fixture
def video_store():
    return FakeVideoStore()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def media():
    return FakeMediaProcessor()


@pytest.fixture
def app(settings, video_store, object_store, media):
    app = create_app(settings)
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_media_processor] = lambda: media
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def owned_video(video_store, owner_id):
    return video_store.add(owner_id)


def auth_headers(user_id: uuid.UUID, secret: str = JWT_SECRET) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_jwt(user_id, secret)}"}


def chunked_multipart(field: str, filename: str, content_type: str, size: int, sent: list[int]):
    """Multipart body as an async generator (no Content-Length); ``sent`` counts bytes pulled."""
    boundary = "tubely-test-boundary"
    chunk = b"x" * (1 << 20)

    async def body():
        yield (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode()
        while sum(sent) < size:
            sent.append(len(chunk))
            yield chunk
        yield f"\r\n--{boundary}--\r\n".encode()

    return body(), {"Content-Type": f"multipart/form-data; boundary={boundary}"}


def files_in(directory: Path) -> list[str]:
    return sorted(p.name for p in directory.iterdir() if p.is_file())

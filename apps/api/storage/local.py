"""Local disk storage for thumbnails, served as static files under /assets/."""

import os
from pathlib import Path, PurePosixPath

from fastapi import HTTPException
from fastapi.staticfiles import StaticFiles
from starlette.types import Scope

from errors import FileIOError

ASSETS_URL_PREFIX = "/assets"
STAGING_SUBDIR = ".staging"


class LocalStorage:
    def __init__(self, base_dir: Path):
        self.base = base_dir

    def ensure_dirs(self) -> None:
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    @property
    def staging_dir(self) -> Path:
        """In-progress uploads; same filesystem as ``base`` but never served."""
        return self.base / STAGING_SUBDIR

    def thumbnail_name(self, video_id: str, ext: str) -> str:
        return f"{video_id}.{ext}"

    def thumbnail_path(self, video_id: str, ext: str) -> Path:
        return self.base / self.thumbnail_name(video_id, ext)

    def save_thumbnail(self, staged: Path, video_id: str, ext: str) -> Path:
        """Move a staged file into place. Repeated uploads overwrite the same file."""
        dest = self.thumbnail_path(video_id, ext)
        try:
            os.replace(staged, dest)
        except OSError as exc:
            raise FileIOError("Unable to save thumbnail") from exc
        return dest

    def asset_url(self, filename: str) -> str:
        return f"{ASSETS_URL_PREFIX}/{filename}"


class AssetFiles(StaticFiles):
    """StaticFiles that refuses dot-prefixed paths such as the staging dir."""

    async def get_response(self, path: str, scope: Scope):
        if any(part.startswith(".") for part in PurePosixPath(path).parts):
            raise HTTPException(status_code=404)
        return await super().get_response(path, scope)

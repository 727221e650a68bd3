"""Application settings, loaded once at startup from the environment."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Repo root is two levels up from apps/api/
_root = Path(__file__).resolve().parent.parent.parent

THUMBNAIL_MAX_BYTES = 10 << 20  # 10 MB
VIDEO_MAX_BYTES = 1 << 30  # 1 GB


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    jwt_secret: str
    database_url: str
    s3_bucket: str
    s3_region: str = "us-east-1"
    s3_cf_distribution: str = ""
    assets_root: Path = Path("assets")
    staging_dir: Path | None = None
    presign_ttl_seconds: int = 900
    ffprobe_path: str = "ffprobe"
    ffmpeg_path: str = "ffmpeg"
    media_tool_timeout: float = 300.0
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("http://localhost:8080",)

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Settings":
        """Build settings from environment variables (and .env at repo root)."""
        load_dotenv(env_file or _root / ".env")

        missing = [
            name for name in ("JWT_SECRET", "DATABASE_URL", "S3_BUCKET")
            if not os.environ.get(name)
        ]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

        staging_dir = os.environ.get("STAGING_DIR")
        origins = os.environ.get("CORS_ORIGINS", "http://localhost:8080")

        return cls(
            jwt_secret=os.environ["JWT_SECRET"],
            database_url=os.environ["DATABASE_URL"],
            s3_bucket=os.environ["S3_BUCKET"],
            s3_region=os.environ.get("S3_REGION", "us-east-1"),
            s3_cf_distribution=os.environ.get("S3_CF_DISTRO", "").rstrip("/"),
            assets_root=Path(os.environ.get("ASSETS_ROOT", "assets")),
            staging_dir=Path(staging_dir) if staging_dir else None,
            presign_ttl_seconds=int(os.environ.get("PRESIGN_TTL_SECONDS", "900")),
            ffprobe_path=os.environ.get("FFPROBE_PATH", "ffprobe"),
            ffmpeg_path=os.environ.get("FFMPEG_PATH", "ffmpeg"),
            media_tool_timeout=float(os.environ.get("MEDIA_TOOL_TIMEOUT", "300")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )

    @property
    def signs_video_urls(self) -> bool:
        """True when no CDN base URL is configured and S3 URLs must be presigned."""
        return not self.s3_cf_distribution

"""Object key construction for uploaded videos."""

import base64
import secrets

from media.aspect import aspect_bucket

RANDOM_NAME_BYTES = 32


def random_object_name() -> str:
    """32 random bytes, URL-safe base64 without padding (43 characters)."""
    raw = secrets.token_bytes(RANDOM_NAME_BYTES)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def video_object_key(aspect_ratio: str, extension: str) -> str:
    return f"{aspect_bucket(aspect_ratio)}/{random_object_name()}.{extension}"

"""Content-Type header parsing."""

import re

from errors import InvalidInputError

_MEDIA_TYPE = re.compile(r"^[a-z0-9!#$&^_.+-]+/[a-z0-9!#$&^_.+-]+$")


def parse_media_type(value: str | None) -> str:
    """Return the lower-cased ``type/subtype``, ignoring any parameters."""
    media_type = (value or "").split(";", 1)[0].strip().lower()
    if not media_type:
        raise InvalidInputError("Missing content type")
    if not _MEDIA_TYPE.match(media_type):
        raise InvalidInputError("Unable to parse mime type")
    return media_type


def media_subtype(media_type: str) -> str:
    """``image/png`` -> ``png``; used as the stored file extension."""
    return media_type.split("/", 1)[1]

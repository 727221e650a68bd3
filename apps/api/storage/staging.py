"""Stage multipart uploads to local temp files.

ffprobe and ffmpeg work on paths, not streams, so every upload is copied to
disk first. The staged file never outlives the ``async with`` block.
"""

import logging
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from starlette.datastructures import UploadFile

from errors import FileIOError, PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB


@asynccontextmanager
async def staged_upload(
    upload: UploadFile,
    *,
    max_bytes: int,
    directory: Path | None = None,
    suffix: str = "",
) -> AsyncIterator[Path]:
    """Copy ``upload`` into a new temp file and yield its path.

    Raises PayloadTooLargeError once more than ``max_bytes`` have been read.
    The upload stream is rewound before the path is handed out.
    """
    try:
        fd, name = tempfile.mkstemp(prefix="tubely-upload-", suffix=suffix, dir=directory)
    except OSError as exc:
        raise FileIOError("Unable to create temp file") from exc

    path = Path(name)
    try:
        size = 0
        try:
            with os.fdopen(fd, "wb") as f:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > max_bytes:
                        raise PayloadTooLargeError(f"File exceeds {max_bytes // (1024 * 1024)} MB.")
                    f.write(chunk)
            await upload.seek(0)
        except OSError as exc:
            raise FileIOError("Unable to copy upload to disk") from exc

        logger.debug("Staged %d bytes at %s", size, path)
        yield path
    finally:
        path.unlink(missing_ok=True)

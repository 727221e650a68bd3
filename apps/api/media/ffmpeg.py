"""Media inspection and fast-start remuxing backed by ffprobe/ffmpeg.

Handlers only see the ``MediaProcessor`` protocol, so an in-process media
library can replace the subprocess implementation without touching them.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol

from errors import ParseError, ProcessError
from media.aspect import classify_aspect_ratio

logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processing"


class MediaProcessor(Protocol):
    async def inspect(self, path: Path) -> str:
        """Return the aspect-ratio classification of the video at ``path``."""
        ...

    async def normalize(self, path: Path) -> Path:
        """Write a fast-start copy of ``path`` and return the new file's path."""
        ...


async def _run(cmd: list[str], timeout: float | None) -> bytes:
    """Run ``cmd`` and return its stdout. Kills the child on timeout or cancellation."""
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ProcessError(f"Unable to run {Path(cmd[0]).name}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise ProcessError(f"{Path(cmd[0]).name} timed out") from exc
    except asyncio.CancelledError:
        process.kill()
        await process.wait()
        raise

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()
        logger.warning("%s exited with %s: %s", cmd[0], process.returncode, detail[-500:])
        raise ProcessError(f"{Path(cmd[0]).name} failed")
    return stdout


def _first_video_stream(probe: dict) -> dict:
    streams = probe.get("streams") if isinstance(probe, dict) else None
    if not streams:
        raise ParseError("No streams found in media file")

    for stream in streams:
        if stream.get("codec_type") == "video":
            return stream
    if all("codec_type" not in s for s in streams):
        return streams[0]
    raise ParseError("No video stream found in media file")


class FFmpegMediaProcessor:
    def __init__(
        self,
        ffprobe_path: str = "ffprobe",
        ffmpeg_path: str = "ffmpeg",
        timeout: float | None = 300.0,
    ):
        self.ffprobe_path = ffprobe_path
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    async def probe_dimensions(self, path: Path) -> tuple[int, int]:
        stdout = await _run(
            [self.ffprobe_path, "-v", "error", "-print_format", "json", "-show_streams", str(path)],
            self.timeout,
        )
        try:
            probe = json.loads(stdout)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ParseError("Unable to parse ffprobe output") from exc

        stream = _first_video_stream(probe)
        try:
            return int(stream["width"]), int(stream["height"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError("Video stream has no dimensions") from exc

    async def inspect(self, path: Path) -> str:
        width, height = await self.probe_dimensions(path)
        aspect_ratio = classify_aspect_ratio(width, height)
        logger.info("Probed %s: %dx%d -> %s", path.name, width, height, aspect_ratio)
        return aspect_ratio

    async def normalize(self, path: Path) -> Path:
        output = path.with_name(path.name + PROCESSED_SUFFIX)
        try:
            await _run(
                [
                    self.ffmpeg_path, "-v", "error", "-y",
                    "-i", str(path),
                    "-c", "copy",
                    "-movflags", "faststart",
                    "-f", "mp4",
                    str(output),
                ],
                self.timeout,
            )
        except BaseException:
            output.unlink(missing_ok=True)
            raise
        return output

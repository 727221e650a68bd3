import asyncio
import json

import pytest

from errors import DataError, ParseError, ProcessError
from media import ffmpeg
from media.ffmpeg import FFmpegMediaProcessor


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, delay=0.0):
        self._stdout = stdout
        self._stderr = stderr
        self._delay = delay
        self.returncode = None
        self._final_code = returncode
        self.killed = False

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        self.returncode = self._final_code
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        self.returncode = -9
        return self.returncode


@pytest.fixture
def spawn(monkeypatch):
    """Replace subprocess creation; records each command line."""
    calls: list[list[str]] = []
    state = {"process": FakeProcess(), "on_spawn": None}

    async def fake_exec(*cmd, **kwargs):
        calls.append(list(cmd))
        if state["on_spawn"]:
            state["on_spawn"](list(cmd))
        return state["process"]

    monkeypatch.setattr(ffmpeg.asyncio, "create_subprocess_exec", fake_exec)
    state["calls"] = calls
    return state


def _probe(*streams):
    return json.dumps({"streams": list(streams)}).encode()


async def test_inspect_classifies_first_video_stream(spawn, tmp_path):
    spawn["process"] = FakeProcess(stdout=_probe(
        {"codec_type": "audio"},
        {"codec_type": "video", "width": 1080, "height": 1920},
    ))
    processor = FFmpegMediaProcessor()

    assert await processor.inspect(tmp_path / "clip.mp4") == "9:16"
    cmd = spawn["calls"][0]
    assert cmd[0] == "ffprobe"
    assert "-show_streams" in cmd and cmd[-1] == str(tmp_path / "clip.mp4")


async def test_inspect_untyped_streams_use_first(spawn, tmp_path):
    spawn["process"] = FakeProcess(stdout=_probe({"width": 1920, "height": 1080}))
    assert await FFmpegMediaProcessor().inspect(tmp_path / "a.mp4") == "16:9"


async def test_inspect_invalid_json(spawn, tmp_path):
    spawn["process"] = FakeProcess(stdout=b"not json")
    with pytest.raises(ParseError):
        await FFmpegMediaProcessor().inspect(tmp_path / "a.mp4")


async def test_inspect_no_video_stream(spawn, tmp_path):
    spawn["process"] = FakeProcess(stdout=_probe({"codec_type": "audio"}))
    with pytest.raises(ParseError):
        await FFmpegMediaProcessor().inspect(tmp_path / "a.mp4")


async def test_inspect_zero_height(spawn, tmp_path):
    spawn["process"] = FakeProcess(stdout=_probe({"codec_type": "video", "width": 1920, "height": 0}))
    with pytest.raises(DataError):
        await FFmpegMediaProcessor().inspect(tmp_path / "a.mp4")


async def test_inspect_nonzero_exit(spawn, tmp_path):
    spawn["process"] = FakeProcess(stderr=b"moov atom not found", returncode=1)
    with pytest.raises(ProcessError):
        await FFmpegMediaProcessor().inspect(tmp_path / "a.mp4")


async def test_missing_binary(monkeypatch, tmp_path):
    async def missing(*cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(ffmpeg.asyncio, "create_subprocess_exec", missing)
    with pytest.raises(ProcessError):
        await FFmpegMediaProcessor(ffprobe_path="/nope/ffprobe").inspect(tmp_path / "a.mp4")


async def test_timeout_kills_process(spawn, tmp_path):
    process = FakeProcess(delay=1.0)
    spawn["process"] = process
    with pytest.raises(ProcessError):
        await FFmpegMediaProcessor(timeout=0.01).inspect(tmp_path / "a.mp4")
    assert process.killed


async def test_normalize_writes_processing_file(spawn, tmp_path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"mp4")

    output = await FFmpegMediaProcessor(ffmpeg_path="/usr/bin/ffmpeg").normalize(source)

    assert output == tmp_path / "upload.mp4.processing"
    cmd = spawn["calls"][0]
    assert cmd[0] == "/usr/bin/ffmpeg"
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[cmd.index("-movflags") + 1] == "faststart"
    assert cmd[-1] == str(output)
    assert source.exists()


async def test_normalize_failure_removes_partial_output(spawn, tmp_path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"mp4")
    spawn["process"] = FakeProcess(returncode=1)
    spawn["on_spawn"] = lambda cmd: (tmp_path / "upload.mp4.processing").write_bytes(b"partial")

    with pytest.raises(ProcessError):
        await FFmpegMediaProcessor().normalize(source)
    assert not (tmp_path / "upload.mp4.processing").exists()
    assert source.exists()

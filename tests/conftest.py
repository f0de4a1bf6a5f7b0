"""Shared fixtures for the Batch Transcoder tests."""

import io
import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from loguru import logger
from rich.console import Console

from batch_transcoder.domain.models import EncodeProfile
from batch_transcoder.ui import BT_THEME


def _completed(returncode=0, stdout="", stderr=""):
    return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)


class FakeEncoder:
    """Stands in for the encoder: records argument vectors and writes the -o file."""

    def __init__(self, returncodes=None, write_output=True, on_call=None):
        self.returncodes = list(returncodes or [])
        self.write_output = write_output
        self.on_call = on_call
        self.calls = []

    def __call__(self, cmd):
        self.calls.append(cmd)
        if self.on_call is not None:
            self.on_call(len(self.calls))
        if self.write_output:
            output = Path(cmd[cmd.index("-o") + 1])
            output.write_bytes(b"encoded")
        returncode = self.returncodes.pop(0) if self.returncodes else 0
        return _completed(returncode=returncode, stderr="x264 [error]: broken" if returncode else "")

    def outputs(self):
        return [Path(c[c.index("-o") + 1]) for c in self.calls]


@pytest.fixture
def fake_encoder():
    return FakeEncoder


@pytest.fixture
def completed():
    """Factory for objects shaped like `subprocess.CompletedProcess`."""
    return _completed


@pytest.fixture
def log_messages():
    """Collects loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=200, theme=BT_THEME, force_terminal=False)


@pytest.fixture
def preset_file(tmp_path):
    path = tmp_path / "presets" / "presets.json"
    path.parent.mkdir()
    path.write_text(json.dumps({
        "PresetList": [
            {"PresetName": "H.265 MKV 1080p30", "FileFormat": "av_mkv"},
            {"PresetName": "Fast MP4 720p", "FileFormat": "av_mp4"},
        ]
    }), encoding="utf-8")
    return path


@pytest.fixture
def mkv_profile(tmp_path):
    return EncodeProfile("H.265 MKV 1080p30", ".mkv", tmp_path / "presets.json")


def touch(path: Path, data: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def make_file():
    return touch

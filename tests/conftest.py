from pathlib import Path
from typing import Any

import numpy as np
import pytest

from codeclab.error_handling import EngineError, ProcessingError
from codeclab.metrics import ArtifactFlag, MetricResult
from codeclab.raw_video import i420_plane_shapes, write_raw_clip
from codeclab.tool_interfaces import CodecEngine


# ---------------------------------------------------------------------------
# Fake codec
# ---------------------------------------------------------------------------


class FakeCodec(CodecEngine):
    """In-memory codec double that writes placeholder files.

    Metric values are looked up by ``"WxH"`` geometry, falling back to
    *default*.  ``fail_on_encode`` / ``fail_on_crop`` are 1-based call counts.
    """

    NAME = "fake"

    def __init__(
        self,
        values: dict[str, float] | None = None,
        default: float = 40.0,
        flagged: set[str] | None = None,
        fail_on_encode: int | None = None,
        fail_on_crop: int | None = None,
    ) -> None:
        self.values = values or {}
        self.default = default
        self.flagged = flagged or set()
        self.fail_on_encode = fail_on_encode
        self.fail_on_crop = fail_on_crop
        self.calls: list[tuple[str, str]] = []

    @classmethod
    def available(cls) -> bool:
        return True

    @classmethod
    def version(cls) -> str:
        return "fake-1.0"

    def _count(self, step: str) -> int:
        return sum(1 for name, _ in self.calls if name == step)

    def crop(self, raw_in, raw_out, *, x, y, width, height, source_width, source_height) -> int:
        self.calls.append(("crop", f"{width}x{height}"))
        if self._count("crop") == self.fail_on_crop:
            raise ProcessingError(f"cannot crop {raw_in.name}")
        raw_out.parent.mkdir(parents=True, exist_ok=True)
        raw_out.write_bytes(b"raw")
        return 1

    def encode(self, raw_in, enc_out, *, width, height, speed, bitrate, settings) -> dict[str, Any]:
        self.calls.append(("encode", f"{width}x{height}"))
        if self._count("encode") == self.fail_on_encode:
            raise EngineError(f"encoder failed on {raw_in.name}")
        enc_out.write_bytes(b"enc")
        return {"render_ms": 1, "engine": self.NAME, "command": "fake", "kilobytes": 0.0}

    def compute_metric(self, raw, encoded, *, width, height, artifact_detection=False) -> MetricResult:
        geometry = f"{width}x{height}"
        self.calls.append(("measure", geometry))
        flag = ArtifactFlag.NONE
        if artifact_detection and geometry in self.flagged:
            flag = ArtifactFlag.POSSIBLE_ARTIFACT
        return MetricResult(value=self.values.get(geometry, self.default), artifact_flag=flag)


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


# ---------------------------------------------------------------------------
# Raw clip helpers
# ---------------------------------------------------------------------------


def make_frames(width: int, height: int, count: int = 2, seed: int = 0) -> list:
    """Deterministic I420 frames with distinct content per frame."""
    rng = np.random.default_rng(seed)
    frames = []
    for _ in range(count):
        frames.append(
            tuple(
                rng.integers(0, 256, size=shape, dtype=np.uint8)
                for shape in i420_plane_shapes(width, height)
            )
        )
    return frames


def write_clip(path: Path, width: int, height: int, count: int = 2, seed: int = 0) -> Path:
    write_raw_clip(path, iter(make_frames(width, height, count, seed)), width, height)
    return path


@pytest.fixture
def yuv_clip(tmp_path) -> Path:
    """A 32x32, 2-frame headerless I420 clip."""
    return write_clip(tmp_path / "clip.yuv", 32, 32)


@pytest.fixture
def y4m_clip(tmp_path) -> Path:
    """A 32x32, 2-frame YUV4MPEG2 clip."""
    return write_clip(tmp_path / "clip.y4m", 32, 32)


@pytest.fixture
def frame_factory():
    """Return :func:`make_frames` for tests that build frames directly."""
    return make_frames


@pytest.fixture
def clip_factory():
    """Return :func:`write_clip` for tests that need custom clips."""
    return write_clip


@pytest.fixture
def codec_factory():
    """Return the :class:`FakeCodec` class for tests that configure failures or values."""
    return FakeCodec

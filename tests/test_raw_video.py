"""Tests for codeclab.raw_video."""

import numpy as np
import pytest

from codeclab.error_handling import ProcessingError
from codeclab.raw_video import (
    crop_frame,
    crop_raw_clip,
    i420_frame_size,
    i420_plane_shapes,
    iter_frames,
    probe_raw_clip,
)


@pytest.mark.fast
class TestPlaneGeometry:
    """I420 plane layout."""

    def test_even_dimensions(self):
        assert i420_plane_shapes(32, 16) == [(16, 32), (8, 16), (8, 16)]
        assert i420_frame_size(32, 16) == 32 * 16 * 3 // 2

    def test_odd_dimensions_round_chroma_up(self):
        assert i420_plane_shapes(31, 15) == [(15, 31), (8, 16), (8, 16)]
        assert i420_frame_size(31, 15) == 31 * 15 + 2 * 8 * 16


@pytest.mark.fast
class TestProbe:
    """Describing raw clips on disk."""

    def test_yuv_requires_geometry(self, yuv_clip):
        with pytest.raises(ProcessingError, match="Width and height are required"):
            probe_raw_clip(yuv_clip)

    def test_yuv_with_geometry(self, yuv_clip):
        info = probe_raw_clip(yuv_clip, 32, 32)
        assert info.container == "yuv"
        assert (info.width, info.height) == (32, 32)
        assert info.header_length == 0

    def test_y4m_reads_header(self, y4m_clip):
        info = probe_raw_clip(y4m_clip)
        assert info.container == "y4m"
        assert (info.width, info.height) == (32, 32)
        assert info.frame_rate == (30, 1)
        assert info.header_length > 0

    def test_y4m_header_geometry_wins(self, y4m_clip):
        info = probe_raw_clip(y4m_clip, 640, 480)
        assert (info.width, info.height) == (32, 32)

    def test_missing_clip(self, tmp_path):
        with pytest.raises(ProcessingError, match="not found"):
            probe_raw_clip(tmp_path / "missing.yuv", 16, 16)

    def test_unsupported_container(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00")
        with pytest.raises(ProcessingError, match="Unsupported raw clip container"):
            probe_raw_clip(path, 16, 16)

    def test_y4m_non_420_rejected(self, tmp_path):
        path = tmp_path / "clip.y4m"
        path.write_bytes(b"YUV4MPEG2 W16 H16 F30:1 C444\n")
        with pytest.raises(ProcessingError, match="colorspace"):
            probe_raw_clip(path)


@pytest.mark.fast
class TestFrames:
    """Reading and cropping frames."""

    @pytest.mark.parametrize("suffix", [".yuv", ".y4m"])
    def test_frames_round_trip(self, tmp_path, suffix, frame_factory, clip_factory):
        frames = frame_factory(18, 10, count=3, seed=7)
        path = clip_factory(tmp_path / f"clip{suffix}", 18, 10, count=3, seed=7)

        read = list(iter_frames(probe_raw_clip(path, 18, 10)))
        assert len(read) == 3
        for expected, actual in zip(frames, read):
            for exp_plane, act_plane in zip(expected, actual):
                np.testing.assert_array_equal(exp_plane, act_plane)

    def test_max_frames(self, yuv_clip):
        assert len(list(iter_frames(probe_raw_clip(yuv_clip, 32, 32), max_frames=1))) == 1

    def test_truncated_frame(self, tmp_path):
        path = tmp_path / "short.yuv"
        path.write_bytes(b"\x00" * 100)
        with pytest.raises(ProcessingError, match="Truncated"):
            list(iter_frames(probe_raw_clip(path, 16, 16)))

    def test_crop_frame_to_odd_size(self, frame_factory):
        frame = frame_factory(32, 32, count=1)[0]
        y, u, v = crop_frame(frame, 0, 0, 31, 29)
        assert y.shape == (29, 31)
        assert u.shape == v.shape == (15, 16)
        np.testing.assert_array_equal(y, frame[0][:29, :31])


@pytest.mark.fast
class TestCropRawClip:
    """Cropping whole clips."""

    @pytest.mark.parametrize("suffix", [".yuv", ".y4m"])
    def test_crop_writes_all_frames(self, tmp_path, suffix, clip_factory):
        source_path = clip_factory(tmp_path / f"src{suffix}", 32, 32, count=2)
        source = probe_raw_clip(source_path, 32, 32)
        out = tmp_path / f"out_31x30_raw{suffix}"

        written = crop_raw_clip(source, out, 0, 0, 31, 30)

        assert written == 2
        cropped = probe_raw_clip(out, 31, 30)
        assert (cropped.width, cropped.height) == (31, 30)
        frames = list(iter_frames(cropped))
        assert len(frames) == 2
        assert frames[0][0].shape == (30, 31)

    def test_crop_outside_source(self, yuv_clip, tmp_path):
        source = probe_raw_clip(yuv_clip, 32, 32)
        with pytest.raises(ProcessingError, match="outside"):
            crop_raw_clip(source, tmp_path / "out.yuv", 0, 0, 33, 32)

    def test_odd_origin_rejected(self, yuv_clip, tmp_path):
        source = probe_raw_clip(yuv_clip, 32, 32)
        with pytest.raises(ProcessingError, match="must be even"):
            crop_raw_clip(source, tmp_path / "out.yuv", 1, 0, 16, 16)

    def test_empty_source(self, tmp_path):
        path = tmp_path / "empty.yuv"
        path.write_bytes(b"")
        source = probe_raw_clip(path, 16, 16)
        with pytest.raises(ProcessingError, match="no frames"):
            crop_raw_clip(source, tmp_path / "out.yuv", 0, 0, 16, 16)

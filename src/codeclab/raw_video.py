"""Raw (uncompressed) clip I/O for planar I420 video.

Two containers are supported:

* ``.yuv`` – headerless I420 frames; geometry must be supplied by the caller.
* ``.y4m`` – YUV4MPEG2 stream; geometry and frame rate come from the header.

Chroma planes use ``ceil(w / 2) x ceil(h / 2)`` samples, which is how FFmpeg
lays out ``yuv420p`` rawvideo for odd dimensions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import numpy as np

from .error_handling import ProcessingError

logger = logging.getLogger(__name__)

__all__ = [
    "RawClipInfo",
    "i420_plane_shapes",
    "i420_frame_size",
    "probe_raw_clip",
    "iter_frames",
    "crop_frame",
    "crop_raw_clip",
    "write_raw_clip",
]

Y4M_MAGIC = b"YUV4MPEG2"
Y4M_FRAME = b"FRAME"
SUPPORTED_Y4M_COLORSPACES = {"420", "420jpeg", "420paldv", "420mpeg2"}

Planes = tuple[np.ndarray, np.ndarray, np.ndarray]


@dataclass(frozen=True)
class RawClipInfo:
    """Geometry and container information for a raw clip."""

    path: Path
    container: str  # "yuv" or "y4m"
    width: int
    height: int
    frame_rate: tuple[int, int] = (30, 1)
    header_length: int = 0  # bytes before the first frame
    extra_params: tuple[str, ...] = ()  # y4m header tokens other than W/H/F


def i420_plane_shapes(width: int, height: int) -> list[tuple[int, int]]:
    """Return ``(rows, cols)`` of the Y, U and V planes."""
    chroma = ((height + 1) // 2, (width + 1) // 2)
    return [(height, width), chroma, chroma]


def i420_frame_size(width: int, height: int) -> int:
    return sum(rows * cols for rows, cols in i420_plane_shapes(width, height))


def _container_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".y4m":
        return "y4m"
    if suffix in (".yuv", ".i420", ".raw"):
        return "yuv"
    raise ProcessingError(f"Unsupported raw clip container: {path.suffix or path.name}")


def _read_y4m_header(handle: BinaryIO, path: Path) -> tuple[int, int, tuple[int, int], tuple[str, ...], int]:
    line = handle.readline()
    if not line.startswith(Y4M_MAGIC) or not line.endswith(b"\n"):
        raise ProcessingError(f"Not a YUV4MPEG2 stream: {path}")

    width = height = None
    frame_rate = (30, 1)
    extra: list[str] = []
    for token in line[len(Y4M_MAGIC):].decode("ascii").split():
        tag, value = token[0], token[1:]
        if tag == "W":
            width = int(value)
        elif tag == "H":
            height = int(value)
        elif tag == "F":
            num, _, den = value.partition(":")
            frame_rate = (int(num), int(den or 1))
        else:
            if tag == "C" and value not in SUPPORTED_Y4M_COLORSPACES:
                raise ProcessingError(f"Unsupported y4m colorspace C{value} in {path}")
            extra.append(token)

    if not width or not height:
        raise ProcessingError(f"YUV4MPEG2 header without geometry: {path}")
    return width, height, frame_rate, tuple(extra), len(line)


def probe_raw_clip(
    path: Path,
    width: int | None = None,
    height: int | None = None,
) -> RawClipInfo:
    """Describe a raw clip.

    Args:
        path: Clip path (``.yuv`` or ``.y4m``)
        width: Frame width, required for headerless ``.yuv`` clips
        height: Frame height, required for headerless ``.yuv`` clips

    Raises:
        ProcessingError: If the clip is missing, malformed or its geometry is unknown
    """
    if not path.exists():
        raise ProcessingError(f"Raw clip not found: {path}")

    container = _container_for(path)
    if container == "y4m":
        with open(path, "rb") as f:
            clip_w, clip_h, frame_rate, extra, header_len = _read_y4m_header(f, path)
        return RawClipInfo(
            path=path,
            container="y4m",
            width=clip_w,
            height=clip_h,
            frame_rate=frame_rate,
            header_length=header_len,
            extra_params=extra,
        )

    if not width or not height:
        raise ProcessingError(f"Width and height are required for headerless clip {path}")
    return RawClipInfo(path=path, container="yuv", width=width, height=height)


def _read_planes(handle: BinaryIO, width: int, height: int) -> Planes | None:
    planes = []
    for rows, cols in i420_plane_shapes(width, height):
        data = handle.read(rows * cols)
        if not data:
            return None
        if len(data) != rows * cols:
            raise ProcessingError("Truncated frame in raw clip")
        planes.append(np.frombuffer(data, dtype=np.uint8).reshape(rows, cols))
    return planes[0], planes[1], planes[2]


def iter_frames(info: RawClipInfo, max_frames: int | None = None) -> Iterator[Planes]:
    """Yield ``(Y, U, V)`` planes for each frame of the clip."""
    count = 0
    with open(info.path, "rb") as f:
        f.seek(info.header_length)
        while max_frames is None or count < max_frames:
            if info.container == "y4m":
                marker = f.readline()
                if not marker:
                    return
                if not marker.startswith(Y4M_FRAME):
                    raise ProcessingError(f"Missing FRAME marker in {info.path} at frame {count}")
            planes = _read_planes(f, info.width, info.height)
            if planes is None:
                return
            yield planes
            count += 1


def crop_frame(planes: Planes, x: int, y: int, width: int, height: int) -> Planes:
    """Crop one I420 frame; *x* and *y* must be even so chroma stays aligned."""
    luma, cb, cr = planes
    cx, cy = x // 2, y // 2
    c_rows, c_cols = i420_plane_shapes(width, height)[1]
    return (
        luma[y : y + height, x : x + width],
        cb[cy : cy + c_rows, cx : cx + c_cols],
        cr[cy : cy + c_rows, cx : cx + c_cols],
    )


def write_raw_clip(
    output_path: Path,
    frames: Iterator[Planes],
    width: int,
    height: int,
    frame_rate: tuple[int, int] = (30, 1),
    extra_params: tuple[str, ...] = (),
) -> int:
    """Write frames to *output_path*, picking the container from its suffix.

    Returns:
        Number of frames written
    """
    container = _container_for(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    with open(output_path, "wb") as f:
        if container == "y4m":
            tokens = [f"W{width}", f"H{height}", f"F{frame_rate[0]}:{frame_rate[1]}", *extra_params]
            f.write(Y4M_MAGIC + b" " + " ".join(tokens).encode("ascii") + b"\n")
        for planes in frames:
            if container == "y4m":
                f.write(Y4M_FRAME + b"\n")
            for plane in planes:
                f.write(np.ascontiguousarray(plane).tobytes())
            written += 1
    return written


def crop_raw_clip(
    source: RawClipInfo,
    output_path: Path,
    x: int,
    y: int,
    width: int,
    height: int,
    max_frames: int | None = None,
) -> int:
    """Crop every frame of *source* to ``width x height`` at ``(x, y)``.

    Returns:
        Number of frames written

    Raises:
        ProcessingError: If the crop window falls outside the source frame or
            the source holds no frames.
    """
    if x % 2 or y % 2:
        raise ProcessingError(f"Crop origin ({x}, {y}) must be even for I420 clips")
    if width <= 0 or height <= 0 or x + width > source.width or y + height > source.height:
        raise ProcessingError(
            f"Crop window {width}x{height}+{x}+{y} outside {source.width}x{source.height} source"
        )

    frames = (crop_frame(p, x, y, width, height) for p in iter_frames(source, max_frames))
    written = write_raw_clip(
        output_path,
        frames,
        width,
        height,
        frame_rate=source.frame_rate,
        extra_params=source.extra_params,
    )
    if written == 0:
        raise ProcessingError(f"Raw clip {source.path} contains no frames")

    logger.debug(f"Cropped {written} frames of {source.path.name} to {width}x{height}")
    return written

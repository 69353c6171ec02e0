"""Thin wrappers around external codec binaries.

Each wrapper builds a command line, runs it through
:func:`codeclab.external_engines.common.run_command` and returns the
CodecLab metadata dict (``render_ms``, ``engine``, ``command``, ``kilobytes``).
"""

from .ffmpeg import decode_to_raw as ffmpeg_decode_to_raw
from .ffmpeg import vpx_encode as ffmpeg_vpx_encode

__all__ = [
    "ffmpeg_vpx_encode",
    "ffmpeg_decode_to_raw",
]

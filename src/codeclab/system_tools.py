"""Discovery of the FFmpeg binaries the codec engine shells out to.

A session only finds out that FFmpeg is missing when the first variant
fails to encode; ``codeclab tools`` and :func:`verify_required_tools` let
users check an environment before starting a long sweep.
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from shutil import which


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """An external binary as found (or not) on this machine."""

    name: str
    available: bool
    version: str | None = None

    def require(self) -> None:
        """Raise *RuntimeError* when the binary is missing."""
        if not self.available:
            raise RuntimeError(
                f"Required tool '{self.name}' not found in PATH.\n"
                "📖 Install FFmpeg with libvpx support or set CODECLAB_FFMPEG_PATH."
            )


@dataclass(frozen=True)
class _ToolSpec:
    command: str  # fallback looked up on PATH
    config_attr: str  # EngineConfig attribute holding an explicit path
    version_regex: str


_TOOLS: dict[str, _ToolSpec] = {
    "ffmpeg": _ToolSpec("ffmpeg", "FFMPEG_PATH", r"ffmpeg version (\S+)"),
    "ffprobe": _ToolSpec("ffprobe", "FFPROBE_PATH", r"ffprobe version (\S+)"),
}


def _which(cmd: str) -> str | None:
    return which(cmd)


def _run_version_cmd(cmd: list[str], regex: str) -> str | None:
    """Run ``<tool> -version`` and pull the version out of stdout or stderr."""
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError):
        return None

    for stream in (completed.stdout, completed.stderr):
        match = re.search(regex, stream or "")
        if match:
            return match.group(1)
    return None


def discover_tool(tool_key: str, engine_config=None) -> ToolInfo:
    """Locate *tool_key* (``ffmpeg`` or ``ffprobe``).

    The path configured in *engine_config* wins when it resolves; otherwise
    the plain command name is looked up on ``PATH``.

    Raises:
        ValueError: For an unknown *tool_key*
    """
    spec = _TOOLS.get(tool_key)
    if spec is None:
        raise ValueError(f"Unknown tool: {tool_key}")

    if engine_config is None:
        from .config import DEFAULT_ENGINE_CONFIG

        engine_config = DEFAULT_ENGINE_CONFIG

    configured = getattr(engine_config, spec.config_attr, None)
    for candidate in (configured, spec.command):
        if candidate and _which(candidate):
            return ToolInfo(
                name=candidate,
                available=True,
                version=_run_version_cmd([candidate, "-version"], spec.version_regex),
            )
    return ToolInfo(name=spec.command, available=False)


def ffmpeg_has_encoder(encoder: str, engine_config=None) -> bool:
    """Return ``True`` if the discovered FFmpeg build lists *encoder* (e.g. ``libvpx``)."""
    info = discover_tool("ffmpeg", engine_config)
    if not info.available:
        return False
    try:
        completed = subprocess.run(
            [info.name, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return re.search(rf"\s{re.escape(encoder)}\s", completed.stdout) is not None


def verify_required_tools(engine_config=None) -> dict[str, ToolInfo]:
    """Discover every tool and raise *RuntimeError* on the first missing one."""
    found = get_available_tools(engine_config)
    for info in found.values():
        info.require()
    return found


def get_available_tools(engine_config=None) -> dict[str, ToolInfo]:
    return {key: discover_tool(key, engine_config) for key in _TOOLS}

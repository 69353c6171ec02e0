"""CodecLab exception hierarchy and step-level error wrapping.

Every failure a session can meet is a :class:`CodecLabError`; the session
controller maps each subclass to a verdict.  Code that calls into numpy,
the filesystem or a subprocess wraps the call in :func:`error_context` so a
foreign exception surfaces as the error type of the step that failed.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Iterator
from contextlib import contextmanager

_module_logger = logging.getLogger(__name__)


class CodecLabError(Exception):
    """Base exception class for all CodecLab errors.

    Args:
        message: Human-readable description, also written to the session report
        cause: Underlying exception, if any
        context: Extra key/value details for the log line
    """

    def __init__(self, message: str, cause: Exception | None = None, context: dict | None = None):
        super().__init__(message)
        self.cause = cause
        self.context = dict(context or {})

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text} (caused by: {self.cause})" if self.cause else text


class ValidationError(CodecLabError):
    """Invalid user input."""


class GeometryError(ValidationError):
    """The base clip geometry cannot produce a valid sweep."""


class ConfigurationError(CodecLabError):
    """Encoder settings are missing or invalid."""


class ProcessingError(CodecLabError):
    """A raw clip could not be read, cropped or written."""


class EngineError(CodecLabError):
    """The external codec failed to encode or decode."""


class MetricsError(CodecLabError):
    """A metric could not be computed, persisted or recovered."""


class ClassificationError(CodecLabError):
    """Classification was attempted on an incomplete sweep."""


class SessionMismatchError(CodecLabError):
    """An existing test directory belongs to a different test."""


def _format_context(context: dict) -> str:
    return ", ".join(f"{key}={value}" for key, value in context.items())


@contextmanager
def error_context(
    operation: str,
    error_type: type[CodecLabError] = ProcessingError,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> Iterator[None]:
    """Re-raise foreign exceptions from the block as *error_type*.

    Usage:
        with error_context("crop raw clip", ProcessingError, context={"input": "a.yuv"}):
            crop_raw_clip(...)

    CodecLab errors raised inside the block propagate unchanged.
    """
    log = logger or _module_logger
    try:
        yield
    except CodecLabError:
        raise
    except Exception as e:
        details = {**(context or {}), "operation": operation, "original_error_type": type(e).__name__}
        log.error(f"🚨 {operation.capitalize()} failed: {e} ({_format_context(details)})")
        log.debug(f"Traceback for {operation}: {traceback.format_exc()}")
        raise error_type(f"Failed to {operation}: {e}", cause=e, context=details) from e


def log_warning_with_context(
    message: str, context: dict | None = None, logger: logging.Logger | None = None
) -> None:
    """Log a warning followed by its context details."""
    suffix = f" ({_format_context(context)})" if context else ""
    (logger or _module_logger).warning(f"⚠️  {message}{suffix}")

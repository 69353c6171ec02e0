"""CodecLab - frame-size regression harness for video codecs."""

__version__: str = "0.1.0"
__author__: str = "CodecLab Team"

from .classifier import ClassificationResult, ThresholdClassifier, Verdict
from .pipeline import SessionMode
from .session import TestSession
from .sweep import SweepAxis, Variant, generate_sweep

__all__ = [
    "ClassificationResult",
    "SessionMode",
    "SweepAxis",
    "TestSession",
    "ThresholdClassifier",
    "Variant",
    "Verdict",
    "generate_sweep",
]

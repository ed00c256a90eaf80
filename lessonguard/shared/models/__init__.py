"""Shared domain models for the lessonguard engine."""
from .severity import (
    Behavior,
    ComplianceLevel,
    DetectionResult,
    Severity,
    Topic,
)

__all__ = [
    "Behavior",
    "ComplianceLevel",
    "DetectionResult",
    "Severity",
    "Topic",
]

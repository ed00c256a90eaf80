"""Severity, topic and behavior domain models.

This file defines the core enums and the detection record shared by every
analysis stage. Severity ordering is load-bearing: aggregation always keeps
the maximum severity observed.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union


class _OrderedEnum(Enum):
    """Enum whose members compare by declaration order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def coerce(cls, value: Union[str, "_OrderedEnum"]):
        """Accept a member or its string value.

        Raises:
            ValueError: If the value names no member
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Enum):
            value = value.value
        return cls(value)


class Severity(_OrderedEnum):
    """Severity of a detected behavior, also used for legal risk levels."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComplianceLevel(_OrderedEnum):
    """Lei 13.185 compliance classification, ordered from best to worst."""
    COMPLIANT = "compliant"
    PARTIAL = "partial"
    NON_COMPLIANT = "non_compliant"
    VIOLATION = "violation"


class Topic(Enum):
    """Discourse topics a lesson may be about."""
    BULLYING = "bullying"
    CYBERBULLYING = "cyberbullying"
    RESPECT = "respect"
    INCLUSION = "inclusion"
    CITIZENSHIP = "citizenship"
    SARCASM = "sarcasm"
    PUBLIC_SHAME = "public_shame"
    EXCLUSION = "exclusion"
    AGGRESSION = "aggression"
    OTHER = "other"


class Behavior(Enum):
    """Problematic behavior families, in report order."""
    SARCASM = "sarcasm"
    DISENGAGEMENT = "disengagement"
    PUBLIC_SHAME = "public_shame"
    EXCLUSION = "exclusion"
    AGGRESSION = "aggression"


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of one behavior detector over one transcript.

    Immutable - results cannot be modified after detection.
    """
    detected: bool = False
    severity: Severity = Severity.NONE
    score_impact: int = 0
    evidence: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.score_impact > 0:
            raise ValueError(f"Score impact must be <= 0, got {self.score_impact}")

    @classmethod
    def clean(cls) -> "DetectionResult":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected": self.detected,
            "severity": self.severity.value,
            "score_impact": self.score_impact,
            "evidence": list(self.evidence),
        }

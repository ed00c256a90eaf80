"""Discourse service configuration and scoring constants.

Source: Lei 13.185/2015 (Programa de Combate à Intimidação Sistemática)
https://www.planalto.gov.br/ccivil_03/_ato2015-2018/2015/lei/l13185.htm

Pattern tables live next to the detector that scans them; this module only
holds the numbers that turn matches into scores.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from lessonguard.shared.models import Behavior, Severity


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for evidence extraction and audit tagging."""

    # Characters of context kept around a match when cutting evidence
    evidence_leading_chars: int = 20
    evidence_trailing_chars: int = 20

    # Version tracking for audit trail
    pattern_version: str = "2026.10.18"


# Points removed per matched pattern, by family and severity
SEVERITY_IMPACTS: Mapping[Behavior, Mapping[Severity, int]] = MappingProxyType({
    Behavior.SARCASM: MappingProxyType({
        Severity.CRITICAL: -15,
        Severity.HIGH: -10,
        Severity.MEDIUM: -5,
        Severity.LOW: -2,
    }),
    Behavior.DISENGAGEMENT: MappingProxyType({
        Severity.CRITICAL: -12,
        Severity.HIGH: -8,
        Severity.MEDIUM: -4,
        Severity.LOW: -2,
    }),
    Behavior.PUBLIC_SHAME: MappingProxyType({
        Severity.CRITICAL: -15,
        Severity.HIGH: -10,
        Severity.MEDIUM: -5,
        Severity.LOW: -2,
    }),
    Behavior.EXCLUSION: MappingProxyType({
        Severity.CRITICAL: -15,
        Severity.HIGH: -10,
        Severity.MEDIUM: -5,
    }),
    Behavior.AGGRESSION: MappingProxyType({
        Severity.CRITICAL: -20,
        Severity.HIGH: -12,
        Severity.MEDIUM: -6,
    }),
})

# Lowest total impact a single family can reach
IMPACT_FLOORS: Mapping[Behavior, int] = MappingProxyType({
    Behavior.SARCASM: -30,
    Behavior.DISENGAGEMENT: -25,
    Behavior.PUBLIC_SHAME: -30,
    Behavior.EXCLUSION: -25,
    Behavior.AGGRESSION: -35,
})


@dataclass(frozen=True)
class ComplianceScoring:
    """Lei 13.185 section scoring and the combined-score blend."""

    base_score: int = 80
    mention_bonus: int = 5
    mention_bonus_max: int = 20
    topic_bonus: int = 5
    topic_bonus_max: int = 10
    preventive_bonus: int = 15
    practiced_penalty: int = 15
    violation_penalty: int = 10
    grave_violation_penalty: int = 30

    # score -> compliance level cut-offs
    compliant_min: int = 80
    partial_min: int = 60
    non_compliant_min: int = 40

    # combined_score weights, must sum to 1.0
    weights: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({
            "lei_13185": 0.5,
            "hypocrisy": 0.3,
            "safety": 0.2,
        })
    )

    def __post_init__(self):
        total = sum(self.weights.values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Combined score weights must sum to 1.0, got {total}")

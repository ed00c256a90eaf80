"""Contradictions between what a lesson teaches and how it is taught.

Critical for identifying hypocrisy scenarios like:
- Teaching about bullying while using sarcasm
- Teaching about respect while publicly shaming students
- Teaching about inclusion while excluding a student

A contradiction is a (topic, behavior) pair where the topic is discussed and
the behavior is practiced in the same transcript. Each one lowers the
hypocrisy score by the behavior's impact, amplified by the pair multiplier.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from lessonguard.shared.models import Behavior, DetectionResult, Severity, Topic
from . import behavior_detector
from .behavior_detector import BehaviorReport
from .text_normalizer import NormalizedText, normalize
from .topic_detector import (
    contradiction_multiplier,
    describe_contradiction,
    detect_topics,
    is_recognized_contradiction,
)

logger = logging.getLogger(__name__)

BULLYING_TOPICS: FrozenSet[Topic] = frozenset({Topic.BULLYING, Topic.CYBERBULLYING})

BULLYING_BEHAVIORS: Tuple[Behavior, ...] = (
    Behavior.SARCASM,
    Behavior.PUBLIC_SHAME,
    Behavior.EXCLUSION,
    Behavior.AGGRESSION,
)

ALIGNED_RECOMMENDATION = (
    "Nenhuma contradição pedagógica detectada. Aula alinhada com o tema proposto."
)

HYPOCRISY_RECOMMENDATION = (
    "ALERTA CRÍTICO: Detectada contradição grave entre tema e prática. "
    "A aula aborda bullying/respeito, mas comportamentos inadequados foram identificados. "
    "Esta contradição pode anular o impacto pedagógico e até reforçar comportamentos negativos. "
    "AÇÃO IMEDIATA: Revisar postura e linguagem antes de abordar este tema novamente."
)


@dataclass(frozen=True)
class Contradiction:
    """A topic taught while a conflicting behavior is practiced."""
    topic: Topic
    behavior: Behavior
    behavior_severity: Severity
    multiplier: float
    severity: Severity
    score_penalty: float
    description: str = ""
    evidence: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic.value,
            "behavior": self.behavior.value,
            "behavior_severity": self.behavior_severity.value,
            "multiplier": self.multiplier,
            "severity": self.severity.value,
            "score_penalty": self.score_penalty,
            "description": self.description,
            "evidence": list(self.evidence),
        }


@dataclass(frozen=True)
class ContextReport:
    """Topic/behavior consistency of one transcript."""
    detected_topics: FrozenSet[Topic]
    contradictions: Tuple[Contradiction, ...]
    hypocrisy_score: int
    teaching_about_bullying: bool
    practicing_bullying: bool
    behavior_safety_score: int
    recommendation: str
    behavior: BehaviorReport

    def __post_init__(self):
        if not 0 <= self.hypocrisy_score <= 100:
            raise ValueError(f"Hypocrisy score must be 0-100, got {self.hypocrisy_score}")

    @property
    def has_critical_contradiction(self) -> bool:
        return any(c.severity == Severity.CRITICAL for c in self.contradictions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected_topics": [t.value for t in Topic if t in self.detected_topics],
            "contradictions": [c.to_dict() for c in self.contradictions],
            "hypocrisy_score": self.hypocrisy_score,
            "teaching_about_bullying": self.teaching_about_bullying,
            "practicing_bullying": self.practicing_bullying,
            "behavior_safety_score": self.behavior_safety_score,
            "recommendation": self.recommendation,
        }


def classify_contradiction(multiplier: float, behavior_severity: Severity) -> Severity:
    """Severity of a contradiction itself.

    A critical behavior always yields a critical contradiction.
    """
    if behavior_severity == Severity.CRITICAL:
        return Severity.CRITICAL
    if multiplier >= 2.0 and behavior_severity == Severity.HIGH:
        return Severity.CRITICAL
    if multiplier > 1.0 or behavior_severity == Severity.HIGH:
        return Severity.HIGH
    return Severity.MEDIUM


def find_contradictions(
    topics: FrozenSet[Topic],
    behavior: BehaviorReport,
) -> List[Contradiction]:
    """Pair every detected topic with every practiced behavior that conflicts with it.

    Returns:
        Contradictions sorted by penalty, largest first
    """
    contradictions = []
    for topic in Topic:
        if topic not in topics:
            continue
        for family in behavior.detected_behaviors():
            detection: DetectionResult = getattr(behavior, family.value)
            multiplier = contradiction_multiplier(topic, family)
            if multiplier <= 1.0 and not is_recognized_contradiction(topic, family):
                continue

            contradictions.append(Contradiction(
                topic=topic,
                behavior=family,
                behavior_severity=detection.severity,
                multiplier=multiplier,
                severity=classify_contradiction(multiplier, detection.severity),
                score_penalty=abs(detection.score_impact) * multiplier,
                description=describe_contradiction(topic, family),
                evidence=detection.evidence[:2],
            ))

    contradictions.sort(key=lambda c: c.score_penalty, reverse=True)
    return contradictions


def calculate_hypocrisy_score(contradictions: List[Contradiction]) -> int:
    """100 minus every contradiction's amplified penalty, clamped to 0-100.

    Penalties are summed unrounded; only the total is rounded.
    """
    total_penalty = int(round(sum(c.score_penalty for c in contradictions)))
    return max(0, min(100, 100 - total_penalty))


def build_recommendation(
    contradictions: List[Contradiction],
    teaching_about_bullying: bool,
    practicing_bullying: bool,
) -> str:
    if not contradictions:
        return ALIGNED_RECOMMENDATION

    if teaching_about_bullying and practicing_bullying:
        return HYPOCRISY_RECOMMENDATION

    critical = sum(1 for c in contradictions if c.severity == Severity.CRITICAL)
    high = sum(1 for c in contradictions if c.severity == Severity.HIGH)

    if critical >= 2:
        return (
            "ALERTA: Múltiplas contradições críticas detectadas. "
            "Necessária revisão urgente da abordagem pedagógica."
        )
    if critical == 1:
        return "ALERTA: Contradição crítica detectada. Alinhar comportamento com o tema ensinado."
    if high >= 2:
        return (
            "Mais de uma contradição relevante detectada. "
            "Revisar comunicação e postura durante a aula."
        )
    return (
        "Foi detectada contradição entre tema e prática. "
        "Considerar ajustes na abordagem para maior coerência."
    )


def analyze(text: Union[Optional[str], NormalizedText]) -> ContextReport:
    """Compare the lesson's topics with the behaviors practiced during it.

    Args:
        text: Raw or already normalized transcript; None counts as empty

    Returns:
        ContextReport including the BehaviorReport it was derived from

    Logs:
        - CONTRADICTION_DETECTED: When at least one contradiction is found
        - CONTEXT_ANALYSIS_COMPLETED: Always
    """
    normalized = normalize(text)

    topics = detect_topics(normalized)
    behavior = behavior_detector.analyze(normalized)

    teaching_about_bullying = bool(topics & BULLYING_TOPICS)
    practicing_bullying = any(getattr(behavior, b.value).detected for b in BULLYING_BEHAVIORS)

    contradictions = find_contradictions(topics, behavior)
    hypocrisy_score = calculate_hypocrisy_score(contradictions)

    if contradictions:
        logger.warning(
            "CONTRADICTION_DETECTED",
            extra={
                "pairs": [f"{c.topic.value}/{c.behavior.value}" for c in contradictions],
                "critical_count": sum(1 for c in contradictions if c.severity == Severity.CRITICAL),
                "hypocrisy_score": hypocrisy_score,
            }
        )

    report = ContextReport(
        detected_topics=topics,
        contradictions=tuple(contradictions),
        hypocrisy_score=hypocrisy_score,
        teaching_about_bullying=teaching_about_bullying,
        practicing_bullying=practicing_bullying,
        behavior_safety_score=behavior.safety_score,
        recommendation=build_recommendation(
            contradictions, teaching_about_bullying, practicing_bullying
        ),
        behavior=behavior,
    )

    logger.info(
        "CONTEXT_ANALYSIS_COMPLETED",
        extra={
            "topics": [t.value for t in Topic if t in topics],
            "contradiction_count": len(contradictions),
            "hypocrisy_score": hypocrisy_score,
            "teaching_about_bullying": teaching_about_bullying,
            "practicing_bullying": practicing_bullying,
        }
    )
    return report

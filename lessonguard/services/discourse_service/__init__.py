"""Discourse Service: deterministic lesson transcript analysis.

Rule-based layer that judges a complete lesson transcript for classroom
psychological safety and Lei 13.185/2015 (anti-bullying program) compliance.
No LLM calls: every verdict is traceable to a pattern and its evidence.

Components:
- text_normalizer.py: One-pass normalization (accents, case, whitespace)
- topic_detector.py: Lesson topics and topic/behavior contradiction tables
- behavior_detector.py: Five behavior families, safety score, legal risk
- contradiction_analyzer.py: Teaching X while practicing not-X (hypocrisy score)
- legal_compliance_checker.py: Lei 13.185 section and overall verdict
- config.py: Scoring constants and pattern version
- handler.py: Flask HTTP endpoints (/health, /analyze/*, /compliance)

Usage:
    # As HTTP service
    POST /compliance {"transcript": "...", "lesson_id": "..."}

    # Direct import
    from lessonguard.services.discourse_service import check_compliance
    report = check_compliance(transcript)
    report.overall_compliance, report.combined_score
"""

from .behavior_detector import (
    BehaviorReport,
    calculate_lei_13185_risk,
    calculate_safety_score,
    detect_aggression,
    detect_disengagement,
    detect_exclusion,
    detect_public_shame,
    detect_sarcasm,
)
from .behavior_detector import analyze as analyze_behavior
from .contradiction_analyzer import Contradiction, ContextReport
from .contradiction_analyzer import analyze as analyze_context
from .config import ComplianceScoring, EngineConfig
from .legal_compliance_checker import (
    ComplianceReport,
    LawSection,
    check_compliance,
    check_lei_13185,
    detect_bullying_types_mentioned,
    detect_bullying_types_practiced,
    detect_obligations_mentioned,
    preventive_approach,
)
from .text_normalizer import NormalizedText, TranscriptNormalizer, normalize_text
from .topic_detector import contradiction_multiplier, detect_topics, topic_detected

__all__ = [
    "BehaviorReport",
    "ComplianceReport",
    "ComplianceScoring",
    "ContextReport",
    "Contradiction",
    "EngineConfig",
    "LawSection",
    "NormalizedText",
    "TranscriptNormalizer",
    "analyze_behavior",
    "analyze_context",
    "calculate_lei_13185_risk",
    "calculate_safety_score",
    "check_compliance",
    "check_lei_13185",
    "contradiction_multiplier",
    "detect_aggression",
    "detect_bullying_types_mentioned",
    "detect_bullying_types_practiced",
    "detect_disengagement",
    "detect_exclusion",
    "detect_obligations_mentioned",
    "detect_public_shame",
    "detect_sarcasm",
    "detect_topics",
    "normalize_text",
    "preventive_approach",
    "topic_detected",
]

"""Pattern-based compliance checker for Lei 13.185/2015 (anti-bullying program).

Provides fast, deterministic compliance checks without LLM calls. The
downstream job pipeline merges this report with an LLM-written compliance
narrative; this module only supplies the verifiable half.

Architecture:
- Behavior and context analysis run once (ContradictionAnalyzer)
- Law-specific heuristics: bullying types mentioned vs practiced,
  Art. 4 school obligations, preventive vs punitive approach
- Each law is a LawSection; overall fields take the worst section
"""
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Pattern, Tuple, Union

from lessonguard.shared.models import ComplianceLevel, Severity, Topic
from lessonguard.shared.utils import hash_text_for_audit
from . import contradiction_analyzer
from .behavior_detector import BehaviorReport
from .config import ComplianceScoring, EngineConfig
from .contradiction_analyzer import ContextReport
from .text_normalizer import NormalizedText, normalize

logger = logging.getLogger(__name__)

_SCORING = ComplianceScoring()
_ENGINE_CONFIG = EngineConfig()

LEI_13185 = "lei_13185"

GRAVE_VIOLATION_MARKER = "VIOLAÇÃO GRAVE"

TEACHABLE_TOPICS = (
    Topic.BULLYING,
    Topic.CYBERBULLYING,
    Topic.RESPECT,
    Topic.INCLUSION,
    Topic.CITIZENSHIP,
)


class LegalCategory(NamedTuple):
    """A named category of the law with the phrasing that signals it."""
    name: str
    description: str
    patterns: Tuple[Pattern, ...]


def _category(name: str, description: str, *patterns: str) -> LegalCategory:
    return LegalCategory(name, description, tuple(re.compile(p) for p in patterns))


# Lei 13.185 Art. 2 - nine types of systematic intimidation
BULLYING_TYPES: Tuple[LegalCategory, ...] = (
    _category(
        "Físico", "Agredir, socar, chutar, beliscar, empurrar",
        r"\bbullying\s+fisico\b", r"\b(agredir|socar|chutar|empurrar|beliscar)\b",
    ),
    _category(
        "Psicológico", "Isolar, ignorar, humilhar, chantagear, perseguir",
        r"\bbullying\s+psicologico\b", r"\b(isolar|ignorar|humilhar|chantagear)\b",
    ),
    _category(
        "Moral", "Difamar, caluniar, disseminar rumores falsos",
        r"\bbullying\s+moral\b", r"\b(difamar|caluniar)\b|\brumores?\s+falsos?\b",
    ),
    _category(
        "Verbal", "Insultar, xingar, apelidar pejorativamente",
        r"\bbullying\s+verbal\b", r"\b(insultar|xingar)\b|\bapelid(o|ar)\s+pejorativ",
    ),
    _category(
        "Material", "Furtar, roubar, destruir pertences",
        r"\bbullying\s+material\b", r"\b(furtar|roubar)\b|\bdestruir\s+pertences\b",
    ),
    _category(
        "Sexual", "Assediar, induzir, abusar",
        r"\bbullying\s+sexual\b", r"\bassedio\s+sexual\b|\babusar\b",
    ),
    _category(
        "Social", "Excluir de grupos, não deixar participar",
        r"\bbullying\s+social\b",
        r"\bexclu(ir|em)\s+(alguem\s+)?de\s+grupos?\b",
        r"\bnao\s+deixar\s+participar\b",
    ),
    _category(
        "Virtual", "Depreciar, enviar mensagens ofensivas online",
        r"\bbullying\s+virtual\b",
        r"\bdepreciar\s+online\b|\bmensage(m|ns)\s+ofensivas?\s+online\b",
    ),
    _category(
        "Cyberbullying", "Falsificar perfis, criar páginas fake",
        r"\bcyberbullying\b", r"\bperfis?\s+fals[oa]s?\b|\bpaginas?\s+fake\b",
    ),
)

# Lei 13.185 Art. 4 - school obligations
SCHOOL_OBLIGATIONS: Tuple[LegalCategory, ...] = (
    _category(
        "Programas de prevenção", "Implementar programas de prevenção permanentes",
        r"\bprograma\s+de\s+prevencao\b", r"\bprevencao\s+permanente\b",
    ),
    _category(
        "Capacitação de profissionais", "Capacitar professores e funcionários",
        r"\bcapacitacao\b|\btreinamento\b|\bformacao\s+de\s+professores\b",
    ),
    _category(
        "Acolhimento de vítimas", "Acolher e proteger vítimas",
        r"\bacolher\b|\bacolhimento\b|\bapoio\s+as?\s+vitimas?\b",
    ),
    _category(
        "Responsabilização de agressores", "Responsabilizar agressores com abordagem educativa",
        r"\bresponsabiliza(r|cao)\b|\bconsequencias?\s+para\s+(o\s+)?agressor",
    ),
    _category(
        "Campanhas educativas", "Realizar campanhas educativas periódicas",
        r"\bcampanhas?\s+educativas?\b|\bconscientizacao\b",
    ),
    _category(
        "Assistência psicológica", "Oferecer assistência psicológica quando necessário",
        r"\bassistencia\s+psicologica\b|\bapoio\s+psicologico\b|\bpsicolog[oa]\b",
    ),
    _category(
        "Articulação com famílias", "Articular ações com famílias e comunidade",
        r"\barticulacao\s+com\s+(as\s+)?familias\b|\benvolver\s+(a\s+)?familia\b",
    ),
)

PREVENTIVE_PATTERNS: Tuple[Pattern, ...] = tuple(re.compile(p) for p in (
    r"\bvamos\s+conversar\s+sobre\b",
    r"\bo\s+que\s+(voces\s+)?acham\b",
    r"\bcomo\s+podemos\s+(resolver|ajudar|prevenir)\b",
    r"\b(educacao|educar|ensinar)\b",
    r"\b(prevencao|prevenir)\b",
    r"\b(conscientizacao|conscientizar)\b",
))

PUNITIVE_PATTERNS: Tuple[Pattern, ...] = tuple(re.compile(p) for p in (
    r"\b(castigo|punicao|punir)\b",
    r"\b(suspensao|expulsao)\b",
    r"\b(vai|vao)\s+ser\s+advertid[oa]s?\b",
    r"\bchamar\s+os\s+pais\s+para\s+(reclam|punir)",
))

# Practiced behavior family -> bullying type label
PRACTICED_TYPE_LABELS: Mapping[str, str] = MappingProxyType({
    "sarcasm": "Verbal",
    "aggression": "Verbal",
    "public_shame": "Psicológico",
    "exclusion": "Social",
})

PRACTICED_TYPE_RECOMMENDATIONS: Mapping[str, str] = MappingProxyType({
    "Verbal": "Substituir sarcasmo e linguagem agressiva por comunicação assertiva e respeitosa",
    "Psicológico": "Abordar questões individuais em particular, nunca expondo alunos publicamente",
    "Social": "Garantir que todos os alunos sejam incluídos nas atividades da aula",
})

SUMMARY_HEADLINES: Mapping[ComplianceLevel, str] = MappingProxyType({
    ComplianceLevel.COMPLIANT: "✅ CONFORME - Aula em conformidade com Lei 13.185/2015",
    ComplianceLevel.PARTIAL: "⚠️ PARCIALMENTE CONFORME - Ajustes necessários para conformidade total",
    ComplianceLevel.NON_COMPLIANT: "❌ NÃO CONFORME - Violações detectadas que requerem ação",
    ComplianceLevel.VIOLATION: "🚨 VIOLAÇÃO GRAVE - Ação imediata necessária",
})

ELEVATED_RISK_HEADLINE = "❌ RISCO ELEVADO - Comportamentos de risco exigem acompanhamento"


@dataclass(frozen=True)
class LawSection:
    """Compliance assessment against one law."""
    law: str
    compliance_level: ComplianceLevel
    risk_level: Severity
    score: int
    violations: Tuple[str, ...] = field(default_factory=tuple)
    bullying_types_mentioned: Tuple[str, ...] = field(default_factory=tuple)
    bullying_types_practiced: Tuple[str, ...] = field(default_factory=tuple)
    obligations_mentioned: Tuple[str, ...] = field(default_factory=tuple)
    preventive_approach: bool = False
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"Section score must be 0-100, got {self.score}")

    @property
    def has_grave_violation(self) -> bool:
        return any(GRAVE_VIOLATION_MARKER in v for v in self.violations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "compliance_level": self.compliance_level.value,
            "risk_level": self.risk_level.value,
            "score": self.score,
            "violations": list(self.violations),
            "bullying_types_mentioned": list(self.bullying_types_mentioned),
            "bullying_types_practiced": list(self.bullying_types_practiced),
            "obligations_mentioned": list(self.obligations_mentioned),
            "preventive_approach": self.preventive_approach,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class ComplianceReport:
    """Root output of the engine for one transcript."""
    lei_13185: LawSection
    context_analysis: ContextReport
    overall_compliance: ComplianceLevel
    overall_risk: Severity
    combined_score: int
    legal_summary: str
    engine_version: str = ""

    def __post_init__(self):
        if not 0 <= self.combined_score <= 100:
            raise ValueError(f"Combined score must be 0-100, got {self.combined_score}")

    @property
    def behavior(self) -> BehaviorReport:
        return self.context_analysis.behavior

    def sections(self) -> Dict[str, LawSection]:
        return {LEI_13185: self.lei_13185}

    def to_dict(self) -> Dict[str, Any]:
        context = self.context_analysis
        return {
            LEI_13185: self.lei_13185.to_dict(),
            "context_analysis": {
                "teaching_bullying": context.teaching_about_bullying,
                "practicing_bullying": context.practicing_bullying,
                "contradictions": len(context.contradictions),
                "hypocrisy_score": context.hypocrisy_score,
                "detected_topics": [t.value for t in Topic if t in context.detected_topics],
            },
            "behavior": self.behavior.to_dict(),
            "overall_compliance": self.overall_compliance.value,
            "overall_risk": self.overall_risk.value,
            "combined_score": self.combined_score,
            "legal_summary": self.legal_summary,
            "engine_version": self.engine_version,
        }


def _matched_names(normalized: NormalizedText, categories: Tuple[LegalCategory, ...]) -> List[str]:
    return [
        category.name
        for category in categories
        if any(normalized.search(p) for p in category.patterns)
    ]


def detect_bullying_types_mentioned(text: Union[Optional[str], NormalizedText]) -> List[str]:
    """Lei 13.185 Art. 2 bullying types named in the lesson (educational content)."""
    normalized = normalize(text)
    if not normalized:
        return []
    return _matched_names(normalized, BULLYING_TYPES)


def detect_obligations_mentioned(text: Union[Optional[str], NormalizedText]) -> List[str]:
    """Art. 4 school obligations the lesson addresses (prevention, victim support...)."""
    normalized = normalize(text)
    if not normalized:
        return []
    return _matched_names(normalized, SCHOOL_OBLIGATIONS)


def detect_bullying_types_practiced(behavior: BehaviorReport) -> List[str]:
    """Bullying types the teacher actually practiced, from fired behavior families."""
    detections = behavior.detections()
    practiced: List[str] = []
    for name, label in PRACTICED_TYPE_LABELS.items():
        if detections[name].detected and label not in practiced:
            practiced.append(label)
    return practiced


def _count_occurrences(normalized: NormalizedText, patterns: Tuple[Pattern, ...]) -> int:
    return sum(sum(1 for _ in normalized.finditer(p)) for p in patterns)


def preventive_approach(text: Union[Optional[str], NormalizedText]) -> bool:
    """Whether preventive/educational phrasing outweighs punitive phrasing."""
    normalized = normalize(text)
    preventive_count = _count_occurrences(normalized, PREVENTIVE_PATTERNS)
    punitive_count = _count_occurrences(normalized, PUNITIVE_PATTERNS)
    return preventive_count > punitive_count


def punitive_approach(text: Union[Optional[str], NormalizedText]) -> bool:
    """Whether punitive phrasing is present and not outweighed by preventive phrasing."""
    normalized = normalize(text)
    punitive_count = _count_occurrences(normalized, PUNITIVE_PATTERNS)
    return punitive_count > 0 and not preventive_approach(normalized)


def has_critical_practice(behavior: BehaviorReport) -> bool:
    """Whether any family that maps to a bullying type fired at critical severity."""
    detections = behavior.detections()
    return any(
        detections[name].severity == Severity.CRITICAL for name in PRACTICED_TYPE_LABELS
    )


def identify_violations(behavior: BehaviorReport, context: ContextReport) -> List[str]:
    violations = []

    if behavior.sarcasm.detected and behavior.sarcasm.severity == Severity.CRITICAL:
        violations.append("Uso de sarcasmo com severidade crítica (Art. 2°, IV - Verbal)")
    if behavior.public_shame.detected:
        violations.append("Exposição pública de aluno (Art. 2°, II - Psicológico)")
    if behavior.exclusion.detected:
        violations.append("Comportamento de exclusão (Art. 2°, VII - Social)")
    if behavior.aggression.detected:
        violations.append("Agressão verbal (Art. 2°, IV - Verbal)")

    if context.teaching_about_bullying and context.practicing_bullying:
        violations.append(
            f"{GRAVE_VIOLATION_MARKER}: Praticando bullying durante aula sobre bullying "
            "(contradição pedagógica)"
        )

    return violations


def calculate_lei_13185_score(
    types_mentioned: List[str],
    taught_topics: int,
    types_practiced: List[str],
    preventive: bool,
    violations: List[str],
    scoring: ComplianceScoring = _SCORING,
) -> int:
    """Section score: rewards coverage and prevention, penalizes practice and violations."""
    score = scoring.base_score
    score += min(len(types_mentioned) * scoring.mention_bonus, scoring.mention_bonus_max)
    score += min(taught_topics * scoring.topic_bonus, scoring.topic_bonus_max)
    if preventive:
        score += scoring.preventive_bonus
    score -= len(types_practiced) * scoring.practiced_penalty
    for violation in violations:
        if GRAVE_VIOLATION_MARKER in violation:
            score -= scoring.grave_violation_penalty
        else:
            score -= scoring.violation_penalty
    return max(0, min(100, score))


def score_to_compliance_level(score: int, scoring: ComplianceScoring = _SCORING) -> ComplianceLevel:
    if score >= scoring.compliant_min:
        return ComplianceLevel.COMPLIANT
    if score >= scoring.partial_min:
        return ComplianceLevel.PARTIAL
    if score >= scoring.non_compliant_min:
        return ComplianceLevel.NON_COMPLIANT
    return ComplianceLevel.VIOLATION


def calculate_risk_level(
    types_practiced: List[str],
    violations: List[str],
    context: ContextReport,
    behavior_risk: Severity,
    punitive_critical_practice: bool = False,
) -> Severity:
    """Worse of the violation-count risk and the behavior-derived Lei 13.185 risk.

    A critical bullying practice handled punitively is critical on its own,
    however few families fired.
    """
    practiced = len(types_practiced)
    violation_count = len(violations)

    if any(GRAVE_VIOLATION_MARKER in v for v in violations) or punitive_critical_practice:
        count_risk = Severity.CRITICAL
    elif practiced >= 2 and violation_count >= 2:
        count_risk = Severity.CRITICAL
    elif practiced >= 2 or violation_count >= 2:
        count_risk = Severity.HIGH
    elif practiced >= 1 or violation_count >= 1 or context.practicing_bullying:
        count_risk = Severity.MEDIUM
    else:
        count_risk = Severity.NONE

    return max(count_risk, behavior_risk)


def determine_compliance_level(
    score: int,
    risk: Severity,
    violations: List[str],
    punitive: bool = False,
) -> ComplianceLevel:
    """Score-based level, tightened by grave violations and elevated risk.

    Critical risk under a punitive approach is a violation.
    """
    level = score_to_compliance_level(score)
    if any(GRAVE_VIOLATION_MARKER in v for v in violations):
        return ComplianceLevel.VIOLATION
    if risk == Severity.CRITICAL and punitive:
        return ComplianceLevel.VIOLATION
    if risk == Severity.CRITICAL:
        return max(level, ComplianceLevel.NON_COMPLIANT)
    if risk == Severity.HIGH:
        return max(level, ComplianceLevel.PARTIAL)
    return level


def build_lei_13185_recommendations(
    types_practiced: List[str],
    preventive: bool,
    violations: List[str],
) -> List[str]:
    recommendations = [
        PRACTICED_TYPE_RECOMMENDATIONS[label]
        for label in types_practiced
        if label in PRACTICED_TYPE_RECOMMENDATIONS
    ]

    if not preventive:
        recommendations.append(
            "Adotar abordagem preventiva/educativa em vez de punitiva conforme Art. 4° da Lei 13.185"
        )

    if any(GRAVE_VIOLATION_MARKER in v for v in violations):
        recommendations.insert(
            0,
            "URGENTE: Revisar completamente a abordagem pedagógica - "
            "comportamento contradiz o tema ensinado",
        )

    return recommendations or ["Manter práticas atuais e continuar o trabalho preventivo"]


def check_lei_13185(
    text: Union[Optional[str], NormalizedText],
    behavior: BehaviorReport,
    context: ContextReport,
) -> LawSection:
    """Assess compliance with Lei 13.185/2015 specifically."""
    normalized = normalize(text)

    types_mentioned = detect_bullying_types_mentioned(normalized)
    types_practiced = detect_bullying_types_practiced(behavior)
    obligations = detect_obligations_mentioned(normalized)
    preventive = preventive_approach(normalized)
    punitive = punitive_approach(normalized)
    violations = identify_violations(behavior, context)

    taught_topics = sum(1 for t in TEACHABLE_TOPICS if t in context.detected_topics)
    score = calculate_lei_13185_score(
        types_mentioned, taught_topics, types_practiced, preventive, violations
    )
    risk = calculate_risk_level(
        types_practiced,
        violations,
        context,
        behavior.lei_13185_risk,
        punitive_critical_practice=punitive and has_critical_practice(behavior),
    )

    return LawSection(
        law=LEI_13185,
        compliance_level=determine_compliance_level(score, risk, violations, punitive),
        risk_level=risk,
        score=score,
        violations=tuple(violations),
        bullying_types_mentioned=tuple(types_mentioned),
        bullying_types_practiced=tuple(types_practiced),
        obligations_mentioned=tuple(obligations),
        preventive_approach=preventive,
        recommendations=tuple(build_lei_13185_recommendations(types_practiced, preventive, violations)),
    )


def calculate_combined_score(
    section_score: int,
    hypocrisy_score: int,
    safety_score: int,
    scoring: ComplianceScoring = _SCORING,
) -> int:
    """Weighted blend of the section, hypocrisy and safety scores (0-100)."""
    weights = scoring.weights
    blended = (
        section_score * weights["lei_13185"]
        + hypocrisy_score * weights["hypocrisy"]
        + safety_score * weights["safety"]
    )
    return max(0, min(100, int(round(blended))))


def build_legal_summary(
    overall_compliance: ComplianceLevel,
    overall_risk: Severity,
    section: LawSection,
    context: ContextReport,
) -> str:
    """One-line verdict whose leading glyph signals the severity class."""
    if overall_risk >= Severity.HIGH and overall_compliance <= ComplianceLevel.PARTIAL:
        headline = ELEVATED_RISK_HEADLINE
    elif overall_compliance == ComplianceLevel.COMPLIANT and overall_risk == Severity.MEDIUM:
        headline = SUMMARY_HEADLINES[ComplianceLevel.PARTIAL]
    else:
        headline = SUMMARY_HEADLINES[overall_compliance]

    parts = [headline]
    if context.teaching_about_bullying and context.practicing_bullying:
        parts.append("ALERTA: Contradição entre tema ensinado e comportamento observado.")
    if section.violations:
        parts.append(f"{len(section.violations)} violação(ões) identificada(s).")
    return " | ".join(parts)


def check_compliance(text: Union[Optional[str], NormalizedText]) -> ComplianceReport:
    """Full legal compliance check of one transcript.

    Args:
        text: Raw or already normalized transcript; None counts as empty

    Returns:
        ComplianceReport with the Lei 13.185 section, context analysis,
        overall verdict, combined score and summary

    Logs:
        - COMPLIANCE_VIOLATION: When the overall level is non_compliant or worse
        - COMPLIANCE_CHECK_COMPLETED: Always
    """
    normalized = normalize(text)

    context = contradiction_analyzer.analyze(normalized)
    behavior = context.behavior
    section = check_lei_13185(normalized, behavior, context)

    sections = [section]
    overall_compliance = max(s.compliance_level for s in sections)
    overall_risk = max(s.risk_level for s in sections)

    combined_score = calculate_combined_score(
        section.score, context.hypocrisy_score, behavior.safety_score
    )

    report = ComplianceReport(
        lei_13185=section,
        context_analysis=context,
        overall_compliance=overall_compliance,
        overall_risk=overall_risk,
        combined_score=combined_score,
        legal_summary=build_legal_summary(overall_compliance, overall_risk, section, context),
        engine_version=_ENGINE_CONFIG.pattern_version,
    )

    if overall_compliance >= ComplianceLevel.NON_COMPLIANT:
        logger.warning(
            "COMPLIANCE_VIOLATION",
            extra={
                "text_hash": hash_text_for_audit(normalized.original),
                "compliance_level": overall_compliance.value,
                "risk_level": overall_risk.value,
                "violation_count": len(section.violations),
            }
        )

    logger.info(
        "COMPLIANCE_CHECK_COMPLETED",
        extra={
            "text_hash": hash_text_for_audit(normalized.original),
            "overall_compliance": overall_compliance.value,
            "overall_risk": overall_risk.value,
            "combined_score": combined_score,
            "lei_13185_score": section.score,
            "hypocrisy_score": context.hypocrisy_score,
            "safety_score": behavior.safety_score,
        }
    )
    return report

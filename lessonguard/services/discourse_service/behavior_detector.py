"""Problematic classroom behavior detection.

Five independent pattern families scan a lesson transcript:
- Sarcasm (teacher-to-student dismissive or mocking phrasing)
- Disengagement (sleeping, missing, silent or refusing students)
- Public shaming (exposing a student to the class)
- Exclusion (Lei 13.185 Art. 2 VII - social bullying)
- Aggression (Lei 13.185 Art. 2 IV - verbal bullying)

Each family is an ordered table of (pattern, severity, label) rows scanned
once per call. A family's result keeps the maximum severity observed and the
sum of its per-match impacts (bounded by the family floor), with evidence in
order of appearance. All patterns are written against normalized text.
"""
import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Pattern, Tuple, Union

from lessonguard.shared.models import Behavior, DetectionResult, Severity
from lessonguard.shared.utils import hash_text_for_audit
from .config import IMPACT_FLOORS, SEVERITY_IMPACTS, EngineConfig
from .text_normalizer import NormalizedText, normalize

logger = logging.getLogger(__name__)

_ENGINE_CONFIG = EngineConfig()

NO_BEHAVIORS_SUMMARY = "No problematic behaviors detected"


class BehaviorPattern(NamedTuple):
    """One row of a family table."""
    pattern: Pattern
    severity: Severity
    label: str


def _rows(*rows: Tuple[str, Severity, str]) -> Tuple[BehaviorPattern, ...]:
    return tuple(BehaviorPattern(re.compile(p), s, label) for p, s, label in rows)


SARCASM_PATTERNS = _rows(
    # Dismissive questions
    (r"\bso\s+\w+\s*\?", Severity.HIGH, "Só X?"),
    (r"\be\s+so\s+isso\s*\?", Severity.HIGH, "E só isso?"),
    (r"\bvoce\s+acha\s+que\b[^.?!]*\bne\s*\?", Severity.MEDIUM, "Você acha que... né?"),
    # Habitual criticism
    (r"\bvoce\s+tem\s+(essa\s+)?mania\b", Severity.CRITICAL, "Você tem (essa) mania"),
    (r"\bvoce\s+sempre\s+faz\s+isso\b", Severity.HIGH, "Você sempre faz isso"),
    (r"\bsempre\s+a\s+mesma\s+coisa\b", Severity.HIGH, "Sempre a mesma coisa"),
    (r"\bde\s+novo\s*\?", Severity.MEDIUM, "De novo?"),
    # Rhetorical dismissals
    (r"\bclaro,?\s+ne\b", Severity.MEDIUM, "Claro, né"),
    (r"\bobvio,?\s+ne\b", Severity.MEDIUM, "Óbvio, né"),
    (r"\blogico,?\s+ne\b", Severity.LOW, "Lógico, né"),
    (r"\bque\s+surpresa\b", Severity.HIGH, "Que surpresa"),
    # Derogatory comparisons
    (r"\bnem\s+o\s+\w+\s+faz\s+isso\b", Severity.HIGH, "Nem o X faz isso"),
    (r"\bate\s+(crianca|bebe)\s+(sabe|consegue)\b", Severity.CRITICAL, "Até criança sabe/consegue"),
    (r"\bparece\s+que\s+e\s+dificil\b", Severity.MEDIUM, "Parece que é difícil"),
    # Exasperation
    (r"\bquantas\s+vezes\s+(eu\s+)?(ja\s+)?disse\b", Severity.HIGH, "Quantas vezes já disse"),
    (r"\beu\s+nao\s+acredito\b", Severity.MEDIUM, "Eu não acredito"),
    (r"\bnao\s+e\s+possivel\b", Severity.MEDIUM, "Não é possível"),
    # Mocking emphasis
    (r"\bah,?\s+ta\s+bom\b", Severity.MEDIUM, "Ah, tá bom"),
    (r"\bmuito\s+bem,?\s+hein\b", Severity.MEDIUM, "Muito bem, hein"),
    (r"\bparabens,?\s+hein\b", Severity.MEDIUM, "Parabéns, hein"),
)

DISENGAGEMENT_PATTERNS = _rows(
    # Sleeping
    (r"\b\w+\s+(dormiu|esta\s+dormindo|dorme\s+de\s+novo)\b", Severity.CRITICAL, "Aluno dormindo"),
    (r"\bacordar?\s+\w+", Severity.CRITICAL, "Professor acordando aluno"),
    (r"\bolha\s+la,?\s+\w+\s+dormindo\b", Severity.CRITICAL, "Comentário sobre aluno dormindo"),
    # Missing
    (r"\b(cade|onde\s+esta|nao\s+sei\s+onde)\s+((o|a)\s+)?\w+", Severity.HIGH, "Aluno ausente/desaparecido"),
    (r"\b\w+\s+sumiu\b", Severity.HIGH, "Aluno sumiu"),
    (r"\b(saiu|foi\s+embora)\s+sem\s+(pedir|avisar)\b", Severity.HIGH, "Saiu sem permissão"),
    # Silence / non-participation
    (r"\bninguem\s+(responde|fala|quer)\b", Severity.MEDIUM, "Silêncio geral"),
    (r"\bsilencio\s+total\b", Severity.MEDIUM, "Silêncio total"),
    (r"\b\w+\s+nao\s+quer\s+(participar|fazer|falar)\b", Severity.MEDIUM, "Recusa em participar"),
    # Explicit refusal
    (r"\b(nao\s+quero(\s+mais)?|eu\s+nao\s+vou)\b", Severity.HIGH, "Recusa explícita"),
    (r"\bque\s+(saco|chato)\b", Severity.MEDIUM, "Expressão de tédio"),
    (r"\bcansei\s+disso\b", Severity.MEDIUM, "Cansaço expresso"),
    # Distraction
    (r"\b(mexendo|brincando)\s+(no|com\s+o)\s+(celular|telefone)\b", Severity.MEDIUM, "Distração com celular"),
    (r"\bpara\s+de\s+mexer\s+(no|com)\b", Severity.MEDIUM, "Mexendo no celular"),
    (r"\bpara\s+de\s+(conversar|falar)\b", Severity.LOW, "Conversa paralela"),
    (r"\bpresta\s+atencao\b", Severity.LOW, "Chamada de atenção"),
)

PUBLIC_SHAME_PATTERNS = _rows(
    # Public exposure
    (r"\b(olha|veja)\s+o\s+que\s+((o|a)\s+)?\w+\s+fez\b", Severity.CRITICAL, "Exposição pública de erro"),
    (r"\btodo\s+mundo\s+(sabe|viu|ouviu)\b", Severity.HIGH, "Generalização pública"),
    (r"\bna\s+frente\s+de\s+todo\s+mundo\b", Severity.CRITICAL, "Exposição na frente de todos"),
    # Body and appearance
    (r"\b(perfume|cheiro|cheirou|fedeu|fedendo)\b", Severity.CRITICAL, "Comentário sobre odor corporal"),
    (r"\b(gordo|gorda|magro|magra|feio|feia)\s+assim\b", Severity.CRITICAL, "Comentário sobre aparência"),
    (r"\bolha\s+(a|o)\s+(roupa|cabelo|cara)\b", Severity.HIGH, "Comentário sobre aparência"),
    # Academic shaming
    (r"\b(errou|errado)\s+de\s+novo\b", Severity.HIGH, "Destaque repetido de erro"),
    (r"\btodo\s+mundo\s+acertou\s+menos\b", Severity.CRITICAL, "Comparação negativa pública"),
    (r"\bso\s+voce\s+(nao|errou)\b", Severity.CRITICAL, "Isolamento por desempenho"),
    # Name and shame
    (r"\b\w+,?\s+levanta\s+(a\s+mao|ai)\b", Severity.MEDIUM, "Chamada pública de atenção"),
    (r"\bclasse,?\s+(olha|veja)\s+o\s+\w+", Severity.CRITICAL, "Exposição para a classe"),
    # Laughter at a student's expense
    (r"\(risos[^)]*\)", Severity.MEDIUM, "Risos (verificar contexto)"),
    (r"\bpode\s+rir\b", Severity.CRITICAL, "Permissão para rir de alguém"),
    (r"\bengracado,?\s+ne\b", Severity.MEDIUM, "Sarcasmo sobre situação"),
)

EXCLUSION_PATTERNS = _rows(
    # Denial and expulsion
    (r"\b(voce\s+)?nao\s+pode\s+(participar|entrar|fazer\s+parte)\b", Severity.CRITICAL, "Exclusão de atividade"),
    (r"\bsai\s+(daqui|do\s+grupo)\b", Severity.CRITICAL, "Expulsão de grupo"),
    (r"\bninguem\s+(te\s+quer|quer\s+(voce|ela|ele))\b", Severity.CRITICAL, "Rejeição social"),
    # Isolation
    (r"\b(fica|senta)\s+(ai\s+)?sozinh[oa]\b", Severity.HIGH, "Isolamento forçado"),
    (r"\bvai\s+pro\s+canto\b", Severity.HIGH, "Isolamento espacial"),
    (r"\bnao\s+(fala|conversa)\s+com\b", Severity.HIGH, "Proibição de interação"),
    # Group dynamics
    (r"\bnao\s+e\s+do\s+(grupo|time|nossa\s+turma)\b", Severity.HIGH, "Exclusão de grupo"),
    (r"\b(ela|ele)\s+nao\s+(vai|entra)\b", Severity.MEDIUM, "Veto de participação"),
)

AGGRESSION_PATTERNS = _rows(
    # Insults
    (r"\b(burr[oa]|idiota|imbecil|estupid[oa])\b", Severity.CRITICAL, "Insulto direto"),
    (r"\b(cala|fecha)\s+a\s+boca\b", Severity.HIGH, "Comando agressivo"),
    (r"\b(inutil|incapaz|incompetente)\b", Severity.CRITICAL, "Insulto à capacidade"),
    # Threats
    (r"\b(vou\s+te|vai\s+ver|voce\s+vai)\s+(tirar|expulsar|mandar)\b", Severity.CRITICAL, "Ameaça"),
    (r"\bse\s+nao\s+(parar|calar)\b", Severity.HIGH, "Ameaça condicional"),
    # Shouting
    (r"\bpara\s+de\s+gritar\b", Severity.MEDIUM, "Referência a grito"),
    # Name-calling
    (r"\bseu\s+(idiota|burro|inutil)\b", Severity.CRITICAL, "Xingamento direto"),
    (r"\b(apelido|chama\s+de)\s+\w+", Severity.MEDIUM, "Apelido (verificar contexto)"),
)

# Rows matched against the original transcript, where case survives
RAW_TEXT_PATTERNS: Mapping[Behavior, Tuple[BehaviorPattern, ...]] = MappingProxyType({
    Behavior.AGGRESSION: _rows(
        (r"[A-Z]{3,}!+", Severity.MEDIUM, "Texto em caps (grito)"),
    ),
})

FAMILY_PATTERNS: Mapping[Behavior, Tuple[BehaviorPattern, ...]] = MappingProxyType({
    Behavior.SARCASM: SARCASM_PATTERNS,
    Behavior.DISENGAGEMENT: DISENGAGEMENT_PATTERNS,
    Behavior.PUBLIC_SHAME: PUBLIC_SHAME_PATTERNS,
    Behavior.EXCLUSION: EXCLUSION_PATTERNS,
    Behavior.AGGRESSION: AGGRESSION_PATTERNS,
})


@dataclass(frozen=True)
class BehaviorReport:
    """Full behavior analysis of one transcript.

    Immutable - recomputed from the transcript on every call.
    """
    sarcasm: DetectionResult
    disengagement: DetectionResult
    public_shame: DetectionResult
    exclusion: DetectionResult
    aggression: DetectionResult
    safety_score: int
    lei_13185_risk: Severity
    summary: str

    def __post_init__(self):
        if not 0 <= self.safety_score <= 100:
            raise ValueError(f"Safety score must be 0-100, got {self.safety_score}")

    def detections(self) -> Dict[str, DetectionResult]:
        """Family name -> result, in report order."""
        return {behavior.value: getattr(self, behavior.value) for behavior in Behavior}

    def detected_behaviors(self) -> List[Behavior]:
        return [b for b in Behavior if getattr(self, b.value).detected]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            name: detection.to_dict() for name, detection in self.detections().items()
        }
        result.update({
            "safety_score": self.safety_score,
            "lei_13185_risk": self.lei_13185_risk.value,
            "summary": self.summary,
        })
        return result


def _scan_family(
    behavior: Behavior,
    text: Union[Optional[str], NormalizedText],
    config: EngineConfig = _ENGINE_CONFIG,
) -> DetectionResult:
    """Run one family table over the transcript.

    Each row contributes at most once (its first match). Evidence is ordered
    by where the match occurs in the transcript.
    """
    normalized = normalize(text)
    if not normalized:
        return DetectionResult.clean()

    leading = config.evidence_leading_chars
    trailing = config.evidence_trailing_chars

    # (original offset, excerpt, row)
    matches = []
    for row in FAMILY_PATTERNS[behavior]:
        match = normalized.search(row.pattern)
        if match is not None:
            excerpt = normalized.excerpt(
                match.start(), match.end(), leading=leading, trailing=trailing
            )
            matches.append((normalized.to_original(match.start()), excerpt, row))

    for row in RAW_TEXT_PATTERNS.get(behavior, ()):
        match = row.pattern.search(normalized.original)
        if match is not None:
            excerpt = normalized.original_excerpt(
                match.start(), match.end(), leading=leading, trailing=trailing
            )
            matches.append((match.start(), excerpt, row))

    if not matches:
        return DetectionResult.clean()

    matches.sort(key=lambda m: m[0])
    impacts = SEVERITY_IMPACTS[behavior]

    severity = max(row.severity for _, _, row in matches)
    impact = sum(impacts.get(row.severity, 0) for _, _, row in matches)
    impact = max(IMPACT_FLOORS[behavior], impact)

    evidence = tuple(excerpt for _, excerpt, _ in matches)

    logger.debug(
        "BEHAVIOR_FAMILY_MATCHED",
        extra={
            "behavior": behavior.value,
            "severity": severity.value,
            "score_impact": impact,
            "patterns": [row.label for _, _, row in matches],
        }
    )

    return DetectionResult(
        detected=True,
        severity=severity,
        score_impact=impact,
        evidence=evidence,
    )


def detect_sarcasm(text: Union[Optional[str], NormalizedText]) -> DetectionResult:
    """Detect sarcasm patterns such as "Só X?" or "Você tem essa mania".

    Example:
        >>> detect_sarcasm("Só sim? Você tem essa mania mesmo.").severity
        <Severity.CRITICAL: 'critical'>
    """
    return _scan_family(Behavior.SARCASM, text)


def detect_disengagement(text: Union[Optional[str], NormalizedText]) -> DetectionResult:
    """Detect sleeping, missing, silent or refusing students."""
    return _scan_family(Behavior.DISENGAGEMENT, text)


def detect_public_shame(text: Union[Optional[str], NormalizedText]) -> DetectionResult:
    """Detect moments where a student is exposed negatively to peers."""
    return _scan_family(Behavior.PUBLIC_SHAME, text)


def detect_exclusion(text: Union[Optional[str], NormalizedText]) -> DetectionResult:
    """Detect exclusion (Lei 13.185 Art. 2 VII - social bullying)."""
    return _scan_family(Behavior.EXCLUSION, text)


def detect_aggression(text: Union[Optional[str], NormalizedText]) -> DetectionResult:
    """Detect verbal aggression (Lei 13.185 Art. 2 IV - verbal bullying)."""
    return _scan_family(Behavior.AGGRESSION, text)


def _field(record: Any, name: str, default: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _records(detections: Mapping[Any, Any]) -> List[Any]:
    return [
        record for record in detections.values()
        if isinstance(record, Mapping)
        or hasattr(record, "severity")
        or hasattr(record, "score_impact")
    ]


def calculate_safety_score(detections: Mapping[Any, Any]) -> int:
    """Classroom psychological safety score (0-100).

    Starts at 100 and adds every record's (non-positive) score_impact.

    Args:
        detections: Mapping of name -> DetectionResult or dict with a
            "score_impact" key; other values are ignored

    Returns:
        Score clamped to 0-100
    """
    total_impact = sum(int(_field(r, "score_impact", 0) or 0) for r in _records(detections))
    return max(0, min(100, 100 + total_impact))


def calculate_lei_13185_risk(detections: Mapping[Any, Any]) -> Severity:
    """Lei 13.185 legal risk from the severities observed across records.

    Args:
        detections: Mapping of name -> DetectionResult or dict with a
            "severity" key (Severity or its string value)

    Returns:
        critical for 2+ critical, or critical plus high;
        high for a lone critical or 2+ high;
        medium for a lone high; low when medium is the worst; none otherwise

    Raises:
        ValueError: If a severity string is not a Severity value
    """
    severities = [
        Severity.coerce(_field(r, "severity", Severity.NONE) or Severity.NONE)
        for r in _records(detections)
    ]
    critical_count = severities.count(Severity.CRITICAL)
    high_count = severities.count(Severity.HIGH)

    if critical_count >= 2:
        return Severity.CRITICAL
    if critical_count >= 1 and high_count >= 1:
        return Severity.CRITICAL
    if critical_count == 1:
        return Severity.HIGH
    if high_count >= 2:
        return Severity.HIGH
    if high_count == 1:
        return Severity.MEDIUM
    if Severity.MEDIUM in severities:
        return Severity.LOW
    return Severity.NONE


def build_summary(detections: Mapping[str, DetectionResult]) -> str:
    detected = [
        f"{name} ({Severity.coerce(_field(record, 'severity', Severity.NONE)).value})"
        for name, record in detections.items()
        if _field(record, "detected", False)
    ]
    if not detected:
        return NO_BEHAVIORS_SUMMARY
    return f"Detected: {', '.join(detected)}"


def analyze(text: Union[Optional[str], NormalizedText]) -> BehaviorReport:
    """Run all five detectors and score the transcript.

    Args:
        text: Raw or already normalized transcript; None counts as empty

    Returns:
        BehaviorReport with per-family results, safety score, Lei 13.185
        risk and a one-line summary

    Logs:
        - BEHAVIOR_ANALYSIS_COMPLETED: Always, with scores and detected families
    """
    normalized = normalize(text)

    detections = {
        behavior.value: _scan_family(behavior, normalized) for behavior in Behavior
    }
    safety_score = calculate_safety_score(detections)
    risk = calculate_lei_13185_risk(detections)

    report = BehaviorReport(
        safety_score=safety_score,
        lei_13185_risk=risk,
        summary=build_summary(detections),
        **detections,
    )

    log = logger.warning if risk >= Severity.HIGH else logger.info
    log(
        "BEHAVIOR_ANALYSIS_COMPLETED",
        extra={
            "text_hash": hash_text_for_audit(normalized.original),
            "text_length": len(normalized.original),
            "detected": [b.value for b in report.detected_behaviors()],
            "safety_score": safety_score,
            "lei_13185_risk": risk.value,
        }
    )
    return report

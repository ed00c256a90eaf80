"""Tests for BehaviorDetector - the five behavior families and their scoring.

Every family must stay silent on neutral classroom speech and escalate
severity as harsher phrasing accumulates.
"""
import pytest

from lessonguard.shared.models import Behavior, DetectionResult, Severity
from lessonguard.services.discourse_service.behavior_detector import (
    NO_BEHAVIORS_SUMMARY,
    BehaviorReport,
    analyze,
    calculate_lei_13185_risk,
    calculate_safety_score,
    detect_aggression,
    detect_disengagement,
    detect_exclusion,
    detect_public_shame,
    detect_sarcasm,
)
from lessonguard.services.discourse_service.config import IMPACT_FLOORS

ALL_DETECTORS = [
    detect_sarcasm,
    detect_disengagement,
    detect_public_shame,
    detect_exclusion,
    detect_aggression,
]

CLEAN_TEXT = "Bom dia, turma! Vamos abrir o livro na página 10."


class TestCleanInput:
    """Tests for text that should trigger nothing."""

    @pytest.mark.parametrize("detector", ALL_DETECTORS)
    @pytest.mark.parametrize("text", [CLEAN_TEXT, "", None, "😀😀 🎉"])
    def test_detector_returns_clean_result(self, detector, text):
        """Neutral, empty and missing input yield the clean result."""
        result = detector(text)
        assert result == DetectionResult()
        assert result.detected is False
        assert result.severity == Severity.NONE
        assert result.score_impact == 0
        assert result.evidence == ()

    def test_analyze_clean_text(self):
        report = analyze(CLEAN_TEXT)
        assert report.safety_score == 100
        assert report.lei_13185_risk == Severity.NONE
        assert report.summary == NO_BEHAVIORS_SUMMARY
        assert report.detected_behaviors() == []


class TestSarcasm:
    """Tests for detect_sarcasm."""

    def test_dismissive_question_is_high(self):
        result = detect_sarcasm("Só sim?")
        assert result.detected is True
        assert result.severity == Severity.HIGH
        assert result.score_impact == -10

    def test_mania_phrasing_is_critical(self):
        result = detect_sarcasm("Você tem essa mania de fazer assim.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -15

    def test_combined_patterns_escalate(self):
        """Max severity wins, impacts add up, evidence keeps text order."""
        result = detect_sarcasm("Só sim? Você tem essa mania mesmo.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact <= -20
        assert len(result.evidence) == 2
        assert "Só sim?" in result.evidence[0]
        assert "mania" in result.evidence[1]

    def test_rhetorical_dismissal(self):
        result = detect_sarcasm("Claro, né, sempre você.")
        assert result.severity == Severity.MEDIUM

    def test_derogatory_comparison(self):
        assert detect_sarcasm("Até criança sabe fazer isso.").severity == Severity.CRITICAL

    def test_impact_bounded_by_family_floor(self):
        text = (
            "Só isso? Você tem essa mania. Até criança sabe. "
            "Que surpresa. Quantas vezes eu já disse!"
        )
        result = detect_sarcasm(text)
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == IMPACT_FLOORS[Behavior.SARCASM] == -30

    def test_case_and_accent_insensitive(self):
        assert detect_sarcasm("VOCE TEM ESSA MANIA").severity == Severity.CRITICAL

    def test_evidence_has_context_markers(self):
        result = detect_sarcasm("Olha só. Você tem essa mania de chegar atrasado.")
        assert all(e.startswith("...") and e.endswith("...") for e in result.evidence)


class TestDisengagement:
    """Tests for detect_disengagement."""

    def test_sleeping_student_is_critical(self):
        result = detect_disengagement("O Pedro dormiu de novo.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -12

    def test_missing_student_is_high(self):
        result = detect_disengagement("Cadê o Lucas?")
        assert result.severity == Severity.HIGH
        assert result.score_impact == -8

    def test_explicit_refusal_is_high(self):
        assert detect_disengagement("Eu não quero mais fazer isso").severity == Severity.HIGH

    def test_general_silence_is_medium(self):
        result = detect_disengagement("Ninguém responde?")
        assert result.severity == Severity.MEDIUM
        assert result.score_impact == -4


class TestPublicShame:
    """Tests for detect_public_shame."""

    def test_comparative_shaming_is_critical(self):
        result = detect_public_shame("Todo mundo acertou menos você.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -15

    def test_body_odor_mockery_is_critical(self):
        assert detect_public_shame("Que cheiro é esse?").severity == Severity.CRITICAL

    def test_isolation_by_performance(self):
        assert detect_public_shame("Só você não conseguiu terminar.").severity == Severity.CRITICAL

    def test_laughter_marker_is_medium(self):
        result = detect_public_shame("A turma: (risos)")
        assert result.severity == Severity.MEDIUM
        assert result.score_impact == -5


class TestExclusion:
    """Tests for detect_exclusion."""

    def test_denial_of_participation_is_critical(self):
        result = detect_exclusion("Você não pode participar dessa atividade.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -15

    def test_forced_isolation_alone_is_high(self):
        result = detect_exclusion("Fica aí sozinho.")
        assert result.severity == Severity.HIGH
        assert result.score_impact == -10

    def test_social_rejection(self):
        assert detect_exclusion("Ninguém quer você no grupo.").severity == Severity.CRITICAL

    def test_denial_and_isolation_sum(self):
        result = detect_exclusion("Você não pode participar dessa atividade. Fica aí sozinho.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -25


class TestAggression:
    """Tests for detect_aggression."""

    def test_direct_insult(self):
        result = detect_aggression("Você é burro demais!")
        assert result.detected is True
        assert result.severity == Severity.CRITICAL
        assert result.score_impact <= -20

    def test_aggressive_command_alone_is_high(self):
        result = detect_aggression("Cala a boca!")
        assert result.severity == Severity.HIGH
        assert result.score_impact == -12

    def test_competence_insult(self):
        assert detect_aggression("Você é completamente incapaz.").severity == Severity.CRITICAL

    def test_threat(self):
        result = detect_aggression("Se não parar, vou te tirar da sala.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -32

    def test_shouting_in_capitals_is_medium(self):
        result = detect_aggression("PARA COM ISSO!!")
        assert result.detected is True
        assert result.severity == Severity.MEDIUM
        assert result.score_impact == -6
        assert "PARA COM ISSO!!" in result.evidence[0]

    def test_lowercase_exclamation_is_not_shouting(self):
        assert detect_aggression("para com isso!!").detected is False

    def test_capitals_without_exclamation_are_not_shouting(self):
        assert detect_aggression("Hoje estudamos o ECA e a LDB.").detected is False

    def test_shouting_evidence_follows_transcript_order(self):
        """Case-sensitive matches interleave with the others by position."""
        result = detect_aggression("Cala a boca! Agora PARA COM ISSO!! Vou te tirar da sala.")
        assert result.severity == Severity.CRITICAL
        assert result.score_impact == -35
        assert len(result.evidence) == 3
        assert "Cala a boca" in result.evidence[0]
        assert "ISSO!!" in result.evidence[1]
        assert "tirar da sala" in result.evidence[2]


class TestCalculateSafetyScore:
    """Tests for the standalone safety score."""

    def test_empty_mapping(self):
        assert calculate_safety_score({}) == 100

    def test_all_zero_impacts(self):
        assert calculate_safety_score({"a": DetectionResult(), "b": DetectionResult()}) == 100

    def test_critical_plus_high(self):
        detections = {
            "aggression": {"severity": "critical", "score_impact": -25},
            "sarcasm": {"severity": "high", "score_impact": -12},
        }
        assert calculate_safety_score(detections) == 63

    def test_dataclass_records(self):
        detections = {
            "aggression": DetectionResult(True, Severity.CRITICAL, -25),
            "sarcasm": DetectionResult(True, Severity.HIGH, -12),
        }
        assert calculate_safety_score(detections) == 63

    def test_never_below_zero(self):
        detections = {f"family_{i}": {"score_impact": -30} for i in range(5)}
        assert calculate_safety_score(detections) == 0

    def test_ignores_non_record_values(self):
        assert calculate_safety_score({"note": "free text", "a": {"score_impact": -5}}) == 95

    def test_positive_impact_rejected(self):
        with pytest.raises(ValueError):
            DetectionResult(True, Severity.LOW, 5)


class TestCalculateLei13185Risk:
    """Tests for the standalone Lei 13.185 risk rule."""

    @staticmethod
    def _severities(*values):
        return {f"family_{i}": {"severity": v} for i, v in enumerate(values)}

    @pytest.mark.parametrize("severities,expected", [
        (("critical", "critical"), Severity.CRITICAL),
        (("critical", "high"), Severity.CRITICAL),
        (("critical",), Severity.HIGH),
        (("critical", "medium", "low"), Severity.HIGH),
        (("high", "high"), Severity.HIGH),
        (("high",), Severity.MEDIUM),
        (("high", "medium"), Severity.MEDIUM),
        (("medium",), Severity.LOW),
        (("medium", "low"), Severity.LOW),
        (("low",), Severity.NONE),
        ((), Severity.NONE),
        (("none", "none"), Severity.NONE),
    ])
    def test_risk_rule(self, severities, expected):
        assert calculate_lei_13185_risk(self._severities(*severities)) == expected

    def test_enum_severities(self):
        detections = {
            "a": DetectionResult(True, Severity.CRITICAL, -15),
            "b": DetectionResult(True, Severity.CRITICAL, -20),
        }
        assert calculate_lei_13185_risk(detections) == Severity.CRITICAL

    def test_unknown_severity_raises(self):
        with pytest.raises(ValueError):
            calculate_lei_13185_risk({"a": {"severity": "extreme"}})


class TestAnalyze:
    """Tests for the combined BehaviorReport."""

    def test_hypocritical_lesson(self):
        report = analyze(
            "Hoje vamos falar sobre bullying. É muito importante respeitar os colegas. "
            "Só sim? Você tem essa mania de fazer assim."
        )
        assert report.sarcasm.severity == Severity.CRITICAL
        assert report.safety_score == 75
        assert report.lei_13185_risk == Severity.HIGH
        assert "sarcasm" in report.summary
        assert "critical" in report.summary

    def test_two_critical_families(self):
        report = analyze("Você é burro! Todo mundo acertou menos você.")
        assert report.lei_13185_risk == Severity.CRITICAL
        assert report.safety_score == 65

    def test_idempotent(self):
        """Same text twice gives identical reports."""
        text = "Cadê o Lucas? Cala a boca! (risos)"
        assert analyze(text) == analyze(text)
        assert analyze(text).to_dict() == analyze(text).to_dict()

    def test_to_dict_shape(self):
        data = analyze("Cala a boca!").to_dict()
        assert set(data) == {
            "sarcasm", "disengagement", "public_shame", "exclusion", "aggression",
            "safety_score", "lei_13185_risk", "summary",
        }
        assert data["aggression"]["severity"] == "high"
        assert data["lei_13185_risk"] == "medium"

    def test_report_rejects_out_of_range_score(self):
        clean = DetectionResult()
        with pytest.raises(ValueError):
            BehaviorReport(clean, clean, clean, clean, clean, 101, Severity.NONE, "")

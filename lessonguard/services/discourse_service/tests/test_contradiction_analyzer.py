"""Tests for ContradictionAnalyzer - teaching one thing while practicing another."""
import pytest

from lessonguard.shared.models import Behavior, Severity, Topic
from lessonguard.services.discourse_service.contradiction_analyzer import (
    ALIGNED_RECOMMENDATION,
    HYPOCRISY_RECOMMENDATION,
    Contradiction,
    analyze,
    build_recommendation,
    calculate_hypocrisy_score,
    classify_contradiction,
)

CLEAN_LESSON = (
    "Bom dia, turma! Hoje vamos conversar sobre bullying. "
    "O que vocês acham que é bullying? Muito bem, João! Isso mesmo."
)

HYPOCRITICAL_LESSON = (
    "Hoje vamos falar sobre bullying. É muito importante respeitar os colegas. "
    "Só sim? Você tem essa mania de fazer assim."
)

INCLUSION_LESSON = (
    "Inclusão é muito importante. Todos devem participar. "
    "Você não pode participar dessa atividade. Fica aí sozinho."
)


def _contradiction(severity=Severity.HIGH, penalty=10):
    return Contradiction(
        topic=Topic.RESPECT,
        behavior=Behavior.SARCASM,
        behavior_severity=severity,
        multiplier=1.0,
        severity=severity,
        score_penalty=penalty,
    )


class TestCleanLesson:
    """A lesson that teaches about bullying without practicing it."""

    def test_no_contradictions(self):
        report = analyze(CLEAN_LESSON)
        assert report.teaching_about_bullying is True
        assert report.practicing_bullying is False
        assert report.contradictions == ()
        assert report.hypocrisy_score == 100

    def test_affirmative_recommendation(self):
        report = analyze(CLEAN_LESSON)
        assert report.recommendation == ALIGNED_RECOMMENDATION
        assert "Nenhuma contradição" in report.recommendation
        assert "alinhada" in report.recommendation

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_input(self, text):
        report = analyze(text)
        assert report.detected_topics == frozenset()
        assert report.contradictions == ()
        assert report.hypocrisy_score == 100
        assert report.behavior_safety_score == 100


class TestHypocriticalLesson:
    """Teaching about bullying while using sarcasm."""

    def test_flags_both_sides(self):
        report = analyze(HYPOCRITICAL_LESSON)
        assert report.teaching_about_bullying is True
        assert report.practicing_bullying is True

    def test_contradictions_and_score(self):
        report = analyze(HYPOCRITICAL_LESSON)
        assert report.contradictions
        assert report.hypocrisy_score < 70
        assert report.has_critical_contradiction

    def test_amplified_pair_comes_first(self):
        """Contradictions are sorted by penalty, largest first."""
        report = analyze(HYPOCRITICAL_LESSON)
        first = report.contradictions[0]
        assert (first.topic, first.behavior) == (Topic.BULLYING, Behavior.SARCASM)
        assert first.multiplier == 2.5
        assert first.score_penalty == 62.5
        penalties = [c.score_penalty for c in report.contradictions]
        assert penalties == sorted(penalties, reverse=True)

    def test_tracked_pair_at_neutral_multiplier_is_kept(self):
        """respect/sarcasm weighs 1.0 but is still a recognized contradiction."""
        report = analyze(HYPOCRITICAL_LESSON)
        pairs = {(c.topic, c.behavior): c for c in report.contradictions}
        assert pairs[(Topic.RESPECT, Behavior.SARCASM)].multiplier == 1.0
        assert pairs[(Topic.RESPECT, Behavior.SARCASM)].score_penalty == 25

    def test_urgent_recommendation(self):
        report = analyze(HYPOCRITICAL_LESSON)
        assert report.recommendation == HYPOCRISY_RECOMMENDATION
        assert "ALERTA" in report.recommendation

    def test_behavior_report_is_attached(self):
        report = analyze(HYPOCRITICAL_LESSON)
        assert report.behavior.sarcasm.detected is True
        assert report.behavior_safety_score == report.behavior.safety_score


class TestOtherContradictions:
    """Inclusion, respect and untracked pairs."""

    def test_inclusion_exclusion(self):
        report = analyze(INCLUSION_LESSON)
        assert Topic.INCLUSION in report.detected_topics
        assert Topic.INCLUSION in [c.topic for c in report.contradictions]
        assert report.teaching_about_bullying is False
        assert report.practicing_bullying is True
        assert report.hypocrisy_score == 50
        assert "ALERTA" in report.recommendation

    def test_respect_aggression(self):
        report = analyze("Precisamos ter respeito. Burro, cala a boca!")
        contradiction = report.contradictions[0]
        assert (contradiction.topic, contradiction.behavior) == (Topic.RESPECT, Behavior.AGGRESSION)
        assert contradiction.severity == Severity.CRITICAL
        assert report.hypocrisy_score == 36

    def test_untracked_pair_ignored(self):
        """citizenship/aggression is neither amplified nor tracked."""
        report = analyze("Falamos de cidadania. Cala a boca!")
        assert report.practicing_bullying is True
        assert report.contradictions == ()
        assert report.hypocrisy_score == 100

    def test_behavior_without_topic(self):
        report = analyze("Cadê o Lucas? Você é burro!")
        assert report.detected_topics == frozenset()
        assert report.contradictions == ()

    def test_to_dict(self):
        data = analyze(INCLUSION_LESSON).to_dict()
        assert data["detected_topics"] == ["inclusion"]
        assert data["contradictions"][0]["topic"] == "inclusion"
        assert data["contradictions"][0]["behavior"] == "exclusion"
        assert data["contradictions"][0]["severity"] == "critical"
        assert data["contradictions"][0]["evidence"]


class TestClassifyContradiction:
    """Tests for a contradiction's own severity."""

    @pytest.mark.parametrize("multiplier,behavior_severity,expected", [
        (1.0, Severity.CRITICAL, Severity.CRITICAL),
        (2.5, Severity.CRITICAL, Severity.CRITICAL),
        (2.0, Severity.HIGH, Severity.CRITICAL),
        (1.0, Severity.HIGH, Severity.HIGH),
        (2.5, Severity.MEDIUM, Severity.HIGH),
        (1.0, Severity.MEDIUM, Severity.MEDIUM),
        (1.0, Severity.LOW, Severity.MEDIUM),
    ])
    def test_classification(self, multiplier, behavior_severity, expected):
        assert classify_contradiction(multiplier, behavior_severity) == expected


class TestHypocrisyScore:
    """Tests for calculate_hypocrisy_score."""

    def test_no_contradictions(self):
        assert calculate_hypocrisy_score([]) == 100

    def test_subtracts_penalties(self):
        assert calculate_hypocrisy_score([_contradiction(penalty=30), _contradiction(penalty=12)]) == 58

    def test_clamped_at_zero(self):
        assert calculate_hypocrisy_score([_contradiction(penalty=75), _contradiction(penalty=75)]) == 0

    def test_rounds_total_not_each_penalty(self):
        """Two half-point penalties add up before rounding: 37.5 + 37.5 is 75, not 76."""
        halves = [_contradiction(penalty=37.5), _contradiction(penalty=37.5)]
        assert calculate_hypocrisy_score(halves) == 25

    def test_amplified_lesson_scores_from_unrounded_sum(self):
        """bullying/sarcasm at 62.5 plus respect/sarcasm at 25 removes 88 points."""
        assert analyze(HYPOCRITICAL_LESSON).hypocrisy_score == 12


class TestBuildRecommendation:
    """Tests for graded recommendations."""

    def test_multiple_critical(self):
        message = build_recommendation(
            [_contradiction(Severity.CRITICAL), _contradiction(Severity.CRITICAL)], False, True
        )
        assert "ALERTA" in message
        assert "Múltiplas" in message

    def test_several_high(self):
        message = build_recommendation([_contradiction(), _contradiction()], False, False)
        assert "contradição" in message
        assert "ALERTA" not in message

    def test_single_medium(self):
        message = build_recommendation([_contradiction(Severity.MEDIUM)], False, False)
        assert "contradição" in message

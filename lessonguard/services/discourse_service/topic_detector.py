"""Lesson topic detection and the topic/behavior contradiction table.

Finds which discourse topics a transcript talks about (bullying, respect,
inclusion...) so later stages can tell a teacher *discussing* bullying
apart from one *practicing* it. This is the only module where the topic and
behavior vocabularies meet, and they meet through static tables only.
"""
import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Pattern, Tuple, Type, TypeVar, Union

from lessonguard.shared.models import Behavior, Topic
from .text_normalizer import NormalizedText, normalize

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# Topic patterns, written against normalized (lowercase, unaccented) text
TOPIC_PATTERNS: Mapping[Topic, Tuple[Pattern, ...]] = MappingProxyType({
    Topic.BULLYING: (
        re.compile(r"bullying"),
        re.compile(r"\bintimidacao\s+sistematica\b"),
        re.compile(r"\blei\s+(n\.?\s*o?\s*)?13\.?185\b"),
        re.compile(r"\bagress(ao|or|ores|oes)\b"),
    ),
    Topic.CYBERBULLYING: (
        re.compile(r"\bcyberbullying\b"),
        re.compile(r"\bbullying\s+(virtual|online|digital)\b"),
        re.compile(r"\bhate\s*speech\b|\bhaters?\b"),
        re.compile(r"\bmensage(m|ns)\s+ofensivas?\b"),
        re.compile(r"\binternet\b[^.?!]*\bintimidar\b"),
    ),
    Topic.RESPECT: (
        re.compile(r"\brespeit(o|ar|em|amos)\b"),
        re.compile(r"\bempatia\b"),
        re.compile(r"\btolerancia\b"),
        re.compile(r"\bconvivencia\b"),
    ),
    Topic.INCLUSION: (
        re.compile(r"\binclusao\b"),
        re.compile(r"\bdiversidade\b"),
        re.compile(r"\bacessibilidade\b"),
        re.compile(r"\bnecessidades?\s+especia(l|is)\b"),
    ),
    Topic.CITIZENSHIP: (
        re.compile(r"\bcidadania\b"),
        re.compile(r"\bdireitos?\s+(e\s+)?deveres?\b"),
        re.compile(r"\betica\b"),
        re.compile(r"\bresponsabilidade\s+social\b"),
    ),
})

# Behaviors that contradict what a topic teaches
CONTRADICTING_BEHAVIORS: Mapping[Topic, FrozenSet[Behavior]] = MappingProxyType({
    Topic.BULLYING: frozenset({
        Behavior.SARCASM, Behavior.PUBLIC_SHAME, Behavior.EXCLUSION, Behavior.AGGRESSION,
    }),
    Topic.CYBERBULLYING: frozenset({
        Behavior.SARCASM, Behavior.PUBLIC_SHAME, Behavior.EXCLUSION, Behavior.AGGRESSION,
    }),
    Topic.RESPECT: frozenset({
        Behavior.SARCASM, Behavior.PUBLIC_SHAME, Behavior.AGGRESSION,
    }),
    Topic.INCLUSION: frozenset({
        Behavior.EXCLUSION, Behavior.DISENGAGEMENT,
    }),
    Topic.CITIZENSHIP: frozenset({
        Behavior.SARCASM, Behavior.PUBLIC_SHAME, Behavior.EXCLUSION,
    }),
})

# Penalty amplification when a lesson practices what it teaches against
CONTRADICTION_MULTIPLIERS: Mapping[Tuple[Topic, Behavior], float] = MappingProxyType({
    (Topic.BULLYING, Behavior.SARCASM): 2.5,
    (Topic.BULLYING, Behavior.PUBLIC_SHAME): 2.5,
    (Topic.RESPECT, Behavior.AGGRESSION): 2.0,
    (Topic.INCLUSION, Behavior.EXCLUSION): 2.0,
})

CONTRADICTION_DESCRIPTIONS: Mapping[Tuple[Topic, Behavior], str] = MappingProxyType({
    (Topic.BULLYING, Behavior.SARCASM):
        "Ensinar sobre bullying enquanto usa sarcasmo é contraditório e prejudica a mensagem",
    (Topic.BULLYING, Behavior.PUBLIC_SHAME):
        "Expor aluno publicamente durante aula sobre bullying demonstra o problema "
        "que deveria ser combatido",
    (Topic.BULLYING, Behavior.EXCLUSION):
        "Excluir alunos durante aula anti-bullying contradiz completamente o objetivo",
    (Topic.BULLYING, Behavior.AGGRESSION):
        "Usar linguagem agressiva ao ensinar sobre bullying é pedagogicamente inaceitável",
    (Topic.CYBERBULLYING, Behavior.SARCASM):
        "Sarcasmo em aula sobre cyberbullying demonstra comportamento inadequado",
    (Topic.CYBERBULLYING, Behavior.PUBLIC_SHAME):
        "Exposição pública em aula sobre cyberbullying contradiz a mensagem",
    (Topic.RESPECT, Behavior.SARCASM):
        "Usar sarcasmo enquanto ensina sobre respeito é contraditório",
    (Topic.RESPECT, Behavior.PUBLIC_SHAME):
        "Expor alunos publicamente em aula sobre respeito demonstra falta de respeito",
    (Topic.RESPECT, Behavior.AGGRESSION):
        "Agressão verbal em aula sobre respeito é inaceitável",
    (Topic.INCLUSION, Behavior.EXCLUSION):
        "Excluir alunos em aula sobre inclusão contradiz completamente o tema",
    (Topic.INCLUSION, Behavior.DISENGAGEMENT):
        "Ignorar alunos desengajados em aula sobre inclusão demonstra falta de prática",
    (Topic.CITIZENSHIP, Behavior.SARCASM):
        "Sarcasmo em aula sobre cidadania prejudica a formação de valores",
    (Topic.CITIZENSHIP, Behavior.PUBLIC_SHAME):
        "Exposição pública em aula sobre cidadania contradiz os valores ensinados",
    (Topic.CITIZENSHIP, Behavior.EXCLUSION):
        "Excluir alunos em aula sobre cidadania contradiz os princípios democráticos",
})


def _coerce(enum_cls: Type[E], value: Union[str, Enum]) -> E:
    """Resolve a member of enum_cls from a member, a same-named symbol or a string.

    Raises:
        ValueError: If the value names no member of enum_cls
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, Enum):
        value = value.value
    return enum_cls(value)


def detect_topics(text: Union[Optional[str], NormalizedText]) -> FrozenSet[Topic]:
    """Detect which lesson topics a transcript mentions.

    Args:
        text: Raw or already normalized transcript

    Returns:
        Set of detected topics; empty when nothing matches
    """
    normalized = normalize(text)
    if not normalized:
        return frozenset()

    topics = frozenset(
        topic
        for topic, patterns in TOPIC_PATTERNS.items()
        if any(normalized.search(pattern) for pattern in patterns)
    )

    logger.debug(
        "TOPICS_DETECTED",
        extra={"topics": sorted(t.value for t in topics), "text_length": len(normalized.text)}
    )
    return topics


def topic_detected(text: Union[Optional[str], NormalizedText], topic: Union[str, Topic]) -> bool:
    """Check whether a specific topic is discussed.

    Raises:
        ValueError: If topic is not a known Topic
    """
    return _coerce(Topic, topic) in detect_topics(text)


def contradiction_multiplier(
    topic: Union[str, Topic],
    behavior: Union[str, Behavior, Topic],
) -> float:
    """Return the penalty multiplier for practicing `behavior` in a `topic` lesson.

    Teaching about a topic while violating it is worse than violating it in
    an unrelated lesson. Pairs outside the table weigh 1.0.

    Raises:
        ValueError: If topic or behavior is not a known symbol
    """
    key = (_coerce(Topic, topic), _coerce(Behavior, behavior))
    return CONTRADICTION_MULTIPLIERS.get(key, 1.0)


def is_recognized_contradiction(
    topic: Union[str, Topic],
    behavior: Union[str, Behavior, Topic],
) -> bool:
    """Whether the pair is a tracked topic/behavior contradiction."""
    topic = _coerce(Topic, topic)
    behavior = _coerce(Behavior, behavior)
    return (
        behavior in CONTRADICTING_BEHAVIORS.get(topic, frozenset())
        or (topic, behavior) in CONTRADICTION_MULTIPLIERS
    )


def describe_contradiction(topic: Union[str, Topic], behavior: Union[str, Behavior, Topic]) -> str:
    topic = _coerce(Topic, topic)
    behavior = _coerce(Behavior, behavior)
    return CONTRADICTION_DESCRIPTIONS.get(
        (topic, behavior),
        f"Comportamento inadequado detectado durante aula sobre {topic.value}",
    )

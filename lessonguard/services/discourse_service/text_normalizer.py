"""Transcript normalization for pattern matching.

Every detector scans the same normalized form: lowercase, without
diacritics, with invisible characters removed and whitespace collapsed.
Normalization runs once per analysis, before any pattern family.

The normalized text keeps a map back to the original offsets so evidence
excerpts quote what was actually said ("Você é burro"), not the matching
form ("voce e burro").
"""
import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)


# Characters to strip (zero-width, invisible, separators)
STRIP_CHARS: FrozenSet[str] = frozenset({
    "\u200b",  # Zero-width space
    "\u200c",  # Zero-width non-joiner
    "\u200d",  # Zero-width joiner
    "\ufeff",  # Byte order mark
    "\u00ad",  # Soft hyphen
    "\u2060",  # Word joiner
})


@dataclass(frozen=True)
class NormalizedText:
    """A transcript in matching form plus its original.

    `offsets[i]` is the index in `original` of the character that produced
    `text[i]`.
    """
    original: str = ""
    text: str = ""
    offsets: Tuple[int, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.text)

    def finditer(self, pattern: Pattern) -> Iterator["re.Match"]:
        return pattern.finditer(self.text)

    def search(self, pattern: Pattern) -> Optional["re.Match"]:
        return pattern.search(self.text)

    def excerpt(self, start: int, end: int, leading: int = 20, trailing: int = 20) -> str:
        """Cut the original text around a normalized match span.

        Args:
            start: Match start in normalized text
            end: Match end in normalized text
            leading: Characters of context before the match
            trailing: Characters of context after the match

        Returns:
            "...excerpt..." taken from the original transcript
        """
        if not self.offsets:
            return "......"
        return self.original_excerpt(
            self.to_original(start),
            self.offsets[min(max(end, start + 1), len(self.offsets)) - 1] + 1,
            leading=leading,
            trailing=trailing,
        )

    def to_original(self, index: int) -> int:
        """Original offset of the character at normalized `index`."""
        if not self.offsets:
            return 0
        return self.offsets[min(index, len(self.offsets) - 1)]

    def original_excerpt(self, start: int, end: int, leading: int = 20, trailing: int = 20) -> str:
        """Cut the original text around a span given in original offsets."""
        window_start = max(0, start - leading)
        window_end = max(end, start) + trailing
        snippet = " ".join(self.original[window_start:window_end].split())
        return f"...{snippet}..."


class TranscriptNormalizer:
    """Normalizes Portuguese transcripts for case- and accent-blind matching.

    Handles:
    - Diacritics (ação → acao, você → voce, ç → c)
    - Mixed case
    - Zero-width characters
    - Newlines and repeated spaces (collapsed to one space)

    Characters with no ASCII decomposition (emoji, CJK) pass through
    unchanged and simply never match a pattern.
    """

    def normalize(self, text: Optional[str]) -> NormalizedText:
        """Normalize text, keeping a map to original offsets.

        Args:
            text: Raw transcript; None is treated as empty

        Returns:
            NormalizedText for pattern matching
        """
        if not text:
            return NormalizedText()

        chars = []
        offsets = []
        pending_space = False

        for index, char in enumerate(text):
            if char in STRIP_CHARS:
                continue
            if char.isspace():
                pending_space = bool(chars)
                continue

            folded = self._fold(char)
            if not folded:
                continue

            if pending_space:
                chars.append(" ")
                offsets.append(index - 1)
                pending_space = False

            for piece in folded:
                chars.append(piece)
                offsets.append(index)

        return NormalizedText(
            original=text,
            text="".join(chars),
            offsets=tuple(offsets),
        )

    def _fold(self, char: str) -> str:
        """Lowercase one character and drop its combining marks."""
        decomposed = unicodedata.normalize("NFKD", char.lower())
        return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


# Module-level singleton
_normalizer: Optional[TranscriptNormalizer] = None


def get_normalizer() -> TranscriptNormalizer:
    """Get the singleton TranscriptNormalizer instance."""
    global _normalizer
    if _normalizer is None:
        _normalizer = TranscriptNormalizer()
        logger.debug("TRANSCRIPT_NORMALIZER_INITIALIZED", extra={"strip_chars": len(STRIP_CHARS)})
    return _normalizer


def normalize(text: Optional[str]) -> NormalizedText:
    """Normalize a transcript, accepting an already normalized one."""
    if isinstance(text, NormalizedText):
        return text
    return get_normalizer().normalize(text)


def normalize_text(text: Optional[str]) -> str:
    """Convenience function returning only the matching form.

    Args:
        text: Raw transcript

    Returns:
        Normalized text for pattern matching
    """
    return normalize(text).text

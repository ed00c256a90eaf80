"""Fingerprinting helpers that keep transcripts and identifiers out of logs.

Transcripts contain student names and classroom speech. Log records carry
only a length and a fingerprint of the text, and request identifiers
(lesson, teacher, institution) are salted before they are logged.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

_IDENTIFIER_SALT: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Set the salt used by hash_pii().

    Raises:
        ValueError: If salt is empty or shorter than MIN_SALT_LENGTH
    """
    global _IDENTIFIER_SALT
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _IDENTIFIER_SALT = salt
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def hash_pii(value: Optional[str]) -> str:
    """Salted SHA-256 of a lesson/teacher identifier, safe to log.

    Raises:
        RuntimeError: If configure_pii_salt() has not been called
    """
    if _IDENTIFIER_SALT is None:
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")
    return hashlib.sha256(f"{_IDENTIFIER_SALT}{value or ''}".encode("utf-8")).hexdigest()


def hash_text_for_audit(text: Optional[str]) -> str:
    """Unsalted SHA-256 fingerprint of a transcript.

    Lets two log lines about the same transcript be correlated without
    revealing its content. `None` fingerprints like the empty string.
    """
    return hashlib.sha256((text or "").encode("utf-8", errors="replace")).hexdigest()

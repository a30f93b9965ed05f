"""
Idea fingerprinting - deterministic digests of normalized idea text.

Every per-idea artefact in tilehub (cached tiles, breaker context, log
context) is partitioned by the idea fingerprint. Two submissions of the
same idea that differ only in case or spacing must land on the same key.

Manifesto:
    Cache partitioning needs a stable identifier that survives trivial
    edits to the idea text:
    - **Deterministic:** Same normalized text always produces the same key
    - **Normalization-insensitive:** Case, surrounding and repeated
      whitespace never change the key
    - **Fixed length:** 32 hex chars (128 bits) regardless of input size
    - **Not a security primitive:** SHA-256 is used for spread, not secrecy

Architecture:
    ::

        "  AI  Scheduling\\tAssistant "
                    │
                    ▼  normalize_idea()
        "ai scheduling assistant"
                    │
                    ▼  sha256 → hexdigest[:32]
        "4f0c...e1"  (idea_hash)

Examples:
    >>> fingerprint(" Foo ") == fingerprint("foo")
    True
    >>> len(fingerprint("AI scheduling assistant for clinics"))
    32

Tags:
    hashing, fingerprint, cache-key, tilehub

Doc-Types:
    - API Reference
"""

import hashlib
import re
import unicodedata

FINGERPRINT_LENGTH = 32

_WHITESPACE = re.compile(r"\s+")


def normalize_idea(text: str) -> str:
    """
    Canonical form of idea text used for hashing.

    Applies NFKC normalization (so full-width and compatibility characters
    collapse to their plain forms), lowercases, trims, and collapses every
    whitespace run to a single space.

    Args:
        text: Raw idea text as typed by the caller.

    Returns:
        Normalized text. ``None`` is treated as the empty string.
    """
    if text is None:
        return ""
    folded = unicodedata.normalize("NFKC", str(text)).lower()
    return _WHITESPACE.sub(" ", folded).strip()


def fingerprint(text: str, length: int = FINGERPRINT_LENGTH) -> str:
    """
    Compute the idea fingerprint.

    Examples:
        >>> fingerprint("AI Scheduling  Assistant") == fingerprint("ai scheduling assistant")
        True

    Args:
        text: Idea text (any case / spacing).
        length: Hex digest length (default 32 = 128 bits).

    Returns:
        Hex string of ``length`` characters.
    """
    content = normalize_idea(text)
    # surrogatepass: lone surrogates survive json.loads and must still hash
    return hashlib.sha256(content.encode("utf-8", "surrogatepass")).hexdigest()[:length]


__all__ = ["FINGERPRINT_LENGTH", "fingerprint", "normalize_idea"]

"""
Suspicious word extraction for flagged messages.

Gives a human moderator a short list of likely offending words without
re-running a classifier per word.
"""

import logging
import unicodedata
from typing import Dict, Iterable, Optional, Set

from .stopwords import StopwordLanguage, getStopwords
from .tokenizer import normalize

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 3


def _surfaceWord(word: str) -> str:
    # Letters, digits and combining marks, so accents stay on the word
    return "".join(char for char in word if unicodedata.category(char)[0] in ("L", "N", "M"))


def extractSuspiciousWords(text: Optional[str], languages: Optional[Iterable[StopwordLanguage]] = None) -> Set[str]:
    """
    Extract words from a flagged message that are likely offending

    Words are compared by their normalized form (no accents) for the length
    and stopword checks and for deduplication, but are returned as written:
    lowercased, without punctuation and with accents kept. When the same word
    appears with different accents, the first spelling wins.

    Args:
        text: Message text
        languages: Stopword languages to filter with, all if None

    Returns:
        Unique lowercased words longer than 2 chars which are not stopwords
    """
    if not text:
        return set()

    stopwords = getStopwords(languages)
    words: Dict[str, str] = {}
    for rawWord in unicodedata.normalize("NFC", text.lower()).split():
        surface = _surfaceWord(rawWord)
        key = normalize(surface)
        if len(key) < MIN_WORD_LENGTH or key in stopwords or key in words:
            continue
        words[key] = surface

    logger.debug(f"Extracted {len(words)} suspicious words")
    return set(words.values())

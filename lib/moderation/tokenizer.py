"""
Text normalization and tokenization for the moderation classifier, dood!

This module turns raw chat text into the feature sequence consumed by the
Naive Bayes classifier. Words are split into character trigrams so that the
classifier recognizes shared roots of inflected Greek words ("μαλάκας",
"μαλάκες", "μαλάκα") without a stemmer. The whole word is emitted as an
extra token to boost exact matches.
"""

import unicodedata
from dataclasses import dataclass
from typing import Dict, List, Optional


def _isKeptChar(char: str) -> bool:
    """Letters, numbers and whitespace survive normalization"""
    if char.isspace():
        return True
    return unicodedata.category(char)[0] in ("L", "N")


def normalize(text: Optional[str]) -> str:
    """
    Normalize text for tokenization

    Lowercases, strips diacritics, removes everything that is not a letter,
    a number or whitespace and trims the result. Idempotent.

    Args:
        text: Raw text

    Returns:
        Normalized text (empty string for empty input)
    """
    if not text:
        return ""

    # Canonical decomposition splits accented letters into base + combining
    # mark, marks are not letters so the filter below drops them
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(char for char in decomposed if _isKeptChar(char)).strip()


def getTrigrams(word: str, ngramSize: int = 3, includeWholeWord: bool = True) -> List[str]:
    """
    Split a word into contiguous character n-grams

    Args:
        word: Normalized word
        ngramSize: Size of the character window
        includeWholeWord: Append the whole word after the n-grams

    Returns:
        List of n-grams in order, words shorter than ngramSize are returned as-is
    """
    if len(word) < ngramSize:
        return [word]

    grams = [word[i : i + ngramSize] for i in range(len(word) - ngramSize + 1)]
    if includeWholeWord:
        grams.append(word)
    return grams


def tokenize(text: Optional[str]) -> List[str]:
    """
    Convert text into the list of classifier features

    Args:
        text: Message text

    Returns:
        Trigrams (plus whole words) of every word, in order
    """
    tokens: List[str] = []
    for word in normalize(text).split():
        tokens.extend(getTrigrams(word))
    return tokens


@dataclass
class TokenizerConfig:
    """Configuration for message tokenizer"""

    ngramSize: int = 3
    includeWholeWord: bool = True

    def __post_init__(self):
        if self.ngramSize < 1:
            raise ValueError("ngramSize must be at least 1")


class MessageTokenizer:
    """
    Tokenizes messages for classifier analysis

    Thin configurable wrapper around normalize() and getTrigrams(). The
    default configuration produces exactly the same tokens as tokenize().
    """

    def __init__(self, config: Optional[TokenizerConfig] = None):
        """
        Initialize tokenizer with configuration

        Args:
            config: TokenizerConfig object, uses defaults if None
        """
        self.config = config or TokenizerConfig()

    def tokenize(self, text: Optional[str]) -> List[str]:
        """
        Convert text into list of tokens

        Args:
            text: Message text to tokenize

        Returns:
            List of tokens (n-grams and whole words)
        """
        tokens: List[str] = []
        for word in normalize(text).split():
            tokens.extend(getTrigrams(word, self.config.ngramSize, self.config.includeWholeWord))
        return tokens

    def getTokenFrequencies(self, text: Optional[str]) -> Dict[str, int]:
        """
        Get token frequency statistics for a text

        Args:
            text: Text to analyze

        Returns:
            Dictionary mapping tokens to their frequencies
        """
        stats: Dict[str, int] = {}

        for token in self.tokenize(text):
            stats[token] = stats.get(token, 0) + 1

        return stats

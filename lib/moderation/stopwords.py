"""
Stopword tables for suspicious-word extraction, dood!

Common Greek, Greeklish (Greek written with Latin letters) and English words
that are never worth showing to a moderator. The tables are normalized with
the tokenizer rules once at import, so accented source words match the
normalized message text.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from .tokenizer import normalize


class StopwordLanguage(str, Enum):
    """Languages with a stopword table"""

    GREEK = "greek"
    GREEKLISH = "greeklish"
    ENGLISH = "english"


_GREEK_WORDS = (
    "και", "το", "τα", "η", "οι", "ο", "του", "της", "των", "τον", "την",
    "στο", "στη", "στα", "στον", "στην", "με", "για", "να", "θα", "είναι",
    "έχει", "από", "που", "αυτό", "αυτά", "αυτός", "αυτή", "εγώ", "εσύ",
    "εμείς", "εσείς", "αυτοί", "αυτές", "μου", "σου", "μας", "σας", "τους",
    "δεν", "μην", "πως", "πώς", "τι", "ποιος", "ποια", "ποιο", "πότε", "πού",
    "γιατί", "αν", "όταν", "ενώ", "αλλά", "όμως", "λοιπόν", "ήδη", "ακόμα",
    "πολύ", "λίγο", "πάρα", "πιο", "πρέπει", "μπορώ", "μπορείς", "καλά",
    "ωραία", "εντάξει", "ναι", "όχι", "ίσως", "μάλλον", "σίγουρα", "είσαι",
    "είμαι", "ήταν", "έχω", "έχεις", "κάτι", "τώρα", "εδώ", "εκεί",
)  # fmt: skip

_GREEKLISH_WORDS = (
    "kai", "ke", "to", "ta", "oi", "tou", "tis", "ton", "tin", "sto", "sti",
    "sta", "ston", "stin", "me", "gia", "na", "tha", "einai", "eisai", "eimai",
    "exei", "exo", "exw", "apo", "pou", "auto", "afto", "auta", "afta", "ego",
    "egw", "esy", "esu", "emeis", "eseis", "mou", "sou", "mas", "sas", "tous",
    "den", "min", "mhn", "pws", "pos", "ti", "poios", "poia", "poio", "pote",
    "giati", "an", "otan", "enw", "eno", "alla", "omws", "omos", "loipon",
    "hdh", "idi", "akoma", "poli", "poly", "ligo", "para", "pio", "prepei",
    "mporw", "mporo", "mporeis", "kala", "wraia", "oraia", "entaksei",
    "entaxei", "nai", "oxi", "ohi", "isws", "isos", "mallon", "sigoura",
    "kati", "twra", "tora", "edw", "edo", "ekei",
)  # fmt: skip

_ENGLISH_WORDS = (
    "the", "a", "an", "and", "or", "but", "is", "are", "was", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "shall", "can", "need", "dare",
    "ought", "used", "to", "of", "in", "for", "on", "with", "at", "by", "from",
    "as", "into", "through", "during", "before", "after", "above", "below",
    "between", "under", "again", "further", "then", "once", "here", "there",
    "when", "where", "why", "how", "all", "each", "few", "more", "most", "other",
    "some", "such", "no", "nor", "not", "only", "own", "same", "so", "than",
    "too", "very", "just", "also", "now", "i", "you", "he", "she", "it", "we",
    "they", "me", "him", "her", "us", "them", "my", "your", "his", "its", "our",
    "their", "this", "that", "these", "those", "what", "which", "who", "whom",
    "idiot",
)  # fmt: skip


def _buildSet(words: Iterable[str]) -> FrozenSet[str]:
    normalized = (normalize(word) for word in words)
    return frozenset(word for word in normalized if word)


GREEK_STOPWORDS: FrozenSet[str] = _buildSet(_GREEK_WORDS)
GREEKLISH_STOPWORDS: FrozenSet[str] = _buildSet(_GREEKLISH_WORDS)
ENGLISH_STOPWORDS: FrozenSet[str] = _buildSet(_ENGLISH_WORDS)

STOPWORDS: Dict[StopwordLanguage, FrozenSet[str]] = {
    StopwordLanguage.GREEK: GREEK_STOPWORDS,
    StopwordLanguage.GREEKLISH: GREEKLISH_STOPWORDS,
    StopwordLanguage.ENGLISH: ENGLISH_STOPWORDS,
}

ALL_LANGUAGES: FrozenSet[StopwordLanguage] = frozenset(StopwordLanguage)


def parseLanguages(values: Iterable[str]) -> FrozenSet[StopwordLanguage]:
    """
    Convert configured language names into StopwordLanguage values

    Raises:
        ValueError: If a language name is unknown
    """
    ret = set()
    for value in values:
        try:
            ret.add(StopwordLanguage(str(value).strip().lower()))
        except ValueError:
            raise ValueError(f"Unknown stopword language '{value}'")
    return frozenset(ret)


def getStopwords(languages: Optional[Iterable[StopwordLanguage]] = None) -> FrozenSet[str]:
    """
    Get the union of stopword sets for the enabled languages

    Args:
        languages: Enabled languages, all languages if None

    Returns:
        Union of normalized stopwords
    """
    if languages is None:
        languages = ALL_LANGUAGES

    ret: FrozenSet[str] = frozenset()
    for language in languages:
        ret = ret | STOPWORDS[StopwordLanguage(language)]
    return ret

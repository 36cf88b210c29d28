"""
Content Moderation Library for ClassGuard

This library provides a dual classification pipeline for short chat messages
in mixed Greek / English / Greeklish communication, dood!

Main Components:
- NaiveBayesClassifier: Offline statistical classifier over character trigrams
- ZeroShotClassifier: Optional NLI-based neural classifier with a load lifecycle
- DecisionEngine, ModerationConfig: Tiering policy arbitrating both classifiers
- extractSuspiciousWords: Surfaces likely offending words of a flagged message
- ModelStore: Persists the statistical model (filesystem or null backend)
- parseTrainingCorpus: Bulk training data import

Usage:
    from lib.moderation import DecisionEngine, ModerationConfig, NaiveBayesClassifier

    classifier = NaiveBayesClassifier()
    classifier.learn("μαλάκας", "profane")
    classifier.learn("καλημέρα σε όλους", "clean")

    engine = DecisionEngine(classifier, config=ModerationConfig())
    result = engine.evaluateStatistical("μαλάκες")
    print(f"{result.tier.value}: {result.confidence:.2f}%")
"""

from .bayes_classifier import BayesConfig, NaiveBayesClassifier
from .decision import DecisionEngine, ModerationConfig, actionForTier, tierForScore
from .exceptions import (
    LoadCancelledError,
    ModelLoadError,
    ModelStoreError,
    ModerationConfigError,
    ModerationError,
    TrainingDataError,
)
from .model_store import AbstractModelStoreBackend, FSModelStoreBackend, ModelStore, NullModelStoreBackend
from .models import (
    DEFAULT_CANDIDATE_LABELS,
    CandidateLabelSet,
    Category,
    ClassificationResult,
    LoadProgressEvent,
    LoadState,
    LoadStatus,
    ModelStats,
    ModerationAction,
    ModerationMode,
    ModerationVerdict,
    ResultSource,
    Tier,
    TrainingExample,
)
from .stopwords import StopwordLanguage, getStopwords, parseLanguages
from .suspicious_words import extractSuspiciousWords
from .tokenizer import MessageTokenizer, TokenizerConfig, getTrigrams, normalize, tokenize
from .training import loadTrainingCorpusFile, parseTrainingCorpus
from .zero_shot import CancellationToken, ZeroShotClassifier, ZeroShotConfig

__version__ = "1.0.0"

__all__ = [
    # Classifiers
    "NaiveBayesClassifier",
    "BayesConfig",
    "ZeroShotClassifier",
    "ZeroShotConfig",
    "CancellationToken",
    # Decision
    "DecisionEngine",
    "ModerationConfig",
    "tierForScore",
    "actionForTier",
    # Tokenizer
    "normalize",
    "getTrigrams",
    "tokenize",
    "MessageTokenizer",
    "TokenizerConfig",
    # Stopwords
    "StopwordLanguage",
    "getStopwords",
    "parseLanguages",
    "extractSuspiciousWords",
    # Persistence
    "ModelStore",
    "AbstractModelStoreBackend",
    "FSModelStoreBackend",
    "NullModelStoreBackend",
    # Training
    "parseTrainingCorpus",
    "loadTrainingCorpusFile",
    # Data models
    "Category",
    "Tier",
    "ModerationAction",
    "ModerationMode",
    "LoadStatus",
    "ResultSource",
    "ClassificationResult",
    "ModerationVerdict",
    "TrainingExample",
    "ModelStats",
    "LoadState",
    "LoadProgressEvent",
    "CandidateLabelSet",
    "DEFAULT_CANDIDATE_LABELS",
    # Exceptions
    "ModerationError",
    "ModelStoreError",
    "ModelLoadError",
    "LoadCancelledError",
    "TrainingDataError",
    "ModerationConfigError",
]

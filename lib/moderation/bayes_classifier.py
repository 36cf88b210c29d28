"""
Naive Bayes message classifier implementation, dood!

This module contains the statistical classification logic using the multinomial
Naive Bayes algorithm with Laplace smoothing over character trigram tokens.
The whole model lives in memory and can be serialized to a JSON object.
"""

import json
import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .exceptions import ModelStoreError
from .models import Category, ModelStats, TrainingExample
from .tokenizer import MessageTokenizer, TokenizerConfig

logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = 1


@dataclass
class BayesConfig:
    """Configuration for Bayes classifier"""

    # Laplace smoothing parameter (avoid zero probabilities)
    alpha: float = 1.0

    # Category whose probability is reported as confidence
    harmfulCategory: str = Category.PROFANE.value

    # Answer of classify() while nothing was learned
    defaultCategory: str = Category.CLEAN.value

    # Tokenizer configuration
    tokenizerConfig: Optional[TokenizerConfig] = None

    def __post_init__(self):
        """Validate configuration parameters"""
        if self.alpha <= 0:
            raise ValueError("Alpha must be positive for Laplace smoothing.")

        if self.tokenizerConfig is None:
            self.tokenizerConfig = TokenizerConfig()


class NaiveBayesClassifier:
    """
    Naive Bayes text classifier

    Uses multinomial Naive Bayes algorithm with Laplace smoothing.
    Learning is incremental, there is no retraining from scratch.

    Thread Safety:
        A single lock guards the counts, so concurrent learns are serialized
        and classification never sees a half-applied update.
    """

    def __init__(self, config: Optional[BayesConfig] = None):
        """
        Initialize Bayes classifier

        Args:
            config: Classifier configuration
        """
        self.config = config or BayesConfig()
        self.tokenizer = MessageTokenizer(self.config.tokenizerConfig)
        self._lock = threading.Lock()

        # category => number of learned documents
        self._docCount: Dict[str, int] = {}
        self._totalDocuments = 0
        # category => total number of tokens learned
        self._wordCount: Dict[str, int] = {}
        # category => token => frequency
        self._wordFrequencyCount: Dict[str, Dict[str, int]] = {}
        self._vocabulary: Dict[str, bool] = {}

    @property
    def categories(self) -> List[str]:
        """Known categories in learning order"""
        with self._lock:
            return list(self._docCount.keys())

    @property
    def hasCategories(self) -> bool:
        with self._lock:
            return bool(self._docCount)

    @property
    def vocabularySize(self) -> int:
        with self._lock:
            return len(self._vocabulary)

    def _initializeCategory(self, category: str) -> None:
        if category not in self._docCount:
            self._docCount[category] = 0
            self._wordCount[category] = 0
            self._wordFrequencyCount[category] = {}

    def learn(self, text: str, label: str) -> None:
        """
        Learn from a labelled message

        Args:
            text: Message text to learn from
            label: Category key (any string, usually "profane" or "clean")
        """
        if isinstance(label, Category):
            label = label.value
        frequencies = self.tokenizer.getTokenFrequencies(text)

        with self._lock:
            self._initializeCategory(label)
            self._docCount[label] += 1
            self._totalDocuments += 1

            categoryFrequencies = self._wordFrequencyCount[label]
            for token, count in frequencies.items():
                self._vocabulary[token] = True
                categoryFrequencies[token] = categoryFrequencies.get(token, 0) + count
                self._wordCount[label] += count

        logger.debug(f"Learned {label} message with {sum(frequencies.values())} tokens.")

    def batchLearn(
        self,
        examples: Iterable[TrainingExample],
        progressCallback: Optional[Callable[[int, int], None]] = None,
    ) -> Dict[str, int]:
        """
        Learn from multiple examples in batch

        Args:
            examples: Training examples
            progressCallback: Optional callback for progress updates (done, total)

        Returns:
            Dictionary with learning statistics
        """
        exampleList = list(examples)
        stats: Dict[str, int] = {"total": len(exampleList), "success": 0, "failed": 0}

        for i, example in enumerate(exampleList):
            try:
                self.learn(example.text, example.label)
                stats["success"] += 1
                stats[example.label] = stats.get(example.label, 0) + 1
            except Exception as e:
                logger.error(f"Failed to learn example #{i}: {e}")
                stats["failed"] += 1

            if progressCallback:
                progressCallback(i + 1, len(exampleList))

        logger.info(f"Batch learning completed: {stats}.")
        return stats

    def _tokenProbability(self, token: str, category: str) -> float:
        """P(token|category) with Laplace smoothing, caller must hold the lock"""
        frequency = self._wordFrequencyCount[category].get(token, 0)
        return (frequency + self.config.alpha) / (
            self._wordCount[category] + self.config.alpha * len(self._vocabulary)
        )

    def tokenProbability(self, token: str, category: str) -> float:
        """
        Smoothed probability of a token within a category

        Raises:
            KeyError: If category was never learned
        """
        with self._lock:
            return self._tokenProbability(token, category)

    def categoryLogProbabilities(self, text: str) -> Dict[str, float]:
        """
        Compute per-category log scores for a message

        log P(category) + sum(freq(token) * log P(token|category))

        Returns:
            category => log score (empty dict if nothing was learned)
        """
        frequencies = self.tokenizer.getTokenFrequencies(text)

        with self._lock:
            logProbs: Dict[str, float] = {}
            if self._totalDocuments == 0:
                return logProbs

            for category, docCount in self._docCount.items():
                logProbability = math.log(docCount / self._totalDocuments)
                for token, frequencyInText in frequencies.items():
                    logProbability += frequencyInText * math.log(self._tokenProbability(token, category))
                logProbs[category] = logProbability

        return logProbs

    @staticmethod
    def _softmax(logProbs: Dict[str, float]) -> Dict[str, float]:
        finite = {category: value for category, value in logProbs.items() if math.isfinite(value)}
        if not finite:
            return {category: 0.0 for category in logProbs}

        maxLogP = max(finite.values())
        exps = {category: math.exp(value - maxLogP) for category, value in finite.items()}
        total = sum(exps.values())

        return {category: exps.get(category, 0.0) / total for category in logProbs}

    def _chooseCategory(self, logProbs: Dict[str, float]) -> str:
        chosenCategory: Optional[str] = None
        maxLogP = -math.inf
        for category, logProbability in logProbs.items():
            if logProbability > maxLogP:
                maxLogP = logProbability
                chosenCategory = category

        if chosenCategory is None:
            logger.debug("No training data available, returning default category.")
            return self.config.defaultCategory
        return chosenCategory

    def _harmfulScore(self, logProbs: Dict[str, float]) -> float:
        probabilities = self._softmax(logProbs)
        if not probabilities:
            return 0.0

        score = probabilities.get(self.config.harmfulCategory, 0.0) * 100
        logger.debug(f"Confidence for {self.config.harmfulCategory}: {score:.2f}%.")
        return max(0.0, min(100.0, score))

    def categoryProbabilities(self, text: str) -> Dict[str, float]:
        """
        Convert per-category log scores into a probability distribution

        Uses the log-sum-exp trick (subtract the maximum before exponentiating)
        for numerical stability.
        """
        return self._softmax(self.categoryLogProbabilities(text))

    def classify(self, text: str) -> str:
        """
        Pick the most likely category for a message

        Args:
            text: Message text

        Returns:
            Category name, the default category if nothing was learned
        """
        return self._chooseCategory(self.categoryLogProbabilities(text))

    def confidence(self, text: str) -> float:
        """
        Harmful-category confidence for a message

        Args:
            text: Message text

        Returns:
            Probability of the harmful category scaled to 0-100, 0 if nothing was learned
        """
        return self._harmfulScore(self.categoryLogProbabilities(text))

    def score(self, text: str) -> Tuple[str, float]:
        """
        Category and harmful confidence computed from the same model state

        Returns:
            (classify() result, confidence() result) for one snapshot of the counts
        """
        logProbs = self.categoryLogProbabilities(text)
        return self._chooseCategory(logProbs), self._harmfulScore(logProbs)

    def getModelStats(self) -> ModelStats:
        """
        Get information about the current model

        Returns:
            ModelStats with model information
        """
        with self._lock:
            return ModelStats(
                documentCounts=dict(self._docCount),
                totalDocuments=self._totalDocuments,
                vocabularySize=len(self._vocabulary),
            )

    def reset(self) -> None:
        """Reset all learned statistics"""
        with self._lock:
            self._docCount.clear()
            self._totalDocuments = 0
            self._wordCount.clear()
            self._wordFrequencyCount.clear()
            self._vocabulary.clear()
        logger.info("Successfully reset Bayes classifier statistics.")

    def toDict(self) -> Dict[str, Any]:
        """
        Export the learned state as a JSON-compatible dictionary

        Returns:
            Dictionary with categories, document counts, word counts,
            token frequencies and vocabulary
        """
        with self._lock:
            return {
                "formatVersion": MODEL_FORMAT_VERSION,
                "options": {"alpha": self.config.alpha, "harmfulCategory": self.config.harmfulCategory},
                "categories": {category: True for category in self._docCount},
                "docCount": dict(self._docCount),
                "totalDocuments": self._totalDocuments,
                "vocabulary": list(self._vocabulary.keys()),
                "vocabularySize": len(self._vocabulary),
                "wordCount": dict(self._wordCount),
                "wordFrequencyCount": {
                    category: dict(frequencies) for category, frequencies in self._wordFrequencyCount.items()
                },
            }

    @classmethod
    def fromDict(cls, data: Dict[str, Any], config: Optional[BayesConfig] = None) -> "NaiveBayesClassifier":
        """
        Rebuild a classifier from toDict() output

        Unknown keys are ignored. The vocabulary may be a list or an object
        with tokens as keys.

        Raises:
            ModelStoreError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ModelStoreError(f"Model data must be an object, got {type(data).__name__}")

        if config is None:
            options = data.get("options") or {}
            config = BayesConfig(
                alpha=float(options.get("alpha", 1.0)),
                harmfulCategory=str(options.get("harmfulCategory", Category.PROFANE.value)),
            )

        classifier = cls(config)
        try:
            docCount = {str(k): int(v) for k, v in data["docCount"].items()}
            wordCount = {str(k): int(v) for k, v in data["wordCount"].items()}
            wordFrequencyCount = {
                str(category): {str(token): int(count) for token, count in frequencies.items()}
                for category, frequencies in data["wordFrequencyCount"].items()
            }
            vocabulary = data.get("vocabulary", [])
            if isinstance(vocabulary, dict):
                vocabulary = list(vocabulary.keys())
            totalDocuments = int(data.get("totalDocuments", sum(docCount.values())))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ModelStoreError(f"Malformed classifier model: {e}", originalError=e)

        # Keep the category order of the source model
        categories = data.get("categories")
        order = list(categories.keys()) if isinstance(categories, dict) else list(docCount.keys())
        for category in order:
            if category not in docCount:
                raise ModelStoreError(f"Category '{category}' has no document count")
            classifier._initializeCategory(category)
            classifier._docCount[category] = docCount[category]
            classifier._wordCount[category] = wordCount.get(category, 0)
            classifier._wordFrequencyCount[category] = wordFrequencyCount.get(category, {})

        classifier._totalDocuments = totalDocuments
        classifier._vocabulary = {str(token): True for token in vocabulary}
        # Tolerate models whose vocabulary list was dropped
        for frequencies in classifier._wordFrequencyCount.values():
            for token in frequencies:
                classifier._vocabulary[token] = True

        return classifier

    def toJson(self) -> str:
        return json.dumps(self.toDict(), ensure_ascii=False)

    @classmethod
    def fromJson(cls, blob: str, config: Optional[BayesConfig] = None) -> "NaiveBayesClassifier":
        """
        Rebuild a classifier from a JSON blob

        Raises:
            ModelStoreError: If blob is not valid JSON or not a model
        """
        try:
            data = json.loads(blob)
        except (TypeError, ValueError) as e:
            raise ModelStoreError(f"Classifier model is not valid JSON: {e}", originalError=e)
        return cls.fromDict(data, config)

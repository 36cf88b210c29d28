"""
Decision engine: maps classifier output to tiers and actions, dood!

Both classifiers are arbitrated here behind one evaluate() call. Threshold
knobs live in a single ModerationConfig passed in explicitly.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from .bayes_classifier import NaiveBayesClassifier
from .models import Category, ClassificationResult, ModerationAction, ModerationMode, ResultSource, Tier
from .stopwords import ALL_LANGUAGES, StopwordLanguage, parseLanguages
from .zero_shot import ZeroShotClassifier

logger = logging.getLogger(__name__)


@dataclass
class ModerationConfig:
    """
    Moderation knobs, all thresholds are on the 0-100 scale

    Attributes:
        mode: Which classifier drives the decision
        reportThreshold: Statistical score at or above which a message is reported
        blockThreshold: Statistical score at or above which a message is blocked
        neuralReportThreshold: Harmful score at or above which the neural result is medium
        neuralBlockThreshold: Harmful top-label score at or above which the neural result is high
        languages: Stopword languages used by the suspicious-word extractor
        trainingBatchSize: Moderation actions between model saves
        autoLoadNeural: Start loading the neural model on first neural-mode check
    """

    mode: ModerationMode = ModerationMode.STATISTICAL
    reportThreshold: float = 20.0
    blockThreshold: float = 90.0
    neuralReportThreshold: float = 30.0
    neuralBlockThreshold: float = 50.0
    languages: FrozenSet[StopwordLanguage] = field(default_factory=lambda: ALL_LANGUAGES)
    trainingBatchSize: int = 2
    autoLoadNeural: bool = False

    def __post_init__(self):
        """Validate configuration parameters"""
        self.mode = ModerationMode(self.mode)
        for name in ("reportThreshold", "blockThreshold", "neuralReportThreshold", "neuralBlockThreshold"):
            value = float(getattr(self, name))
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
            setattr(self, name, value)

        if self.reportThreshold > self.blockThreshold:
            raise ValueError("reportThreshold must not exceed blockThreshold.")
        if self.neuralReportThreshold > self.neuralBlockThreshold:
            raise ValueError("neuralReportThreshold must not exceed neuralBlockThreshold.")
        if self.trainingBatchSize < 1:
            raise ValueError("trainingBatchSize must be at least 1.")

        self.languages = frozenset(StopwordLanguage(language) for language in self.languages)

    @property
    def statMode(self) -> bool:
        return self.mode == ModerationMode.STATISTICAL

    @property
    def neuralMode(self) -> bool:
        return self.mode == ModerationMode.NEURAL

    def replace(self, **changes: Any) -> "ModerationConfig":
        """Copy with some fields changed, validated again"""
        return dataclasses.replace(self, **changes)

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "ModerationConfig":
        """
        Build config from the [moderation] TOML section

        Args:
            data: Section dict with kebab-case keys, unknown keys are ignored

        Raises:
            ValueError: If a value is out of range or unknown
        """
        defaults = cls()
        languages = data.get("languages")
        return cls(
            mode=ModerationMode(str(data.get("mode", defaults.mode.value)).lower()),
            reportThreshold=float(data.get("report-threshold", defaults.reportThreshold)),
            blockThreshold=float(data.get("block-threshold", defaults.blockThreshold)),
            neuralReportThreshold=float(data.get("neural-report-threshold", defaults.neuralReportThreshold)),
            neuralBlockThreshold=float(data.get("neural-block-threshold", defaults.neuralBlockThreshold)),
            languages=parseLanguages(languages) if languages is not None else defaults.languages,
            trainingBatchSize=int(data.get("training-batch-size", defaults.trainingBatchSize)),
            autoLoadNeural=bool(data.get("auto-load-neural", defaults.autoLoadNeural)),
        )

    def toDict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "report-threshold": self.reportThreshold,
            "block-threshold": self.blockThreshold,
            "neural-report-threshold": self.neuralReportThreshold,
            "neural-block-threshold": self.neuralBlockThreshold,
            "languages": sorted(language.value for language in self.languages),
            "training-batch-size": self.trainingBatchSize,
            "auto-load-neural": self.autoLoadNeural,
        }


def tierForScore(score: float, reportThreshold: float, blockThreshold: float) -> Tier:
    """
    Map a 0-100 score to a tier, boundaries are inclusive

    Returns:
        HIGH if score >= blockThreshold, MEDIUM if score >= reportThreshold, SAFE otherwise
    """
    if score >= blockThreshold:
        return Tier.HIGH
    if score >= reportThreshold:
        return Tier.MEDIUM
    return Tier.SAFE


_TIER_ACTIONS = {
    Tier.SAFE: ModerationAction.ALLOW,
    Tier.MEDIUM: ModerationAction.REPORT,
    Tier.HIGH: ModerationAction.BLOCK,
}


def actionForTier(tier: Tier) -> ModerationAction:
    return _TIER_ACTIONS[Tier(tier)]


class DecisionEngine:
    """
    Unifies statistical and neural scoring behind one interface

    In neural mode the neural result is used only while its model is ready,
    otherwise the statistical classifier answers. Evaluation never waits for
    a model load.
    """

    def __init__(
        self,
        statistical: NaiveBayesClassifier,
        neural: Optional[ZeroShotClassifier] = None,
        config: Optional[ModerationConfig] = None,
    ):
        self.statistical = statistical
        self.neural = neural
        self.config = config or ModerationConfig()
        self._pushNeuralThresholds()

    def _pushNeuralThresholds(self) -> None:
        if self.neural is not None:
            self.neural.updateThresholds(
                self.config.neuralReportThreshold / 100,
                self.config.neuralBlockThreshold / 100,
            )

    def updateConfig(self, config: ModerationConfig) -> None:
        self.config = config
        self._pushNeuralThresholds()
        logger.info(f"Moderation config updated: {config.toDict()}")

    def evaluateStatistical(self, text: str) -> ClassificationResult:
        """Score a message with the statistical classifier"""
        category, score = self.statistical.score(text)
        tier = tierForScore(score, self.config.reportThreshold, self.config.blockThreshold)
        return ClassificationResult(
            label=Category.PROFANE.value if tier != Tier.SAFE else Category.CLEAN.value,
            confidence=score,
            category=category,
            tier=tier,
            source=ResultSource.STATISTICAL,
        )

    async def evaluate(self, text: str, mode: Optional[ModerationMode] = None) -> ClassificationResult:
        """
        Score a message with the classifier selected by mode

        Args:
            text: Message text
            mode: Overrides the configured mode

        Returns:
            ClassificationResult from the neural classifier if requested and
            ready, from the statistical classifier otherwise
        """
        mode = ModerationMode(mode) if mode is not None else self.config.mode

        if mode == ModerationMode.NEURAL:
            if self.neural is not None and self.neural.isReady():
                return await self.neural.classify(text)
            logger.debug("Neural model is not ready, falling back to statistical classifier")

        return self.evaluateStatistical(text)

"""
Moderation service: the object the chat layer talks to

This module owns the statistical classifier, the optional zero-shot classifier
and the model store. It is constructed once at startup and passed around
explicitly, there is no process-wide instance.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Union

from lib.moderation import (
    DEFAULT_CANDIDATE_LABELS,
    CandidateLabelSet,
    Category,
    DecisionEngine,
    FSModelStoreBackend,
    LoadProgressEvent,
    LoadState,
    LoadStatus,
    ModelStore,
    ModelStoreError,
    ModerationConfig,
    ModerationConfigError,
    ModerationMode,
    ModerationVerdict,
    NaiveBayesClassifier,
    NullModelStoreBackend,
    TrainingDataError,
    TrainingExample,
    ZeroShotClassifier,
    ZeroShotConfig,
    actionForTier,
    extractSuspiciousWords,
    loadTrainingCorpusFile,
    parseTrainingCorpus,
)
from lib.moderation.model_store import DEFAULT_MODEL_KEY

if TYPE_CHECKING:
    from internal.config.manager import ConfigManager

logger = logging.getLogger(__name__)

TrainingBatchCallback = Callable[[int], None]


def buildModelStore(config: Dict[str, Any]) -> ModelStore:
    """
    Create a ModelStore from the [moderation.store] section

    Configuration format:
        {
            "type": "fs",  # or "null"
            "base-dir": "./data",
            "key": "classifier-model.json"
        }

    Raises:
        ModerationConfigError: If the store type is unknown or the backend cannot be created
    """
    storeType = config.get("type", "fs")
    key = config.get("key", DEFAULT_MODEL_KEY)

    if storeType == "null":
        logger.info("Using NullModelStoreBackend, model will not be persisted, dood!")
        return ModelStore(NullModelStoreBackend(), key=key)

    if storeType == "fs":
        baseDir = config.get("base-dir", "./data")
        try:
            backend = FSModelStoreBackend(baseDir)
        except ModelStoreError as e:
            raise ModerationConfigError(f"Failed to initialize model store: {e}") from e
        logger.info(f"Using FSModelStoreBackend with base-dir: {baseDir}")
        return ModelStore(backend, key=key)

    raise ModerationConfigError(f"Unknown model store type: {storeType}")


def buildZeroShotClassifier(config: Dict[str, Any]) -> Optional[ZeroShotClassifier]:
    """
    Create a ZeroShotClassifier from the [moderation.neural] section

    Nothing is loaded here. Thresholds are pushed later by the DecisionEngine.

    Returns:
        The classifier, None if the neural classifier is disabled

    Raises:
        ModerationConfigError: If candidate labels are inconsistent
    """
    if not config.get("enabled", True):
        logger.info("Neural classifier is disabled")
        return None

    defaults = ZeroShotConfig()
    try:
        labels = config.get("labels")
        if labels is not None:
            candidateLabels = CandidateLabelSet(
                labels=tuple(labels),
                harmful=frozenset(config.get("harmful-labels", [])),
                benign=config.get("benign-label", ""),
            )
        else:
            candidateLabels = DEFAULT_CANDIDATE_LABELS

        zeroShotConfig = ZeroShotConfig(
            modelName=config.get("model", defaults.modelName),
            hypothesisTemplate=config.get("hypothesis-template", defaults.hypothesisTemplate),
            candidateLabels=candidateLabels,
            device=config.get("device", defaults.device),
            cacheDir=config.get("cache-dir", defaults.cacheDir),
        )
    except ValueError as e:
        raise ModerationConfigError(f"Invalid neural classifier configuration: {e}") from e

    return ZeroShotClassifier(zeroShotConfig)


class ModerationService:
    """
    Moderation entry point for the chat layer.

    Usage:
        service = ModerationService.fromConfigManager(configManager)
        service.initialize()

        verdict = await service.checkMessage("some text")
        if verdict.action == ModerationAction.BLOCK:
            ...

        # Teacher actions feed back into the statistical model
        service.blacklistWord("badword")
        service.whitelistWord("goodword")

    Every trainingBatchSize training actions the model is saved and the
    onTrainingBatch callback is called with the number of actions in the batch.
    """

    def __init__(
        self,
        config: ModerationConfig,
        store: ModelStore,
        zeroShot: Optional[ZeroShotClassifier] = None,
        trainingBatchSize: Optional[int] = None,
        bootstrapFiles: Sequence[Union[str, Path]] = (),
    ):
        """
        Initialize moderation service

        Args:
            config: Moderation configuration
            store: Model store for the statistical classifier
            zeroShot: Optional neural classifier (not loaded yet)
            trainingBatchSize: Training actions between saves, config value if None
            bootstrapFiles: Corpus files used to train when nothing is stored
        """
        self.config = config
        self.store = store
        self.zeroShot = zeroShot
        self.trainingBatchSize = trainingBatchSize or config.trainingBatchSize
        self.bootstrapFiles = list(bootstrapFiles)

        self.classifier = NaiveBayesClassifier(store.bayesConfig)
        self.engine = DecisionEngine(self.classifier, zeroShot, config)
        self.onTrainingBatch: Optional[TrainingBatchCallback] = None

        self._batchLock = threading.Lock()
        self._pendingActions = 0
        self._backgroundLoad: Optional[asyncio.Task] = None
        self.initialized = False

    @classmethod
    def fromConfigManager(cls, configManager: "ConfigManager") -> "ModerationService":
        """
        Build the service from application configuration

        Raises:
            ModerationConfigError: If any moderation section is invalid
        """
        try:
            config = ModerationConfig.fromDict(configManager.getModerationConfig())
        except (TypeError, ValueError) as e:
            raise ModerationConfigError(f"Invalid moderation configuration: {e}") from e

        return cls(
            config=config,
            store=buildModelStore(configManager.getModelStoreConfig()),
            zeroShot=buildZeroShotClassifier(configManager.getNeuralConfig()),
            bootstrapFiles=configManager.getTrainingConfig().get("corpus-files", []),
        )

    def initialize(self) -> None:
        """
        Restore the statistical model from the store

        If nothing is stored (or the stored model is unreadable), trains from
        the bootstrap corpus files and saves the result.
        """
        model: Optional[NaiveBayesClassifier] = None
        try:
            model = self.store.load()
        except ModelStoreError as e:
            logger.error(f"Failed to restore classifier model, starting from scratch: {e}")

        if model is not None:
            self._setClassifier(model)
        else:
            trained = 0
            for path in self.bootstrapFiles:
                try:
                    examples = loadTrainingCorpusFile(path)
                except TrainingDataError as e:
                    logger.error(f"Skipping bootstrap corpus: {e}")
                    continue
                trained += self.classifier.batchLearn(examples)["success"]

            if trained:
                logger.info(f"Bootstrapped classifier with {trained} examples, dood!")
                self.saveModel()

        self.initialized = True
        stats = self.classifier.getModelStats()
        logger.info(
            f"ModerationService initialized: mode={self.config.mode.value}, "
            f"documents={stats.totalDocuments}, vocabulary={stats.vocabularySize}"
        )

    def _setClassifier(self, classifier: NaiveBayesClassifier) -> None:
        self.classifier = classifier
        self.engine.statistical = classifier

    def _maybeStartNeuralLoad(self) -> None:
        if not self.config.autoLoadNeural or self.zeroShot is None:
            return
        if self.zeroShot.getLoadState().status != LoadStatus.IDLE:
            return

        logger.info("Starting background neural model load, dood!")
        self._backgroundLoad = asyncio.get_running_loop().create_task(self.zeroShot.loadModel())

    async def checkMessage(self, text: str, mode: Optional[ModerationMode] = None) -> ModerationVerdict:
        """
        Classify a message and decide what to do with it

        Never waits for the neural model: until it is ready the statistical
        classifier answers.

        Args:
            text: Message text
            mode: Overrides the configured mode

        Returns:
            ModerationVerdict with the result, action and suspicious words (flagged messages only)
        """
        mode = ModerationMode(mode) if mode is not None else self.config.mode
        if mode == ModerationMode.NEURAL:
            self._maybeStartNeuralLoad()

        result = await self.engine.evaluate(text, mode)
        action = actionForTier(result.tier)

        suspiciousWords = set()
        if result.isProfane:
            suspiciousWords = extractSuspiciousWords(text, self.config.languages)
            logger.info(
                f"Message flagged: tier={result.tier.value}, confidence={result.confidence:.1f}, "
                f"source={result.source.value}, words={sorted(suspiciousWords)}"
            )

        return ModerationVerdict(result=result, action=action, suspiciousWords=suspiciousWords)

    def learn(self, text: str, label: Union[str, Category]) -> None:
        """
        Train the statistical classifier with one labelled example

        Raises:
            ValueError: If text is empty or label is invalid
        """
        example = TrainingExample(text=text, label=label)
        self.classifier.learn(example.text, example.label)

        with self._batchLock:
            self._pendingActions += 1
            if self._pendingActions < self.trainingBatchSize:
                return
            batchSize = self._pendingActions
            self._pendingActions = 0

        self._flushTrainingBatch(batchSize)

    def blacklistWord(self, word: str) -> None:
        """Teacher action: mark word as profane"""
        self.learn(word, Category.PROFANE)
        logger.info(f"Blacklisted '{word}'")

    def whitelistWord(self, word: str) -> None:
        """Teacher action: mark word as clean"""
        self.learn(word, Category.CLEAN)
        logger.info(f"Whitelisted '{word}'")

    def _flushTrainingBatch(self, batchSize: int) -> None:
        try:
            self.saveModel()
        except ModelStoreError as e:
            logger.error(f"Failed to save classifier after training batch: {e}")
            with self._batchLock:
                self._pendingActions += batchSize
            return

        logger.info(f"Training batch of {batchSize} actions saved, dood!")
        if self.onTrainingBatch is not None:
            self.onTrainingBatch(batchSize)

    def importCorpus(self, data: Union[dict, list]) -> Dict[str, int]:
        """
        Bulk-train from a corpus document and save the model

        Returns:
            Learning statistics (total, success, failed, per label counts)

        Raises:
            TrainingDataError: If the document structure is unusable
        """
        return self._learnAndSave(parseTrainingCorpus(data))

    def importCorpusFile(self, path: Union[str, Path]) -> Dict[str, int]:
        """Same as importCorpus() for a JSON file"""
        return self._learnAndSave(loadTrainingCorpusFile(path))

    def _learnAndSave(self, examples: List[TrainingExample]) -> Dict[str, int]:
        stats = self.classifier.batchLearn(examples)
        self.saveModel()
        with self._batchLock:
            self._pendingActions = 0
        return stats

    def saveModel(self) -> str:
        """
        Persist the statistical model

        Raises:
            ModelStoreError: If the backend write fails
        """
        return self.store.save(self.classifier)

    def updateConfig(self, config: ModerationConfig) -> None:
        """Apply new thresholds, mode, languages and training batch size"""
        self.config = config
        self.trainingBatchSize = config.trainingBatchSize
        self.engine.updateConfig(config)

    async def loadNeuralModel(self, onProgress: Optional[Callable[[LoadProgressEvent], None]] = None) -> bool:
        """
        Load the neural model, joining an in-flight load if there is one

        Returns:
            True if the model is ready, False if disabled, failed or cancelled
        """
        if self.zeroShot is None:
            logger.warning("Neural classifier is disabled, nothing to load")
            return False
        return await self.zeroShot.loadModel(onProgress)

    def unloadNeuralModel(self) -> None:
        if self.zeroShot is not None:
            self.zeroShot.unload()

    def cancelNeuralLoad(self) -> bool:
        if self.zeroShot is None:
            return False
        return self.zeroShot.cancelLoad()

    def getNeuralLoadState(self) -> LoadState:
        if self.zeroShot is None:
            return LoadState(status=LoadStatus.IDLE, progress=0)
        return self.zeroShot.getLoadState()

    def getStatus(self) -> Dict[str, Any]:
        """
        Get a JSON-compatible snapshot of the service state

        Returns:
            Dict with config, statistical model stats and neural load state
        """
        stats = self.classifier.getModelStats()
        neuralState = self.getNeuralLoadState()
        with self._batchLock:
            pending = self._pendingActions

        neural: Dict[str, Any] = {
            "enabled": self.zeroShot is not None,
            "status": neuralState.status.value,
            "progress": neuralState.progress,
        }
        if self.zeroShot is not None:
            neural["model"] = self.zeroShot.config.modelName

        statistical: Dict[str, Any] = {
            "documentCounts": stats.documentCounts,
            "totalDocuments": stats.totalDocuments,
            "vocabularySize": stats.vocabularySize,
        }
        categories: List[str] = list(stats.categories)

        return {
            "initialized": self.initialized,
            "config": self.config.toDict(),
            "statistical": statistical,
            "categories": categories,
            "neural": neural,
            "pendingTrainingActions": pending,
        }

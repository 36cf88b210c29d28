"""
Zero-shot neural classifier, dood!

Wraps a natural-language-inference model (Hugging Face transformers
"zero-shot-classification" pipeline) that scores a message against a fixed
set of candidate labels.

Model lifecycle:
    idle -> loading -> ready
                    -> failed -> loading (explicit retry)
    ready -> idle (unload)

Loading is single-flight: every concurrent loadModel() call awaits the same
in-flight task and receives the same result. The transformers runtime is
imported only inside the loader, so nothing heavy is imported until the first
load is requested.
"""

import asyncio
import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from .exceptions import LoadCancelledError, ModelLoadError
from .models import (
    DEFAULT_CANDIDATE_LABELS,
    CandidateLabelSet,
    Category,
    ClassificationResult,
    LoadProgressEvent,
    LoadState,
    LoadStatus,
    ResultSource,
    Tier,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "MoritzLaurer/mDeBERTa-v3-base-mnli-xnli"
DEFAULT_HYPOTHESIS_TEMPLATE = "This message contains {}."

ProgressCallback = Callable[[LoadProgressEvent], None]
# (progress, status, file)
ProgressReporter = Callable[[int, str, Optional[str]], None]


@dataclass(frozen=True)
class ZeroShotConfig:
    """Configuration for the zero-shot classifier"""

    modelName: str = DEFAULT_MODEL_NAME
    hypothesisTemplate: str = DEFAULT_HYPOTHESIS_TEMPLATE
    candidateLabels: CandidateLabelSet = DEFAULT_CANDIDATE_LABELS
    # Harmful top-label score at or above this => high tier (0-1)
    highThreshold: float = 0.50
    # Harmful score at or above this => medium tier (0-1)
    lowThreshold: float = 0.30
    # Passed to transformers.pipeline(), None lets transformers decide
    device: Optional[str] = None
    cacheDir: Optional[str] = None

    def __post_init__(self):
        if not (0 <= self.lowThreshold <= 1) or not (0 <= self.highThreshold <= 1):
            raise ValueError("Zero-shot thresholds must be between 0 and 1.")
        if self.lowThreshold > self.highThreshold:
            raise ValueError("Zero-shot low threshold must not exceed the high threshold.")
        if "{}" not in self.hypothesisTemplate:
            raise ValueError("Hypothesis template must contain a '{}' placeholder.")


class CancellationToken:
    """Cooperative cancellation flag checked by loaders between load phases"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raiseIfCancelled(self) -> None:
        if self._event.is_set():
            raise LoadCancelledError("Model load cancelled")


ModelLoader = Callable[[ZeroShotConfig, ProgressReporter, CancellationToken], Callable[..., Any]]


def loadTransformersPipeline(
    config: ZeroShotConfig, report: ProgressReporter, cancelToken: CancellationToken
) -> Callable[..., Any]:
    """
    Download the model and build a transformers zero-shot pipeline

    Runs in a worker thread. Progress:
        5       importing the runtime
        10-80   downloading model files
        85      building the pipeline

    Raises:
        ModelLoadError: If the model cannot be downloaded or initialized
        LoadCancelledError: If cancelToken was cancelled between phases
    """
    report(5, "importing", None)
    try:
        from huggingface_hub import snapshot_download
        from tqdm.auto import tqdm
        from transformers import pipeline
    except ImportError as e:
        raise ModelLoadError(f"Neural runtime is not installed: {e}") from e
    cancelToken.raiseIfCancelled()

    class DownloadProgress(tqdm):
        def update(self, n=1):
            displayed = super().update(n)
            if self.total:
                report(10 + int(70 * self.n / self.total), "downloading", self.desc or None)
            return displayed

    report(10, "downloading", config.modelName)
    try:
        localPath = snapshot_download(
            repo_id=config.modelName,
            cache_dir=config.cacheDir,
            tqdm_class=DownloadProgress,
        )
    except Exception as e:
        raise ModelLoadError(f"Failed to download model {config.modelName}: {e}") from e
    cancelToken.raiseIfCancelled()

    report(85, "initializing", None)
    try:
        classifier = pipeline("zero-shot-classification", model=localPath, tokenizer=localPath, device=config.device)
    except Exception as e:
        raise ModelLoadError(f"Failed to initialize model {config.modelName}: {e}") from e
    cancelToken.raiseIfCancelled()

    return classifier


class ZeroShotClassifier:
    """
    Zero-shot moderation classifier with an explicit load lifecycle

    Classification fails open: while the model is not ready, or when inference
    raises, classify() returns a safe result instead of raising.

    Example:
        >>> classifier = ZeroShotClassifier()
        >>> await classifier.loadModel(lambda event: print(event.progress))
        >>> result = await classifier.classify("some message")
        >>> result.tier, result.category
        (<Tier.SAFE: 'safe'>, 'normal conversation')
    """

    def __init__(self, config: Optional[ZeroShotConfig] = None, loader: Optional[ModelLoader] = None):
        """
        Initialize classifier, nothing is loaded until loadModel() is called

        Args:
            config: Classifier configuration
            loader: Callable building the inference pipeline, runs in a worker thread
        """
        self.config = config or ZeroShotConfig()
        self._loader: ModelLoader = loader or loadTransformersPipeline
        self._pipeline: Optional[Callable[..., Any]] = None
        self._status = LoadStatus.IDLE
        self._progress = 0
        self._loadTask: Optional["asyncio.Task[bool]"] = None
        self._cancelToken: Optional[CancellationToken] = None
        self._progressListeners: List[ProgressCallback] = []
        # Number of underlying load operations started
        self.loadAttempts = 0

    def isReady(self) -> bool:
        return self._status == LoadStatus.READY and self._pipeline is not None

    def isLoading(self) -> bool:
        return self._status == LoadStatus.LOADING

    def getLoadProgress(self) -> int:
        return self._progress

    def getLoadState(self) -> LoadState:
        return LoadState(status=self._status, progress=self._progress)

    def updateThresholds(self, lowThreshold: float, highThreshold: float) -> None:
        """Replace decision thresholds (0-1 scale)"""
        self.config = dataclasses.replace(self.config, lowThreshold=lowThreshold, highThreshold=highThreshold)

    async def loadModel(self, onProgress: Optional[ProgressCallback] = None) -> bool:
        """
        Load the model, sharing an in-flight load with concurrent callers

        Args:
            onProgress: Optional callback receiving LoadProgressEvent updates
                        and a final "ready" event

        Returns:
            True if the model is ready, False if loading failed or was cancelled
        """
        if self.isReady():
            if onProgress is not None:
                self._notify(onProgress, LoadProgressEvent(status="ready", progress=100))
            return True

        if onProgress is not None:
            self._progressListeners.append(onProgress)

        task = self._loadTask
        if task is None:
            task = self._startLoad()
        else:
            logger.debug("Model load already in progress, joining it, dood!")

        try:
            # Shielded: a caller giving up must not abort the shared load
            return await asyncio.shield(task)
        finally:
            if onProgress is not None and onProgress in self._progressListeners:
                self._progressListeners.remove(onProgress)

    def _startLoad(self) -> "asyncio.Task[bool]":
        self._status = LoadStatus.LOADING
        self._progress = 0
        self.loadAttempts += 1
        token = CancellationToken()
        self._cancelToken = token
        task = asyncio.get_running_loop().create_task(self._runLoad(token))
        self._loadTask = task
        return task

    async def _runLoad(self, token: CancellationToken) -> bool:
        loop = asyncio.get_running_loop()

        def report(progress: int, status: str, file: Optional[str] = None) -> None:
            loop.call_soon_threadsafe(self._reportProgress, token, progress, status, file)

        logger.info(f"Loading zero-shot model {self.config.modelName}...")
        try:
            pipeline = await asyncio.to_thread(self._loader, self.config, report, token)
        except LoadCancelledError:
            logger.info("Zero-shot model load cancelled")
            if self._cancelToken is token:
                self._resetState()
            return False
        except Exception as e:
            logger.error(f"Failed to load zero-shot model: {e}")
            if self._cancelToken is token:
                self._status = LoadStatus.FAILED
                self._loadTask = None
                self._cancelToken = None
            return False

        if self._cancelToken is not token or token.cancelled:
            # Unloaded or cancelled while the last phase was running
            logger.info("Discarding zero-shot model loaded after cancellation")
            if self._cancelToken is token:
                self._resetState()
            return False

        self._pipeline = pipeline
        self._status = LoadStatus.READY
        self._progress = 100
        self._loadTask = None
        self._cancelToken = None
        self._broadcast(LoadProgressEvent(status="ready", progress=100))
        logger.info("Zero-shot model loaded successfully, dood!")
        return True

    def _reportProgress(self, token: CancellationToken, progress: int, status: str, file: Optional[str]) -> None:
        if token is not self._cancelToken:
            return
        # Monotonic, 100 is reserved for the final ready event
        self._progress = max(self._progress, min(99, max(0, int(progress))))
        self._broadcast(LoadProgressEvent(status=status, progress=self._progress, file=file))
        logger.debug(f"Zero-shot model {status}: {self._progress}%")

    def _broadcast(self, event: LoadProgressEvent) -> None:
        for listener in list(self._progressListeners):
            self._notify(listener, event)

    def _notify(self, listener: ProgressCallback, event: LoadProgressEvent) -> None:
        try:
            listener(event)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def _resetState(self) -> None:
        self._pipeline = None
        self._status = LoadStatus.IDLE
        self._progress = 0
        self._loadTask = None
        self._cancelToken = None

    def cancelLoad(self) -> bool:
        """
        Request cooperative cancellation of the in-flight load

        The loader stops at its next checkpoint and the state returns to idle.

        Returns:
            True if a load was in flight
        """
        if self._status != LoadStatus.LOADING or self._cancelToken is None:
            return False
        self._cancelToken.cancel()
        logger.info("Zero-shot model load cancellation requested")
        return True

    def unload(self) -> None:
        """Discard the model and any in-flight load, state returns to idle"""
        if self._cancelToken is not None:
            self._cancelToken.cancel()
        self._resetState()
        self._progressListeners.clear()
        logger.info("Zero-shot model unloaded")

    def decide(self, labels: Sequence[str], scores: Sequence[float]) -> ClassificationResult:
        """
        Map ranked zero-shot scores to a tiered result

        Args:
            labels: Candidate labels
            scores: Scores (0-1) matching labels

        Returns:
            ClassificationResult with confidence = max harmful score * 100
        """
        candidates = self.config.candidateLabels
        ranked = sorted(zip(labels, scores), key=lambda item: item[1], reverse=True)
        if not ranked:
            return ClassificationResult.safeDefault(category=candidates.benign)

        topLabel, topScore = ranked[0]
        maxHarmful = max((score for label, score in ranked if candidates.isHarmful(label)), default=0.0)
        topHarmful = candidates.isHarmful(topLabel)

        tier = Tier.SAFE
        if topHarmful and topScore >= self.config.highThreshold:
            tier = Tier.HIGH
        elif topHarmful and topScore >= self.config.lowThreshold:
            tier = Tier.MEDIUM
        elif topLabel != candidates.benign and maxHarmful >= self.config.lowThreshold:
            tier = Tier.MEDIUM

        return ClassificationResult(
            label=Category.PROFANE.value if tier != Tier.SAFE else Category.CLEAN.value,
            confidence=maxHarmful * 100,
            category=topLabel,
            tier=tier,
            source=ResultSource.NEURAL,
        )

    async def classify(self, text: str) -> ClassificationResult:
        """
        Classify a message against the candidate labels

        Never raises: returns a safe result while the model is not ready and a
        safe error-tagged result when inference fails.
        """
        if not self.isReady():
            return ClassificationResult.safeDefault(category="unknown")

        if not text or not text.strip():
            return ClassificationResult.safeDefault(category=self.config.candidateLabels.benign)

        pipeline = self._pipeline
        try:
            output = await asyncio.to_thread(
                pipeline,
                text,
                candidate_labels=list(self.config.candidateLabels.labels),
                hypothesis_template=self.config.hypothesisTemplate,
                multi_label=False,
            )
            result = self.decide(output["labels"], output["scores"])
        except Exception as e:
            logger.error(f"Zero-shot classification failed: {e}")
            return ClassificationResult.safeDefault(category="error", error=str(e))

        logger.debug(
            f"Zero-shot classification: '{text[:30]}' -> {result.category} "
            f"({result.confidence:.0f}%), tier={result.tier.value}"
        )
        return result

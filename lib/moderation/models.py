"""
Data models and types for the moderation engine, dood!

This module defines the core data structures shared by the statistical
classifier, the zero-shot classifier and the decision engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Set, Tuple


class Category(str, Enum):
    """Labels learned by the statistical classifier"""

    PROFANE = "profane"
    CLEAN = "clean"


class Tier(str, Enum):
    """Severity tier assigned to every classification"""

    SAFE = "safe"
    MEDIUM = "medium"
    HIGH = "high"


class ModerationAction(str, Enum):
    """What the chat layer should do with a message"""

    ALLOW = "allow"
    REPORT = "report"
    BLOCK = "block"


class ModerationMode(str, Enum):
    """Which classifier drives the decision"""

    STATISTICAL = "statistical"
    NEURAL = "neural"


class LoadStatus(str, Enum):
    """Lifecycle of the neural model"""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ResultSource(str, Enum):
    STATISTICAL = "statistical"
    NEURAL = "neural"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of classifying a single message"""

    label: str  # "profane" or "clean"
    confidence: float  # Harmful confidence (0-100)
    category: str  # Category or top candidate label
    tier: Tier
    source: ResultSource = ResultSource.STATISTICAL
    error: Optional[str] = None

    def __post_init__(self):
        """Keep confidence inside the valid range"""
        object.__setattr__(self, "confidence", max(0.0, min(100.0, float(self.confidence))))

    @property
    def isProfane(self) -> bool:
        return self.tier != Tier.SAFE

    @classmethod
    def safeDefault(
        cls, category: str = "unknown", source: ResultSource = ResultSource.NEURAL, error: Optional[str] = None
    ) -> "ClassificationResult":
        """Neutral result used when a classifier cannot answer"""
        return cls(
            label=Category.CLEAN.value,
            confidence=0.0,
            category=category,
            tier=Tier.SAFE,
            source=source,
            error=error,
        )

    def toDict(self) -> Dict[str, object]:
        return {
            "label": self.label,
            "confidence": self.confidence,
            "category": self.category,
            "tier": self.tier.value,
            "isProfane": self.isProfane,
            "source": self.source.value,
            "error": self.error,
        }


@dataclass
class ModerationVerdict:
    """Classification plus the action and words a moderator should look at"""

    result: ClassificationResult
    action: ModerationAction
    suspiciousWords: Set[str] = field(default_factory=set)

    def toDict(self) -> Dict[str, object]:
        ret = self.result.toDict()
        ret["action"] = self.action.value
        ret["suspiciousWords"] = sorted(self.suspiciousWords)
        return ret


@dataclass
class TrainingExample:
    """Training example for the statistical classifier"""

    text: str
    label: str

    def __post_init__(self):
        """Validate training example"""
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValueError("Training text cannot be empty, dood!")
        if isinstance(self.label, Category):
            self.label = self.label.value
        if not isinstance(self.label, str) or not self.label:
            raise ValueError("Training label must be a non-empty string")


@dataclass
class ModelStats:
    """Overall statistics for the statistical model"""

    documentCounts: Dict[str, int]
    totalDocuments: int
    vocabularySize: int

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self.documentCounts.keys())

    def ratio(self, category: str) -> float:
        """Share of training documents labelled with category"""
        if self.totalDocuments == 0:
            return 0.0
        return self.documentCounts.get(category, 0) / self.totalDocuments


@dataclass(frozen=True)
class LoadState:
    """Snapshot of the neural model load state"""

    status: LoadStatus
    progress: int


@dataclass(frozen=True)
class LoadProgressEvent:
    """Progress notification sent to loadModel() callers"""

    status: str  # importing, downloading, initializing, ready
    progress: int  # 0-100
    file: Optional[str] = None


@dataclass(frozen=True)
class CandidateLabelSet:
    """
    Ordered zero-shot candidate labels.

    A subset of the labels is harmful, exactly one label is the benign one.
    """

    labels: Tuple[str, ...]
    harmful: FrozenSet[str]
    benign: str

    def __post_init__(self):
        if self.benign not in self.labels:
            raise ValueError(f"Benign label '{self.benign}' is not a candidate label")
        if not self.harmful:
            raise ValueError("At least one harmful label is required")
        unknown = set(self.harmful) - set(self.labels)
        if unknown:
            raise ValueError(f"Harmful labels {sorted(unknown)} are not candidate labels")
        if self.benign in self.harmful:
            raise ValueError("Benign label cannot be harmful")

    def isHarmful(self, label: str) -> bool:
        return label in self.harmful


DEFAULT_CANDIDATE_LABELS = CandidateLabelSet(
    labels=(
        "profanity",
        "offensive language",
        "harassment",
        "inappropriate content",
        "normal conversation",
    ),
    harmful=frozenset({"profanity", "offensive language", "harassment", "inappropriate content"}),
    benign="normal conversation",
)

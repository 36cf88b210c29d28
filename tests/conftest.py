"""
Pytest configuration and common fixtures for ClassGuard tests.

This module provides shared fixtures for testing the moderation service and
configuration. All fixtures follow camelCase naming convention.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import Mock

import pytest

from lib.moderation import (
    FSModelStoreBackend,
    ModelStore,
    ModerationConfig,
    NullModelStoreBackend,
    ZeroShotClassifier,
)

# ============================================================================
# Fakes
# ============================================================================


class FakeZeroShotPipeline:
    """Stands in for a transformers zero-shot pipeline."""

    def __init__(self, scores: Optional[Dict[str, float]] = None):
        self.scores = scores or {"profanity": 0.8, "normal conversation": 0.2}
        self.calls: List[str] = []

    def __call__(self, text: str, candidate_labels, hypothesis_template: str, multi_label: bool):
        self.calls.append(text)
        ranked = sorted(self.scores.items(), key=lambda item: item[1], reverse=True)
        return {"sequence": text, "labels": [label for label, _ in ranked], "scores": [score for _, score in ranked]}


class FakeModelLoader:
    """Injected loader, counts how many real loads were started."""

    def __init__(self, pipeline: FakeZeroShotPipeline):
        self.pipeline = pipeline
        self.calls = 0

    def __call__(self, config, report, cancelToken):
        self.calls += 1
        report(10, "downloading", "model.safetensors")
        cancelToken.raiseIfCancelled()
        report(85, "initializing", None)
        return self.pipeline


# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def tempDir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def corpusFile(tempDir: Path) -> Path:
    """
    Write a small blacklist/whitelist corpus.

    Returns:
        Path: Path to the JSON corpus file
    """
    data = {
        "blacklist": [{"word": word} for word in ["μαλάκας", "βλάκας", "ηλίθιος", "malakas", "vlakas"]],
        "whitelist": [
            {"word": word}
            for word in ["καλημέρα σε όλους", "ευχαριστώ πολύ", "καλό μάθημα", "good morning", "kalimera"]
        ],
    }
    path = tempDir / "corpus.json"
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


# ============================================================================
# Moderation Fixtures
# ============================================================================


@pytest.fixture
def fsModelStore(tempDir: Path) -> ModelStore:
    """ModelStore persisting into a temporary directory."""
    return ModelStore(FSModelStoreBackend(str(tempDir / "models")))


@pytest.fixture
def nullModelStore() -> ModelStore:
    return ModelStore(NullModelStoreBackend())


@pytest.fixture
def moderationConfig() -> ModerationConfig:
    return ModerationConfig()


@pytest.fixture
def fakePipeline() -> FakeZeroShotPipeline:
    return FakeZeroShotPipeline()


@pytest.fixture
def fakeLoader(fakePipeline: FakeZeroShotPipeline) -> FakeModelLoader:
    return FakeModelLoader(fakePipeline)


@pytest.fixture
def zeroShot(fakeLoader: FakeModelLoader) -> ZeroShotClassifier:
    """Neural classifier with the fake loader, not loaded yet."""
    return ZeroShotClassifier(loader=fakeLoader)


@pytest.fixture
def mockConfigManager() -> Mock:
    """
    Create a mock ConfigManager returning moderation sections.

    Example:
        def testSomething(mockConfigManager):
            mockConfigManager.getModerationConfig.return_value = {"mode": "neural"}
    """
    mock = Mock()
    sections: Dict[str, Any] = {
        "getModerationConfig": {},
        "getNeuralConfig": {"enabled": False},
        "getModelStoreConfig": {"type": "null"},
        "getTrainingConfig": {},
        "getLoggingConfig": {},
    }
    for name, value in sections.items():
        getattr(mock, name).return_value = value
    return mock

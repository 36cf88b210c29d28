"""
Model store for the statistical classifier

Serializes the learned classifier state into a self-describing JSON blob and
keeps it in a pluggable backend. The stored blob is the only source of truth
across restarts, training happens incrementally on top of it.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .bayes_classifier import BayesConfig, NaiveBayesClassifier
from .exceptions import ModelStoreError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_KEY = "classifier-model.json"


class AbstractModelStoreBackend(ABC):
    """
    Abstract base class for model store backends.

    Implementations should wrap backend-specific errors in ModelStoreError.
    """

    @abstractmethod
    def put(self, key: str, blob: str) -> None:
        """
        Store the blob under key, overwriting any previous value

        Raises:
            ModelStoreError: If the write fails
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under key

        Returns:
            The blob, None if nothing is stored

        Raises:
            ModelStoreError: If the read fails (not for missing keys)
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove the blob stored under key

        Returns:
            True if something was deleted
        """
        pass


class FSModelStoreBackend(AbstractModelStoreBackend):
    """
    Filesystem-based model store backend.

    Stores each blob as a UTF-8 file in baseDir. Writes go to a temporary
    file first and are renamed into place, so a crash never leaves a
    half-written model behind.

    Example:
        >>> backend = FSModelStoreBackend("./data")
        >>> backend.put("classifier-model.json", "{}")
        >>> backend.get("classifier-model.json")
        '{}'
    """

    def __init__(self, baseDir: str):
        """
        Initialize filesystem backend.

        Args:
            baseDir: Directory for model files (created if needed)

        Raises:
            ModelStoreError: If baseDir cannot be created or is not a directory
        """
        self.baseDir = Path(baseDir)

        try:
            self.baseDir.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            raise ModelStoreError(f"Failed to create model directory '{baseDir}': {e}", originalError=e)

        if not self.baseDir.is_dir():
            raise ModelStoreError(f"Model path '{baseDir}' exists but is not a directory")

    def _getFilePath(self, key: str) -> Path:
        name = Path(key).name
        if not name or name in (".", "..") or name != key:
            raise ModelStoreError(f"Invalid model key '{key}'")
        return self.baseDir / name

    def put(self, key: str, blob: str) -> None:
        filePath = self._getFilePath(key)
        tempPath = filePath.with_suffix(filePath.suffix + ".tmp")

        try:
            with open(tempPath, "w", encoding="utf-8") as f:
                f.write(blob)
            os.chmod(tempPath, 0o644)
            tempPath.replace(filePath)
        except Exception as e:
            if tempPath.exists():
                try:
                    tempPath.unlink()
                except OSError as cleanupError:
                    logger.warning(f"Failed to remove temporary model file {tempPath}: {cleanupError}")

            raise ModelStoreError(f"Failed to store model '{key}': {e}", originalError=e)

    def get(self, key: str) -> Optional[str]:
        filePath = self._getFilePath(key)

        if not filePath.exists():
            return None

        try:
            # utf-8-sig tolerates files saved with a BOM by other tools
            with open(filePath, "r", encoding="utf-8-sig") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except Exception as e:
            raise ModelStoreError(f"Failed to read model '{key}': {e}", originalError=e)

    def delete(self, key: str) -> bool:
        filePath = self._getFilePath(key)
        try:
            filePath.unlink()
            return True
        except FileNotFoundError:
            return False
        except Exception as e:
            raise ModelStoreError(f"Failed to delete model '{key}': {e}", originalError=e)


class NullModelStoreBackend(AbstractModelStoreBackend):
    """
    No-op backend: nothing is persisted, every read misses.

    Useful for ephemeral deployments and tests.
    """

    def put(self, key: str, blob: str) -> None:
        logger.debug(f"NullModelStoreBackend: discarding model '{key}' ({len(blob)} chars)")

    def get(self, key: str) -> Optional[str]:
        return None

    def delete(self, key: str) -> bool:
        return False


class ModelStore:
    """
    Saves and restores NaiveBayesClassifier state

    Usage:
        store = ModelStore(FSModelStoreBackend("./data"))
        blob = store.save(classifier)
        restored = store.load()          # from the backend
        restored = store.load(blob)      # from an explicit blob
    """

    def __init__(
        self,
        backend: Optional[AbstractModelStoreBackend] = None,
        key: str = DEFAULT_MODEL_KEY,
        bayesConfig: Optional[BayesConfig] = None,
    ):
        self.backend = backend or NullModelStoreBackend()
        self.key = key
        self.bayesConfig = bayesConfig

    @staticmethod
    def dumps(model: NaiveBayesClassifier) -> str:
        """Serialize a classifier into a JSON blob"""
        return model.toJson()

    @staticmethod
    def loads(blob: str, bayesConfig: Optional[BayesConfig] = None) -> NaiveBayesClassifier:
        """
        Rebuild a classifier from a JSON blob

        Raises:
            ModelStoreError: If the blob is not a valid model
        """
        return NaiveBayesClassifier.fromJson(blob, bayesConfig)

    def save(self, model: NaiveBayesClassifier) -> str:
        """
        Serialize the classifier and write it to the backend

        Returns:
            The stored blob

        Raises:
            ModelStoreError: If the backend write fails
        """
        blob = self.dumps(model)
        self.backend.put(self.key, blob)
        stats = model.getModelStats()
        logger.info(
            f"Saved classifier model '{self.key}': {stats.totalDocuments} documents, "
            f"vocabulary {stats.vocabularySize}, dood!"
        )
        return blob

    def load(self, blob: Optional[str] = None) -> Optional[NaiveBayesClassifier]:
        """
        Restore a classifier

        Args:
            blob: Explicit blob to restore, reads the backend if None

        Returns:
            Restored classifier, None if the backend has no stored model

        Raises:
            ModelStoreError: If the blob is malformed or the backend read fails
        """
        if blob is None:
            blob = self.backend.get(self.key)
            if blob is None:
                logger.info(f"No stored classifier model '{self.key}' found")
                return None

        model = self.loads(blob, self.bayesConfig)
        logger.info(f"Loaded classifier model '{self.key}' with categories {model.categories}")
        return model

    def clear(self) -> bool:
        """Remove the stored model"""
        return self.backend.delete(self.key)

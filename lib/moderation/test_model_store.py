"""
Tests for the model store and its backends.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from .bayes_classifier import NaiveBayesClassifier
from .exceptions import ModelStoreError
from .model_store import DEFAULT_MODEL_KEY, FSModelStoreBackend, ModelStore, NullModelStoreBackend

HELD_OUT_TEXTS = ["μαλάκες", "σπίτι", "καλημέρα σε όλους", "vlakas", "good morning", ""]


def buildModel() -> NaiveBayesClassifier:
    classifier = NaiveBayesClassifier()
    for text in ["μαλάκας", "βλάκας", "malakas"]:
        classifier.learn(text, "profane")
    for text in ["καλημέρα", "ευχαριστώ πολύ", "good morning"]:
        classifier.learn(text, "clean")
    return classifier


class TestFSModelStoreBackend(unittest.TestCase):
    """Test suite for FSModelStoreBackend."""

    def setUp(self):
        self.tempDir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tempDir, ignore_errors=True)

    def testCreatesDirectory(self):
        nested = os.path.join(self.tempDir, "nested", "models")
        FSModelStoreBackend(nested)
        self.assertTrue(Path(nested).is_dir())

    def testPathIsFile(self):
        filePath = os.path.join(self.tempDir, "file.txt")
        Path(filePath).write_text("x")
        with self.assertRaises(ModelStoreError):
            FSModelStoreBackend(filePath)

    def testPutGetDelete(self):
        backend = FSModelStoreBackend(self.tempDir)
        self.assertIsNone(backend.get("model.json"))

        backend.put("model.json", '{"a": "μ"}')
        self.assertEqual(backend.get("model.json"), '{"a": "μ"}')
        self.assertFalse(Path(self.tempDir, "model.json.tmp").exists())

        backend.put("model.json", "{}")
        self.assertEqual(backend.get("model.json"), "{}")

        self.assertTrue(backend.delete("model.json"))
        self.assertFalse(backend.delete("model.json"))
        self.assertIsNone(backend.get("model.json"))

    def testBomTolerated(self):
        Path(self.tempDir, "model.json").write_bytes(b"\xef\xbb\xbf{}")
        self.assertEqual(FSModelStoreBackend(self.tempDir).get("model.json"), "{}")

    def testInvalidKeys(self):
        backend = FSModelStoreBackend(self.tempDir)
        for key in ["", "..", "../escape.json", "dir/model.json"]:
            with self.assertRaises(ModelStoreError, msg=key):
                backend.put(key, "{}")

    def testFailedWriteKeepsPreviousModel(self):
        """A failing replace leaves the old file intact and no temp file behind."""
        backend = FSModelStoreBackend(self.tempDir)
        backend.put("model.json", "old")

        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with self.assertRaises(ModelStoreError) as context:
                backend.put("model.json", "new")

        self.assertIsInstance(context.exception.originalError, OSError)
        self.assertEqual(backend.get("model.json"), "old")
        self.assertFalse(Path(self.tempDir, "model.json.tmp").exists())


class TestNullModelStoreBackend(unittest.TestCase):
    def testNothingPersisted(self):
        backend = NullModelStoreBackend()
        backend.put("model.json", "{}")
        self.assertIsNone(backend.get("model.json"))
        self.assertFalse(backend.delete("model.json"))


class TestModelStore(unittest.TestCase):
    """Test suite for ModelStore."""

    def setUp(self):
        self.tempDir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tempDir, ignore_errors=True)

    def assertSameBehaviour(self, original: NaiveBayesClassifier, restored: NaiveBayesClassifier):
        for text in HELD_OUT_TEXTS:
            self.assertEqual(restored.classify(text), original.classify(text), text)
            self.assertEqual(restored.confidence(text), original.confidence(text), text)

    def testDefaultsToNullBackend(self):
        store = ModelStore()
        self.assertIsInstance(store.backend, NullModelStoreBackend)
        self.assertEqual(store.key, DEFAULT_MODEL_KEY)
        self.assertIsNone(store.load())

    def testSaveReturnsBlob(self):
        store = ModelStore(FSModelStoreBackend(self.tempDir))
        model = buildModel()

        blob = store.save(model)

        self.assertEqual(json.loads(blob)["totalDocuments"], 6)
        self.assertEqual(Path(self.tempDir, DEFAULT_MODEL_KEY).read_text(encoding="utf-8"), blob)

    def testRoundTripThroughBackend(self):
        model = buildModel()
        ModelStore(FSModelStoreBackend(self.tempDir)).save(model)

        # Fresh store instance, as after a restart
        restored = ModelStore(FSModelStoreBackend(self.tempDir)).load()

        self.assertIsNotNone(restored)
        self.assertSameBehaviour(model, restored)

    def testLoadExplicitBlob(self):
        model = buildModel()
        store = ModelStore()
        restored = store.load(ModelStore.dumps(model))
        self.assertSameBehaviour(model, restored)
        self.assertSameBehaviour(model, ModelStore.loads(store.save(model)))

    def testLoadMissing(self):
        self.assertIsNone(ModelStore(FSModelStoreBackend(self.tempDir)).load())

    def testLoadCorrupted(self):
        Path(self.tempDir, DEFAULT_MODEL_KEY).write_text("{truncated", encoding="utf-8")
        with self.assertRaises(ModelStoreError):
            ModelStore(FSModelStoreBackend(self.tempDir)).load()

    def testClear(self):
        store = ModelStore(FSModelStoreBackend(self.tempDir), key="other.json")
        store.save(buildModel())
        self.assertTrue(store.clear())
        self.assertIsNone(store.load())


if __name__ == "__main__":
    unittest.main()

"""
Tests for the Naive Bayes classifier.

Covers learning, scoring bounds, morphological generalization, batch learning
and serialization round-trips.
"""

import json
import math
import threading
import unittest

from .bayes_classifier import BayesConfig, NaiveBayesClassifier
from .exceptions import ModelStoreError
from .models import Category, TrainingExample

HELD_OUT_TEXTS = [
    "μαλάκες",
    "σπίτι",
    "καλημέρα παιδιά",
    "you are stupid",
    "good morning",
    "",
    "κάτι εντελώς καινούργιο",
    "malakas",
]


def buildGreekModel() -> NaiveBayesClassifier:
    classifier = NaiveBayesClassifier()
    classifier.learn("μαλάκας", "profane")
    for text in ["καλημέρα", "ευχαριστώ πολύ", "τι ώρα είναι", "πάμε για καφέ", "καλό μάθημα"]:
        classifier.learn(text, "clean")
    return classifier


class TestBayesConfig(unittest.TestCase):
    """Test suite for BayesConfig validation."""

    def testDefaults(self):
        config = BayesConfig()
        self.assertEqual(config.alpha, 1.0)
        self.assertEqual(config.harmfulCategory, "profane")
        self.assertIsNotNone(config.tokenizerConfig)

    def testInvalidAlpha(self):
        with self.assertRaises(ValueError):
            BayesConfig(alpha=0)


class TestEmptyModel(unittest.TestCase):
    """A model without categories classifies everything as clean."""

    def testClassifyDefault(self):
        classifier = NaiveBayesClassifier()
        self.assertEqual(classifier.classify("anything at all"), "clean")
        self.assertEqual(classifier.classify(""), "clean")

    def testConfidenceZero(self):
        classifier = NaiveBayesClassifier()
        self.assertEqual(classifier.confidence("anything"), 0.0)
        self.assertFalse(classifier.hasCategories)

    def testProbabilitiesEmpty(self):
        self.assertEqual(NaiveBayesClassifier().categoryProbabilities("text"), {})


class TestLearning(unittest.TestCase):
    """Test suite for learn()."""

    def testCountsUpdated(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("cats", "profane")
        classifier.learn("hi", "clean")
        classifier.learn("dogs", "clean")

        stats = classifier.getModelStats()
        self.assertEqual(stats.documentCounts, {"profane": 1, "clean": 2})
        self.assertEqual(stats.totalDocuments, 3)
        # cat ats cats + hi + dog ogs dogs
        self.assertEqual(stats.vocabularySize, 7)
        self.assertEqual(classifier.categories, ["profane", "clean"])

    def testAnyStringIsCategory(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("hello", "greeting")
        self.assertEqual(classifier.classify("hello"), "greeting")

    def testCategoryEnumAccepted(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("bad word", Category.PROFANE)
        self.assertEqual(classifier.categories, ["profane"])

    def testTokenProbabilityLaplace(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("cats", "profane")
        classifier.learn("dogs", "clean")
        # vocabulary: cat ats cats dog ogs dogs
        self.assertAlmostEqual(classifier.tokenProbability("cat", "profane"), (1 + 1) / (3 + 6))
        self.assertAlmostEqual(classifier.tokenProbability("cat", "clean"), (0 + 1) / (3 + 6))

    def testLogProbabilitiesUsePrior(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("cats", "profane")
        classifier.learn("dogs", "clean")
        classifier.learn("birds", "clean")
        logProbs = classifier.categoryLogProbabilities("")
        self.assertAlmostEqual(logProbs["profane"], math.log(1 / 3))
        self.assertAlmostEqual(logProbs["clean"], math.log(2 / 3))

    def testConcurrentLearns(self):
        """Serialized learns never lose updates."""
        classifier = NaiveBayesClassifier()

        def worker(label: str):
            for i in range(200):
                classifier.learn(f"word{i}", label)

        threads = [threading.Thread(target=worker, args=(label,)) for label in ["profane", "clean"] * 2]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = classifier.getModelStats()
        self.assertEqual(stats.totalDocuments, 800)
        self.assertEqual(stats.documentCounts, {"profane": 400, "clean": 400})

    def testReset(self):
        classifier = buildGreekModel()
        classifier.reset()
        self.assertFalse(classifier.hasCategories)
        self.assertEqual(classifier.confidence("μαλάκας"), 0.0)


class TestScoring(unittest.TestCase):
    """Test suite for classify() and confidence()."""

    def testConfidenceBounds(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("bad", "profane")
        classifier.learn("good", "clean")
        for text in ["bad", "good", "", "bad bad bad bad bad", "completely unrelated text", "ok"]:
            score = classifier.confidence(text)
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 100.0)

    def testHarmfulScoresHigher(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("bad", "profane")
        classifier.learn("good", "clean")
        self.assertGreater(classifier.confidence("bad"), classifier.confidence("good"))
        self.assertEqual(classifier.classify("bad"), "profane")
        self.assertEqual(classifier.classify("good"), "clean")

    def testMorphologicalGeneralization(self):
        """Plural form shares trigrams with the learned singular."""
        classifier = buildGreekModel()
        self.assertGreater(classifier.confidence("μαλάκες"), classifier.confidence("σπίτι"))
        self.assertEqual(classifier.classify("μαλάκες"), "profane")

    def testTieGoesToFirstCategory(self):
        classifier = NaiveBayesClassifier()
        classifier.learn("aaa", "profane")
        classifier.learn("bbb", "clean")
        # Unseen token, equal priors and equal word counts
        self.assertEqual(classifier.classify("zzz"), "profane")
        self.assertAlmostEqual(classifier.confidence("zzz"), 50.0)

    def testProbabilitiesSumToOne(self):
        classifier = buildGreekModel()
        probabilities = classifier.categoryProbabilities("μαλάκες καλημέρα")
        self.assertAlmostEqual(sum(probabilities.values()), 1.0)

    def testLongMessageStable(self):
        """Very long messages do not overflow the softmax."""
        classifier = buildGreekModel()
        score = classifier.confidence("μαλάκας " * 5000)
        self.assertTrue(math.isfinite(score))
        self.assertGreater(score, 50.0)

    def testTokensAfterLongFillerCount(self):
        """Every token of a long message contributes to the score."""
        classifier = buildGreekModel()
        filler = "καλημέρα " * 300
        padded = filler + "μαλάκας " * 20

        def margin(text: str) -> float:
            logProbs = classifier.categoryLogProbabilities(text)
            return logProbs["profane"] - logProbs["clean"]

        self.assertGreater(margin(padded), margin(filler))
        self.assertGreaterEqual(classifier.confidence(padded), classifier.confidence(filler))
        self.assertEqual(classifier.classify(filler + "μαλάκας " * 1500), "profane")

    def testScoreMatchesClassifyAndConfidence(self):
        classifier = buildGreekModel()
        for text in ["μαλάκα", "καλημέρα", "τι ώρα είναι μαλάκα", ""]:
            self.assertEqual(classifier.score(text), (classifier.classify(text), classifier.confidence(text)))
        self.assertEqual(NaiveBayesClassifier().score("anything"), ("clean", 0.0))


class TestBatchLearn(unittest.TestCase):
    """Test suite for batchLearn()."""

    def testStatsAndProgress(self):
        classifier = NaiveBayesClassifier()
        progress = []
        examples = [
            TrainingExample("μαλάκας", "profane"),
            TrainingExample("καλημέρα", "clean"),
            TrainingExample("ηλίθιος", "profane"),
        ]

        stats = classifier.batchLearn(examples, lambda done, total: progress.append((done, total)))

        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["success"], 3)
        self.assertEqual(stats["failed"], 0)
        self.assertEqual(stats["profane"], 2)
        self.assertEqual(stats["clean"], 1)
        self.assertEqual(progress, [(1, 3), (2, 3), (3, 3)])

    def testEmptyBatch(self):
        stats = NaiveBayesClassifier().batchLearn([])
        self.assertEqual(stats, {"total": 0, "success": 0, "failed": 0})


class TestSerialization(unittest.TestCase):
    """Test suite for toDict()/fromDict() and JSON round-trips."""

    def assertSameBehaviour(self, original: NaiveBayesClassifier, restored: NaiveBayesClassifier):
        for text in HELD_OUT_TEXTS:
            self.assertEqual(restored.classify(text), original.classify(text), text)
            self.assertEqual(restored.confidence(text), original.confidence(text), text)

    def testJsonRoundTrip(self):
        original = buildGreekModel()
        restored = NaiveBayesClassifier.fromJson(original.toJson())
        self.assertSameBehaviour(original, restored)
        self.assertEqual(restored.getModelStats(), original.getModelStats())
        self.assertEqual(restored.categories, original.categories)

    def testBlobFields(self):
        data = json.loads(buildGreekModel().toJson())
        for key in [
            "categories",
            "docCount",
            "totalDocuments",
            "vocabulary",
            "vocabularySize",
            "wordCount",
            "wordFrequencyCount",
            "formatVersion",
        ]:
            self.assertIn(key, data)
        self.assertEqual(data["docCount"], {"profane": 1, "clean": 5})
        self.assertEqual(data["vocabularySize"], len(data["vocabulary"]))

    def testIncrementalTrainingAfterRestore(self):
        original = buildGreekModel()
        restored = NaiveBayesClassifier.fromJson(original.toJson())
        original.learn("βλάκας", "profane")
        restored.learn("βλάκας", "profane")
        self.assertSameBehaviour(original, restored)

    def testExtraKeysIgnored(self):
        data = buildGreekModel().toDict()
        data["somethingNew"] = {"nested": True}
        restored = NaiveBayesClassifier.fromDict(data)
        self.assertEqual(restored.getModelStats().totalDocuments, 6)

    def testVocabularyAsObject(self):
        """Vocabulary stored as an object with token keys is accepted."""
        original = buildGreekModel()
        data = original.toDict()
        data["vocabulary"] = {token: True for token in data["vocabulary"]}
        self.assertSameBehaviour(original, NaiveBayesClassifier.fromDict(data))

    def testEmptyModelRoundTrip(self):
        restored = NaiveBayesClassifier.fromJson(NaiveBayesClassifier().toJson())
        self.assertFalse(restored.hasCategories)
        self.assertEqual(restored.classify("x"), "clean")

    def testMalformedBlob(self):
        with self.assertRaises(ModelStoreError):
            NaiveBayesClassifier.fromJson("not json")
        with self.assertRaises(ModelStoreError):
            NaiveBayesClassifier.fromJson("[]")
        with self.assertRaises(ModelStoreError):
            NaiveBayesClassifier.fromJson('{"docCount": {"profane": 1}}')

    def testUnknownCategoryInOrder(self):
        data = buildGreekModel().toDict()
        data["categories"]["ghost"] = True
        with self.assertRaises(ModelStoreError):
            NaiveBayesClassifier.fromDict(data)


if __name__ == "__main__":
    unittest.main()

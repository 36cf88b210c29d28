"""
Moderation service package

This package wires the moderation library into the application: it owns the
statistical classifier, the optional neural classifier and the model store.
"""

from .service import ModerationService, buildModelStore, buildZeroShotClassifier

__all__ = ["ModerationService", "buildModelStore", "buildZeroShotClassifier"]

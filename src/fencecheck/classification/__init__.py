"""Language classification of fenced code block content."""

from fencecheck.classification.engine import (
    ExternalClassifier,
    LanguageClassifier,
)
from fencecheck.classification.heuristics import classify_heuristic
from fencecheck.classification.ollama import OllamaClassifier
from fencecheck.classification.reconcile import reconcile

__all__ = [
    "ExternalClassifier",
    "LanguageClassifier",
    "OllamaClassifier",
    "classify_heuristic",
    "reconcile",
]

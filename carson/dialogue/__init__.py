"""Utterance routing: interaction classification, struggle and intent detection."""

from carson.dialogue.detectors import detect_conversational_intent, is_conversational, is_struggling
from carson.dialogue.interaction import InteractionClassifier
from carson.dialogue.responses import compose_reasoning

__all__ = [
    "InteractionClassifier",
    "compose_reasoning",
    "detect_conversational_intent",
    "is_conversational",
    "is_struggling",
]

"""
Core Module - Shared domain models and policies.

Components:
- models: Immutable session, subtopic and triaging values
- requirements: Per-subtopic question budgets
- exceptions: Error types raised across the engine
"""

from carson.core.exceptions import CarsonError, MalformedModelOutputError, ModelUnavailableError
from carson.core.models import (
    AnswerQuality,
    AssessmentPhase,
    AssessmentResult,
    ClinicalReasoningScore,
    CompletionReason,
    ConversationalIntent,
    Gap,
    GapAnalysis,
    GapSeverity,
    InteractionClassification,
    IntentType,
    InteractionType,
    MasteryStatus,
    Message,
    NextAction,
    Session,
    SessionUpdate,
    Subtopic,
    SubtopicRequirements,
    SubtopicState,
    TriagingStatus,
    TriagingStatusDelta,
)
from carson.core.requirements import DEFAULT_REQUIREMENTS, requirements_for

__all__ = [
    # Enums
    "AnswerQuality",
    "AssessmentPhase",
    "CompletionReason",
    "GapSeverity",
    "IntentType",
    "InteractionType",
    "MasteryStatus",
    "NextAction",
    "SubtopicState",
    # Values
    "AssessmentResult",
    "ClinicalReasoningScore",
    "ConversationalIntent",
    "Gap",
    "GapAnalysis",
    "InteractionClassification",
    "Message",
    "Session",
    "SessionUpdate",
    "Subtopic",
    "SubtopicRequirements",
    "TriagingStatus",
    "TriagingStatusDelta",
    # Policy
    "DEFAULT_REQUIREMENTS",
    "requirements_for",
    # Errors
    "CarsonError",
    "MalformedModelOutputError",
    "ModelUnavailableError",
]

"""
Session driving.

Components:
- pipeline: TurnPipeline (one utterance to one AssessmentResult) and SessionManager
- transitions: Counter updates, subtopic transitions, transition lines
- retention: Retention question policy
"""

from carson.session.pipeline import SessionManager, TurnOutcome, TurnPipeline
from carson.session.retention import RetentionPolicy, RetentionTest
from carson.session.transitions import transition_to_next_subtopic, update_session_after_assessment

__all__ = [
    "RetentionPolicy",
    "RetentionTest",
    "SessionManager",
    "TurnOutcome",
    "TurnPipeline",
    "transition_to_next_subtopic",
    "update_session_after_assessment",
]

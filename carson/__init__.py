"""
Carson: adaptive medical tutoring triage engine.

Decides, turn by turn, how a tutor should respond to a medical student:
route the utterance, grade it, find and rank knowledge gaps, and move
through each subtopic's triaging phases until it is mastered or its
question budget runs out.

Subpackages:
- core/: Session model, requirement policy, exceptions
- dialogue/: Interaction classifier, struggle and conversational detectors
- assessment/: Answer grading and clinical reasoning scoring
- adaptive/: Gap analysis, gap prioritization, triaging state machine
- session/: Turn pipeline, subtopic transitions, retention questions
- integrations/: Language-model gateway and output parsing
- cli/: Terminal commands
"""

__version__ = "1.0.0"

"""
Core data model for the triage engine.

Sessions, subtopics and triaging progress are plain immutable values. Every
turn produces new values (or partial updates to merge) instead of mutating
what the caller holds, so two sessions never share state and an abandoned
turn never leaves a half-applied update behind.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Literal


class AnswerQuality(str, Enum):
    """Five-point grade for a substantive answer."""
    EXCELLENT = "excellent"
    GOOD = "good"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    CONFUSED = "confused"

    @property
    def is_correct(self) -> bool:
        return self in (AnswerQuality.EXCELLENT, AnswerQuality.GOOD)


class NextAction(str, Enum):
    """What the tutor should do after this turn."""
    CONTINUE_CONVERSATION = "continue_conversation"
    GIVE_CUE = "give_cue"
    EXPLAIN = "explain"
    CHECK_UNDERSTANDING = "check_understanding"
    COMPLETE_SUBTOPIC = "complete_subtopic"


class AssessmentPhase(str, Enum):
    """Phases of the per-subtopic triaging state machine."""
    INITIAL_ASSESSMENT = "initial_assessment"
    TARGETED_REMEDIATION = "targeted_remediation"
    APPLICATION = "application"
    GAP_ACKNOWLEDGMENT = "gap_acknowledgment"
    COMPLETE = "complete"


class InteractionType(str, Enum):
    """How a student utterance should be routed."""
    MEDICAL_RESPONSE = "medical_response"         # Normal learning answer
    EMOTIONAL_SUPPORT = "emotional_support"       # Frustrated or stressed
    GIVE_UP = "give_up"                           # Avoidance, wants to quit
    PERSONAL_CASUAL = "personal_casual"           # Questions about the tutor
    MEDICAL_ADVICE = "medical_advice"             # Seeking personal advice
    CHALLENGE_AUTHORITY = "challenge_authority"   # Disagreeing with the tutor
    META_LEARNING = "meta_learning"               # Study strategy questions
    TECHNICAL_ISSUE = "technical_issue"           # Platform problems
    OFF_TOPIC = "off_topic"                       # Medical, but not this topic


class IntentType(str, Enum):
    """What an ungraded, conversational utterance is after."""
    DEFINITION = "definition"
    MECHANISM = "mechanism"
    TIMEFRAME = "timeframe"
    COMPARISON = "comparison"
    CLARIFICATION = "clarification"
    EXAMPLE = "example"
    UNCERTAIN_ANSWER = "uncertain_answer"   # Hesitant attempt at the tutor's question
    OFF_TOPIC = "off_topic"
    ASSESSMENT_RESPONSE = "assessment_response"


class MasteryStatus(str, Enum):
    """Mastery status of a subtopic."""
    UNASSESSED = "unassessed"
    GAP = "gap"
    SHAKY = "shaky"
    UNDERSTOOD = "understood"


class SubtopicState(str, Enum):
    """Coarse conversational state within the current subtopic."""
    ASSESSING = "assessing"
    EXPLAINING = "explaining"
    CHECKING = "checking"
    COMPLETE = "complete"


class CompletionReason(str, Enum):
    """Why a subtopic was completed."""
    MASTERY = "mastery"                     # All triaging work serviced
    BUDGET_EXHAUSTED = "budget_exhausted"   # Escape valve fired


class GapSeverity(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    MINOR = "minor"


@dataclass(frozen=True)
class Message:
    """One conversation record."""
    role: Literal["user", "assistant"]
    content: str

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)


@dataclass(frozen=True)
class SubtopicRequirements:
    """Per-subtopic question budget."""
    max_questions: int = 8
    min_questions_for_mastery: int = 3
    must_test_application: bool = True


@dataclass(frozen=True)
class Gap:
    """A single knowledge gap with its severity bucket."""
    description: str
    severity: GapSeverity


@dataclass(frozen=True)
class GapAnalysis:
    """Knowledge gaps found in an answer, bucketed by severity."""
    critical_gaps: tuple[str, ...] = ()
    important_gaps: tuple[str, ...] = ()
    minor_gaps: tuple[str, ...] = ()
    strength_areas: tuple[str, ...] = ()

    @property
    def remediable_gaps(self) -> tuple[str, ...]:
        """Gaps that can be marked addressed (critical and important)."""
        return self.critical_gaps + self.important_gaps

    def gaps(self) -> list[Gap]:
        """Flatten into severity-tagged gaps, most severe first."""
        return (
            [Gap(g, GapSeverity.CRITICAL) for g in self.critical_gaps]
            + [Gap(g, GapSeverity.IMPORTANT) for g in self.important_gaps]
            + [Gap(g, GapSeverity.MINOR) for g in self.minor_gaps]
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "criticalGaps": list(self.critical_gaps),
            "importantGaps": list(self.important_gaps),
            "minorGaps": list(self.minor_gaps),
            "strengthAreas": list(self.strength_areas),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GapAnalysis:
        """
        Build from model JSON.

        Any field that is not a list becomes empty, and non-string entries
        are dropped.
        """
        def _strings(key: str) -> tuple[str, ...]:
            value = data.get(key)
            if not isinstance(value, list):
                return ()
            return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())

        return cls(
            critical_gaps=_strings("criticalGaps"),
            important_gaps=_strings("importantGaps"),
            minor_gaps=_strings("minorGaps"),
            strength_areas=_strings("strengthAreas"),
        )


def _ordered_union(existing: tuple[str, ...], added: Iterable[str]) -> tuple[str, ...]:
    merged = list(existing)
    for item in added:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


@dataclass(frozen=True)
class TriagingStatusDelta:
    """
    Partial update to a TriagingStatus produced by one turn.

    Gap lists hold only what this turn adds. The delta is built once per
    turn and merged in a single call.
    """
    questions_used: int
    has_initial_assessment: bool = False
    gap_analysis: GapAnalysis | None = None
    addressed_gaps: tuple[str, ...] = ()
    acknowledged_gaps: tuple[str, ...] = ()
    has_tested_application: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TriagingStatus:
    """Accumulated triaging progress for one subtopic."""
    has_initial_assessment: bool = False
    gap_analysis: GapAnalysis | None = None
    addressed_gaps: tuple[str, ...] = ()
    acknowledged_gaps: tuple[str, ...] = ()
    questions_used: int = 0
    has_tested_application: bool = False

    @classmethod
    def initial(cls) -> TriagingStatus:
        """Fresh status for a subtopic that has not been assessed yet."""
        return cls()

    @property
    def gaps(self) -> GapAnalysis:
        return self.gap_analysis or GapAnalysis()

    def unaddressed(self, gaps: Iterable[str]) -> list[str]:
        return [gap for gap in gaps if gap not in self.addressed_gaps]

    def merge(self, delta: TriagingStatusDelta) -> TriagingStatus:
        """
        Return a new status with the delta applied.

        Merging is idempotent: gap lists are order-preserving unions,
        counters take the maximum and flags never switch back off.
        """
        gap_analysis = delta.gap_analysis if delta.gap_analysis is not None else self.gap_analysis
        addressed = _ordered_union(self.addressed_gaps, delta.addressed_gaps)
        if gap_analysis is not None:
            remediable = set(gap_analysis.remediable_gaps)
            addressed = tuple(gap for gap in addressed if gap in remediable)

        return replace(
            self,
            has_initial_assessment=self.has_initial_assessment or delta.has_initial_assessment,
            gap_analysis=gap_analysis,
            addressed_gaps=addressed,
            acknowledged_gaps=_ordered_union(self.acknowledged_gaps, delta.acknowledged_gaps),
            questions_used=max(self.questions_used, delta.questions_used),
            has_tested_application=self.has_tested_application or delta.has_tested_application,
        )


@dataclass(frozen=True)
class Subtopic:
    """An atomic learning unit within a topic."""
    title: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    status: MasteryStatus = MasteryStatus.UNASSESSED
    questions_asked: int = 0
    correct_answers: int = 0
    needs_explanation: bool = False
    triaging_status: TriagingStatus = field(default_factory=TriagingStatus.initial)


@dataclass(frozen=True)
class SessionUpdate:
    """Partial update to a Session. None means unchanged."""
    subtopics: tuple[Subtopic, ...] | None = None
    current_subtopic_index: int | None = None
    history: tuple[Message, ...] | None = None
    is_complete: bool | None = None
    questions_asked_in_current_subtopic: int | None = None
    correct_answers_in_current_subtopic: int | None = None
    subtopic_state: SubtopicState | None = None

    def changed_fields(self) -> dict[str, Any]:
        return {name: value for name, value in self.__dict__.items() if value is not None}


@dataclass(frozen=True)
class Session:
    """A tutoring session over one topic."""
    topic: str
    subtopics: tuple[Subtopic, ...] = ()
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    current_subtopic_index: int = 0
    history: tuple[Message, ...] = ()
    is_complete: bool = False
    questions_asked_in_current_subtopic: int = 0
    correct_answers_in_current_subtopic: int = 0
    subtopic_state: SubtopicState = SubtopicState.ASSESSING

    @classmethod
    def create(cls, topic: str, subtopic_titles: Iterable[str], session_id: str | None = None) -> Session:
        subtopics = tuple(Subtopic(title=title) for title in subtopic_titles)
        if session_id is None:
            return cls(topic=topic, subtopics=subtopics)
        return cls(topic=topic, subtopics=subtopics, session_id=session_id)

    @property
    def index_in_range(self) -> bool:
        return 0 <= self.current_subtopic_index < len(self.subtopics)

    @property
    def clamped_index(self) -> int:
        """Current subtopic index forced into the valid range."""
        if not self.subtopics:
            return 0
        return min(max(self.current_subtopic_index, 0), len(self.subtopics) - 1)

    @property
    def current_subtopic(self) -> Subtopic | None:
        if not self.subtopics:
            return None
        return self.subtopics[self.clamped_index]

    @property
    def last_tutor_message(self) -> str:
        for message in reversed(self.history):
            if message.role == "assistant":
                return message.content
        return ""

    def with_implicit_subtopic(self) -> Session:
        """The topic itself becomes the only subtopic when none were given."""
        if self.subtopics:
            return self
        return replace(self, subtopics=(Subtopic(title=self.topic),), current_subtopic_index=0)

    def with_message(self, message: Message) -> Session:
        return replace(self, history=self.history + (message,))

    def with_subtopic(self, index: int, subtopic: Subtopic) -> tuple[Subtopic, ...]:
        """Subtopic tuple with one entry replaced."""
        return self.subtopics[:index] + (subtopic,) + self.subtopics[index + 1:]

    def apply(self, update: SessionUpdate) -> Session:
        """Merge a partial update in one step."""
        return replace(self, **update.changed_fields())


@dataclass(frozen=True)
class InteractionClassification:
    """Routing decision for one utterance."""
    type: InteractionType
    confidence: float
    requires_assessment: bool
    suggested_response: str | None = None


@dataclass(frozen=True)
class ConversationalIntent:
    """Typed reading of a conversational turn, so the flow can resume afterwards."""
    type: IntentType
    confidence: float
    extracted_query: str | None = None
    requires_contextual_answer: bool = False
    should_return_to_flow: bool = False
    interrupted_question: str | None = None  # Tutor question to re-ask after answering

    @property
    def should_resume_question(self) -> bool:
        return self.interrupted_question is not None


@dataclass(frozen=True)
class ClinicalReasoningScore:
    """Heuristic measure of clinical reasoning language in an answer."""
    score: float                       # 0-1
    reasoning_type: str
    sophistication_level: Literal["novice", "intermediate", "advanced"]
    clinical_thinking: tuple[str, ...] = ()
    evidence: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class AssessmentResult:
    """Everything the rendering and persistence layers need from one turn."""
    quality: AnswerQuality | None      # None when routed as a non-learning interaction
    next_action: NextAction
    reasoning: str
    interaction_type: InteractionType = InteractionType.MEDICAL_RESPONSE
    is_struggling: bool = False
    specific_gaps: str | None = None
    phase: AssessmentPhase | None = None
    status_update: TriagingStatusDelta | None = None
    clinical_reasoning: ClinicalReasoningScore | None = None
    completion_reason: CompletionReason | None = None
    surfaced_gaps: tuple[str, ...] = ()  # Prioritized, at most 5

    @property
    def was_assessed(self) -> bool:
        return self.quality is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("quality", "next_action", "interaction_type", "phase", "completion_reason"):
            value = getattr(self, key)
            data[key] = value.value if value is not None else None
        return data

"""
Triaging Orchestrator: the per-subtopic state machine.

Phases:
    initial_assessment -> targeted_remediation -> application
        -> gap_acknowledgment -> complete

Every turn evaluates a fixed list of rules and the first one that applies
decides the phase and next action. Critical gaps are always serviced first,
but the escape valve ends the subtopic once the question budget is spent,
whatever work is left. Each turn yields exactly one TriagingStatusDelta.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from carson.adaptive.gap_analyzer import GapAnalyzer
from carson.core.models import (
    AnswerQuality,
    AssessmentPhase,
    CompletionReason,
    NextAction,
    SubtopicRequirements,
    TriagingStatus,
    TriagingStatusDelta,
)
from carson.core.requirements import DEFAULT_REQUIREMENTS


@dataclass(frozen=True)
class OrchestrationResult:
    """Outcome of one orchestration step."""
    phase: AssessmentPhase
    next_action: NextAction
    delta: TriagingStatusDelta
    completion_reason: CompletionReason | None = None

    @property
    def completes_subtopic(self) -> bool:
        return self.next_action == NextAction.COMPLETE_SUBTOPIC


def _remediation_action(quality: AnswerQuality) -> NextAction:
    return NextAction.EXPLAIN if quality == AnswerQuality.CONFUSED else NextAction.CONTINUE_CONVERSATION


class TriagingOrchestrator:
    """
    Decide the next tutoring step for a subtopic.

    The orchestrator holds no session state; the caller passes the current
    TriagingStatus in and merges the returned delta.
    """

    def __init__(self, gap_analyzer: GapAnalyzer):
        self.gap_analyzer = gap_analyzer

    async def orchestrate(
        self,
        answer: str,
        quality: AnswerQuality,
        subtopic: str,
        topic: str,
        requirements: SubtopicRequirements | None,
        status: TriagingStatus | None,
    ) -> OrchestrationResult:
        """
        Run one step of the state machine.

        Args:
            answer: Student answer for this turn
            quality: Graded quality of the answer
            subtopic: Current subtopic title
            topic: Session topic
            requirements: Question budget; defaults are used when missing
            status: Progress so far; a fresh status is used when missing

        Returns:
            OrchestrationResult with the phase, next action and status delta
        """
        if requirements is None:
            logger.warning(f"No requirements for '{subtopic}', using defaults")
            requirements = DEFAULT_REQUIREMENTS
        if status is None:
            logger.warning(f"No triaging status for '{subtopic}', starting fresh")
            status = TriagingStatus.initial()

        questions_used = status.questions_used + 1

        # Escape valve
        if questions_used >= requirements.max_questions:
            logger.info(
                f"Subtopic '{subtopic}' completed: budget_exhausted "
                f"({questions_used}/{requirements.max_questions} questions)"
            )
            return OrchestrationResult(
                phase=AssessmentPhase.COMPLETE,
                next_action=NextAction.COMPLETE_SUBTOPIC,
                delta=TriagingStatusDelta(questions_used=questions_used),
                completion_reason=CompletionReason.BUDGET_EXHAUSTED,
            )

        if not status.has_initial_assessment:
            gap_analysis = await self.gap_analyzer.analyze(answer, subtopic, topic)
            return OrchestrationResult(
                phase=AssessmentPhase.INITIAL_ASSESSMENT,
                next_action=_remediation_action(quality),
                delta=TriagingStatusDelta(
                    questions_used=questions_used,
                    has_initial_assessment=True,
                    gap_analysis=gap_analysis,
                ),
            )

        if status.gap_analysis is None:
            logger.warning(f"Subtopic '{subtopic}' was assessed but has no gap analysis, treating as empty")
        gaps = status.gaps

        # Critical gaps first
        unaddressed_critical = status.unaddressed(gaps.critical_gaps)
        if unaddressed_critical:
            return self._remediate(unaddressed_critical[0], quality, questions_used)

        # Important gaps while more than one question remains
        unaddressed_important = status.unaddressed(gaps.important_gaps)
        if unaddressed_important and questions_used < requirements.max_questions - 1:
            return self._remediate(unaddressed_important[0], quality, questions_used)

        if (
            requirements.must_test_application
            and not status.has_tested_application
            and questions_used < requirements.max_questions
        ):
            return OrchestrationResult(
                phase=AssessmentPhase.APPLICATION,
                next_action=_remediation_action(quality),
                delta=TriagingStatusDelta(
                    questions_used=questions_used,
                    has_tested_application=True,
                ),
            )

        remaining = unaddressed_important + status.unaddressed(gaps.minor_gaps)
        if remaining and not status.acknowledged_gaps:
            return OrchestrationResult(
                phase=AssessmentPhase.GAP_ACKNOWLEDGMENT,
                next_action=NextAction.CONTINUE_CONVERSATION,
                delta=TriagingStatusDelta(
                    questions_used=questions_used,
                    acknowledged_gaps=tuple(remaining),
                ),
            )

        logger.info(f"Subtopic '{subtopic}' completed: mastery ({questions_used} questions)")
        return OrchestrationResult(
            phase=AssessmentPhase.COMPLETE,
            next_action=NextAction.COMPLETE_SUBTOPIC,
            delta=TriagingStatusDelta(questions_used=questions_used),
            completion_reason=CompletionReason.MASTERY,
        )

    @staticmethod
    def _remediate(gap: str, quality: AnswerQuality, questions_used: int) -> OrchestrationResult:
        addressed = (gap,) if quality.is_correct else ()
        return OrchestrationResult(
            phase=AssessmentPhase.TARGETED_REMEDIATION,
            next_action=_remediation_action(quality),
            delta=TriagingStatusDelta(questions_used=questions_used, addressed_gaps=addressed),
        )

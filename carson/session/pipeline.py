"""
Turn pipeline and session driver.

``TurnPipeline.process_turn`` resolves one student utterance end to end:

    classify -> (skip if conversational) -> grade + clinical reasoning
        -> requirements -> triaging -> AssessmentResult

Grading and clinical-reasoning scoring have no data dependency, so they
run together. Nothing is merged into the session here; the result carries
the turn's single TriagingStatusDelta.

``SessionManager.handle`` applies that result to a Session value: counters,
the delta, the subtopic transition and an optional retention question. It
returns a new Session and never keeps one between calls.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass

from loguru import logger

from carson.adaptive.gap_analyzer import GapAnalyzer
from carson.adaptive.gap_prioritizer import prioritize_analysis
from carson.adaptive.triaging import OrchestrationResult, TriagingOrchestrator
from carson.assessment.adapter import AssessmentAdapter
from carson.assessment.clinical_reasoning import score_clinical_reasoning
from carson.core.models import (
    AssessmentPhase,
    AssessmentResult,
    ConversationalIntent,
    GapAnalysis,
    InteractionType,
    Message,
    NextAction,
    Session,
    TriagingStatus,
)
from carson.core.requirements import requirements_for
from carson.dialogue.detectors import detect_conversational_intent, is_conversational, is_struggling
from carson.dialogue.interaction import InteractionClassifier
from carson.dialogue.responses import compose_reasoning
from carson.integrations.model_gateway import ModelGateway
from carson.session.retention import RetentionPolicy, RetentionTest
from carson.session.transitions import (
    transition_message,
    transition_to_next_subtopic,
    update_session_after_assessment,
)
from config import Settings, get_settings

DEFAULT_CONTINUE_LINE = "Let's continue with our learning."
SESSION_COMPLETE_LINE = "We've finished this topic. Start a new session to keep going."


class TurnPipeline:
    """Processes one utterance against one session value."""

    def __init__(
        self,
        gateway: ModelGateway,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            gateway: Model gateway used for grading and gap analysis
            settings: Settings (defaults to get_settings())
            rng: Random source for phrase banks (defaults to one seeded from settings)
        """
        self.settings = settings or get_settings()
        self.rng = rng or random.Random(self.settings.random_seed)
        timeout = self.settings.llm_timeout_seconds

        self.classifier = InteractionClassifier(self.rng)
        self.adapter = AssessmentAdapter(gateway, timeout)
        self.gap_analyzer = GapAnalyzer(gateway, timeout)
        self.orchestrator = TriagingOrchestrator(self.gap_analyzer)

    async def process_turn(self, utterance: str, session: Session) -> AssessmentResult | None:
        """
        Resolve one utterance.

        Returns:
            AssessmentResult, or None when the utterance is conversational
            and must not be graded or counted
        """
        if not session.subtopics:
            logger.warning(f"Session has no subtopics, treating '{session.topic}' as the only one")
            session = session.with_implicit_subtopic()

        if not session.index_in_range:
            logger.warning(
                f"Subtopic index {session.current_subtopic_index} out of range "
                f"for {len(session.subtopics)} subtopics, clamping to {session.clamped_index}"
            )

        subtopic = session.current_subtopic
        subtopic_title = subtopic.title
        last_tutor = session.last_tutor_message

        classification = self.classifier.classify(utterance, last_tutor, session.topic, subtopic_title)
        if not classification.requires_assessment:
            return AssessmentResult(
                quality=None,
                next_action=NextAction.CONTINUE_CONVERSATION,
                reasoning=classification.suggested_response or DEFAULT_CONTINUE_LINE,
                interaction_type=classification.type,
                is_struggling=classification.type in (InteractionType.EMOTIONAL_SUPPORT, InteractionType.GIVE_UP),
            )

        if is_conversational(utterance, last_tutor):
            logger.debug("Conversational turn, skipping assessment")
            return None

        grade, clinical = await asyncio.gather(
            self.adapter.assess(utterance, last_tutor, session.topic, subtopic_title),
            asyncio.to_thread(score_clinical_reasoning, utterance, subtopic_title, session.topic),
        )
        logger.debug(f"Graded '{subtopic_title}' answer as {grade.quality.value} via {grade.source.value}")

        requirements = requirements_for(subtopic_title, session.topic)
        status = subtopic.triaging_status
        orchestration = await self.orchestrator.orchestrate(
            utterance, grade.quality, subtopic_title, session.topic, requirements, status,
        )

        surfaced = self._surfaced_gaps(status, orchestration, session)
        next_subtopic = self._next_title(session)

        return AssessmentResult(
            quality=grade.quality,
            next_action=orchestration.next_action,
            reasoning=compose_reasoning(
                orchestration.next_action,
                orchestration.phase,
                grade.quality,
                subtopic_title,
                next_subtopic=next_subtopic,
                focus=self._focus(orchestration, surfaced),
                specific_gaps=grade.specific_gaps,
                rng=self.rng,
            ),
            interaction_type=InteractionType.MEDICAL_RESPONSE,
            is_struggling=is_struggling(utterance),
            specific_gaps=grade.specific_gaps,
            phase=orchestration.phase,
            status_update=orchestration.delta,
            clinical_reasoning=clinical,
            completion_reason=orchestration.completion_reason,
            surfaced_gaps=tuple(surfaced),
        )

    def _surfaced_gaps(
        self,
        status: TriagingStatus,
        orchestration: OrchestrationResult,
        session: Session,
    ) -> list[str]:
        """Unaddressed gaps after this turn, prioritized and bounded."""
        if orchestration.completes_subtopic:
            return []

        merged = status.merge(orchestration.delta)
        gaps = merged.gaps
        open_gaps = GapAnalysis(
            critical_gaps=tuple(merged.unaddressed(gaps.critical_gaps)),
            important_gaps=tuple(merged.unaddressed(gaps.important_gaps)),
            minor_gaps=tuple(merged.unaddressed(gaps.minor_gaps)),
        )
        ranked = prioritize_analysis(open_gaps, session.history, self.settings.confusion_window_turns)
        return [gap.description for gap in ranked]

    @staticmethod
    def _focus(orchestration: OrchestrationResult, surfaced: list[str]) -> str | None:
        if orchestration.phase == AssessmentPhase.GAP_ACKNOWLEDGMENT:
            return "; ".join(orchestration.delta.acknowledged_gaps).lower() or None
        return surfaced[0].lower() if surfaced else None

    @staticmethod
    def _next_title(session: Session) -> str | None:
        next_index = session.clamped_index + 1
        if next_index < len(session.subtopics):
            return session.subtopics[next_index].title
        return None


@dataclass(frozen=True)
class TurnOutcome:
    """New session value plus what to show for one handled utterance."""
    session: Session
    result: AssessmentResult | None
    messages: tuple[str, ...] = ()
    transitioned: bool = False
    retention: RetentionTest | None = None
    intent: ConversationalIntent | None = None   # Set for conversational turns only


class SessionManager:
    """Applies turn results to session values."""

    def __init__(self, pipeline: TurnPipeline, retention: RetentionPolicy | None = None):
        self.pipeline = pipeline
        settings = pipeline.settings
        self.retention = retention or RetentionPolicy(
            rng=pipeline.rng,
            probability=settings.retention_probability,
            interval=settings.retention_interval,
        )

    async def handle(self, session: Session, utterance: str) -> TurnOutcome:
        """
        Process one student utterance and return the updated session.

        The input session is never modified. All updates for the turn are
        applied only after the turn has been fully resolved.
        """
        if session.is_complete:
            return TurnOutcome(session=session, result=None, messages=(SESSION_COMPLETE_LINE,))

        if not session.subtopics:
            logger.warning(f"Session has no subtopics, treating '{session.topic}' as the only one")
            session = session.with_implicit_subtopic()

        result = await self.pipeline.process_turn(utterance, session)

        updated = session.with_message(Message.user(utterance))
        if result is None:
            intent = detect_conversational_intent(utterance, session)
            logger.debug(f"Conversational turn read as {intent.type.value}")
            return TurnOutcome(session=updated, result=None, intent=intent)

        updated = updated.apply(update_session_after_assessment(updated, result))
        messages = [result.reasoning]
        transitioned = False
        retention = None

        if result.next_action == NextAction.COMPLETE_SUBTOPIC:
            completed_index = updated.clamped_index
            messages = [transition_message(updated, completed_index, self.pipeline.rng)]
            updated = updated.apply(transition_to_next_subtopic(updated, completed_index))
            transitioned = True

            if not updated.is_complete:
                retention = self.retention.should_test(updated)
                if retention is not None:
                    messages.append(self.retention.question_for(retention, updated))

        for line in messages:
            updated = updated.with_message(Message.assistant(line))

        return TurnOutcome(
            session=updated,
            result=result,
            messages=tuple(messages),
            transitioned=transitioned,
            retention=retention,
        )

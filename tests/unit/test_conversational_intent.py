"""
Unit tests for conversational intent detection.
"""

import pytest

from carson.core.models import IntentType, Message
from carson.dialogue.detectors import detect_conversational_intent, interrupted_question, is_uncertain_answer

TUTOR_QUESTION = "What are the main risk factors for ectopic pregnancy?"


@pytest.fixture
def asked_session(ectopic_session):
    """Session whose last tutor message is a question."""
    return ectopic_session.with_message(Message.assistant(f"Good start. {TUTOR_QUESTION}"))


class TestInterruptedQuestion:
    """Tests for interrupted_question."""

    def test_latest_tutor_question(self):
        history = (
            Message.assistant("Which organ is affected in AKI?"),
            Message.user("the kidney"),
            Message.assistant(f"Right. {TUTOR_QUESTION}"),
            Message.user("hmm"),
        )

        assert interrupted_question(history) == TUTOR_QUESTION

    def test_strips_list_and_bold_markup(self):
        history = (Message.assistant("- **Which** test confirms the diagnosis?"),)

        assert interrupted_question(history) == "Which test confirms the diagnosis?"

    def test_no_question(self):
        history = (Message.assistant("Let's dig into tubal damage."), Message.user("what?"))

        assert interrupted_question(history) is None
        assert interrupted_question(()) is None


class TestIsUncertainAnswer:
    """Tests for is_uncertain_answer."""

    @pytest.mark.parametrize("utterance", ["the pain?", "Maybe smoking", "um, IVF", "probably PID"])
    def test_hesitant_answers(self, utterance):
        assert is_uncertain_answer(utterance, TUTOR_QUESTION) is True

    def test_needs_a_tutor_question(self):
        assert is_uncertain_answer("Maybe smoking", "Let's dig into tubal damage.") is False

    def test_direct_questions_are_not_hesitant(self):
        assert is_uncertain_answer("What is hCG?", TUTOR_QUESTION) is False
        assert is_uncertain_answer("Could you elaborate on that", TUTOR_QUESTION) is False


class TestDetectConversationalIntent:
    """Tests for detect_conversational_intent."""

    @pytest.mark.parametrize("utterance,expected", [
        ("What does PID mean?", IntentType.DEFINITION),
        ("How long does methotrexate take to work?", IntentType.TIMEFRAME),
        ("How does methotrexate work in ectopic pregnancy", IntentType.MECHANISM),
        ("What's the difference between tubal and ovarian ectopic?", IntentType.COMPARISON),
        ("Could you elaborate on that", IntentType.CLARIFICATION),
        ("What do you mean by risk factors?", IntentType.CLARIFICATION),
        ("Can you give me an example of a risk factor", IntentType.EXAMPLE),
    ])
    def test_question_families(self, asked_session, utterance, expected):
        intent = detect_conversational_intent(utterance, asked_session)

        assert intent.type == expected
        assert intent.should_return_to_flow is True
        assert intent.interrupted_question == TUTOR_QUESTION
        assert intent.should_resume_question is True

    def test_definition_query_extracted(self, asked_session):
        intent = detect_conversational_intent("What does PID mean?", asked_session)

        assert intent.extracted_query == "What does PID mean"

    def test_contextual_answer_needs_history(self, asked_session):
        utterance = "How does methotrexate work in ectopic pregnancy"
        short = detect_conversational_intent(utterance, asked_session)
        longer = detect_conversational_intent(
            utterance,
            asked_session.with_message(Message.user("hmm")).with_message(Message.assistant(TUTOR_QUESTION)),
        )

        assert short.requires_contextual_answer is False
        assert longer.requires_contextual_answer is True

    def test_uncertain_answer_takes_precedence(self, asked_session):
        intent = detect_conversational_intent("the pain?", asked_session)

        assert intent.type == IntentType.UNCERTAIN_ANSWER
        assert intent.should_return_to_flow is False
        assert intent.requires_contextual_answer is True
        assert intent.extracted_query == "the pain?"

    def test_medical_answer_is_assessment_response(self, asked_session):
        intent = detect_conversational_intent("Treatment is methotrexate for a stable patient", asked_session)

        assert intent.type == IntentType.ASSESSMENT_RESPONSE
        assert intent.confidence == 0.95
        assert intent.should_resume_question is False

    @pytest.mark.parametrize("utterance", ["How are you doing today", "what's the weather like"])
    def test_chatter_is_off_topic(self, asked_session, utterance):
        intent = detect_conversational_intent(utterance, asked_session)

        assert intent.type == IntentType.OFF_TOPIC
        assert intent.should_return_to_flow is True
        assert intent.interrupted_question == TUTOR_QUESTION

    def test_default_without_tutor_question(self, ectopic_session):
        intent = detect_conversational_intent("Maybe smoking", ectopic_session)

        assert intent.type == IntentType.ASSESSMENT_RESPONSE
        assert intent.confidence == 0.7
        assert intent.interrupted_question is None

"""
Unit tests for the Interaction Classifier.
"""

import random

import pytest

from carson.core.models import InteractionType
from carson.dialogue.interaction import InteractionClassifier, is_off_topic_medical

TOPIC = "Ectopic Pregnancy"


@pytest.fixture
def classifier(rng):
    return InteractionClassifier(rng)


class TestClassify:
    """Tests for InteractionClassifier.classify."""

    @pytest.mark.parametrize("utterance,expected", [
        ("I'm so confused about this", InteractionType.EMOTIONAL_SUPPORT),
        ("I'm frustrated with all these numbers", InteractionType.EMOTIONAL_SUPPORT),
        ("let's skip this part", InteractionType.GIVE_UP),
        ("Can we do something else", InteractionType.GIVE_UP),
        ("Are you a real doctor?", InteractionType.PERSONAL_CASUAL),
        ("Good morning Carson", InteractionType.PERSONAL_CASUAL),
        ("I have a headache, should I worry?", InteractionType.MEDICAL_ADVICE),
        ("Should I take ibuprofen for cramps", InteractionType.MEDICAL_ADVICE),
        ("I think you're wrong about that", InteractionType.CHALLENGE_AUTHORITY),
        ("My textbook says something different", InteractionType.CHALLENGE_AUTHORITY),
        ("How should I study this?", InteractionType.META_LEARNING),
        ("Will this be on the exam", InteractionType.META_LEARNING),
        ("The app keeps freezing", InteractionType.TECHNICAL_ISSUE),
        ("What is the treatment for migraine headaches?", InteractionType.OFF_TOPIC),
    ])
    def test_routes_non_learning_interactions(self, classifier, utterance, expected):
        """Each family gets a templated reply and skips assessment."""
        result = classifier.classify(utterance, topic=TOPIC, subtopic="Risk Factors")

        assert result.type == expected
        assert result.requires_assessment is False
        assert result.suggested_response

    def test_answer_requires_assessment(self, classifier):
        result = classifier.classify(
            "PID increases the risk because of tubal scarring",
            topic=TOPIC,
            subtopic="Risk Factors",
        )

        assert result.type == InteractionType.MEDICAL_RESPONSE
        assert result.requires_assessment is True
        assert result.confidence == 0.6
        assert result.suggested_response is None

    def test_struggle_answer_is_still_a_learning_turn(self, classifier):
        """'i don't know' is graded (as confused), not routed away."""
        result = classifier.classify("i don't know", topic="Acute Kidney Injury")

        assert result.type == InteractionType.MEDICAL_RESPONSE
        assert result.requires_assessment is True

    def test_emotional_takes_precedence_over_off_topic(self, classifier):
        """An upset student mentioning a medical term is treated as upset."""
        result = classifier.classify("I'm so confused about the diagnosis", topic=TOPIC)

        assert result.type == InteractionType.EMOTIONAL_SUPPORT

    def test_support_response_names_the_subtopic(self, classifier):
        result = classifier.classify("I'm so confused", topic=TOPIC, subtopic="Risk Factors")

        assert "Risk Factors" in result.suggested_response

    def test_templates_use_topic(self, classifier):
        result = classifier.classify("How should I study this?", topic=TOPIC)

        assert TOPIC in result.suggested_response

    def test_seeded_choices_are_reproducible(self):
        """Same seed, same utterance, same reply."""
        first = InteractionClassifier(random.Random(3)).classify("Are you human?", topic=TOPIC)
        second = InteractionClassifier(random.Random(3)).classify("Are you human?", topic=TOPIC)

        assert first.suggested_response == second.suggested_response


class TestSupportType:
    """Tests for picking a support bank."""

    @pytest.mark.parametrize("text,expected", [
        ("i'm so confused", "completely_lost"),
        ("i don't know", "completely_lost"),
        ("can you give me a hint", "needs_guidance"),
        ("is it the fallopian tube?", "seeking_validation"),
        ("maybe the kidney", "uncertain_knowledge"),
        ("um", "vague_knowledge"),
        ("x", "minimal_response"),
        ("this is boring and tedious", "general"),
    ])
    def test_support_type(self, text, expected):
        assert InteractionClassifier.support_type(text) == expected


class TestOffTopicMedical:
    """Tests for is_off_topic_medical."""

    def test_generic_medical_question_outside_topic(self):
        assert is_off_topic_medical("what is the treatment for gout flares", TOPIC) is True

    def test_mentions_topic(self):
        assert is_off_topic_medical("what is the treatment for ectopic pregnancy", TOPIC) is False

    def test_too_short(self):
        assert is_off_topic_medical("gout treatment", TOPIC) is False

    def test_no_topic(self):
        assert is_off_topic_medical("what is the treatment for gout flares", "") is False

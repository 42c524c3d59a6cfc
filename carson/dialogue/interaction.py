"""
Interaction Classifier: route an utterance before grading it.

Most turns are answers to the tutor's question and go on to assessment.
The rest (distress, giving up, small talk, requests for personal medical
advice, pushback, study-strategy questions, technical trouble, off-topic
medical questions) get a templated reply and skip grading entirely.

Families are checked in a fixed precedence and the first match wins, so an
upset student who happens to mention a medical term is still treated as
upset.
"""

from __future__ import annotations

import random
import re

from loguru import logger

from carson.core.models import InteractionClassification, InteractionType
from carson.dialogue.detectors import (
    DEFLECTION_PATTERNS,
    DIRECT_STRUGGLE_PATTERNS,
    FISHING_PATTERNS,
    UNCERTAINTY_PATTERNS,
    VAGUE_PATTERNS,
    is_too_short,
)


# =============================================================================
# Phrase banks
# =============================================================================

SUPPORT_RESPONSES: dict[str, list[str]] = {
    "completely_lost": [
        "Totally fair - {subject} is genuinely complex stuff. No one expects you to just know this.",
        "Good to be honest about it. {subject} trips up a lot of people initially.",
        "Yeah, {subject} isn't intuitive. Let me walk you through it.",
    ],
    "seeking_validation": [
        "You're thinking about it the right way. That's exactly how you should approach {subject}.",
        "Good instinct with that question. You're working through {subject} logically.",
        "Right approach - asking the right questions about {subject}.",
    ],
    "uncertain_knowledge": [
        "You're in the right ballpark with {subject}. Let me help you pin it down.",
        "Close - you've got pieces of {subject} but let me fill in the gaps.",
        "You're thinking about {subject} correctly, just need to connect the dots.",
    ],
    "needs_guidance": [
        "Sure. So with {subject}, the key thing to remember is this.",
        "Absolutely. Here's how I think about {subject}.",
        "Of course. {subject} basically works like this.",
    ],
    "vague_knowledge": [
        "Right general area. Now let's get specific about how {subject} actually works.",
        "Good connection. Let me help you get more precise about {subject}.",
        "You've got the broad concept. Now for the specifics of {subject}.",
    ],
    "minimal_response": [
        "No problem. {subject} can be a lot to process at first.",
        "Fair enough. Let me give you the key points about {subject}.",
        "All good. Here's what you need to know about {subject}.",
    ],
    "general": [
        "Alright, so {subject} is basically this.",
        "Okay, let me explain {subject}.",
        "Right, so here's how {subject} works.",
    ],
}

MOTIVATIONAL_RESPONSES = [
    "Look, {topic} can definitely feel like a lot at first. But you've already shown you "
    "understand some key concepts. Want to try a different angle? We can look at this "
    "through a real case that shows why it matters.",
    "I hear you. {topic} is a grind in places. Let's make the next step smaller and "
    "work through one concrete patient together.",
]

PERSONAL_RESPONSES = [
    "I'm Carson - an AI that's been trained to think like a doctor. Not actually human, but "
    "I've been designed to help you work through medical concepts the way a good attending would.",
    "Thanks for asking! I'm an AI, but I've been built to approach medical education like a "
    "real physician mentor would. My goal is helping you think through cases and concepts.",
    "I'm Carson - an AI designed to work with medical students. I try to teach the way good "
    "doctors do: direct, honest, and focused on helping you understand.",
]

BOUNDARY_RESPONSES = [
    "I can't give you personal medical advice - that's not what I'm here for. If you've got "
    "health concerns, definitely talk to a real doctor. I'm happy to help you understand "
    "medical concepts and work through cases though!",
]

AUTHORITY_RESPONSES = [
    "Fair point - medicine definitely has areas where sources disagree. What specifically did "
    "you hear? Let's compare the perspectives and see where they align or diverge.",
    "Good that you're thinking critically about this. Different sources sometimes emphasize "
    "different aspects. Tell me more about what you heard elsewhere.",
    "Interesting - that's a good sign that you're engaging with multiple sources. What was the "
    "alternative take? Medicine often has nuances worth exploring.",
]

META_LEARNING_RESPONSES = [
    "Good question about study approach. For {topic}, I'd focus on mechanisms first, then build "
    "up to applications. Active recall tends to stick better than rereading. What's been working "
    "for you so far?",
    "Smart to think about learning strategy. Connecting {topic} to real cases usually helps "
    "retention, and explaining it to someone else is a great test. Want to try that as we go?",
    "That's important to think about. For {topic}, build the framework first and add details "
    "after. We can practice that approach together.",
]

TECHNICAL_RESPONSES = [
    "Sorry you're having tech issues. Try refreshing or checking your connection. Voice not "
    "working? Just type - we can keep going with whatever works best for you.",
]

REDIRECTION_RESPONSES = [
    "Interesting question, and I can see how that connects to medical thinking. Right now we're "
    "working through {topic}, and I want to make sure you really get this before we move on. "
    "Once we've got a solid foundation here, we can explore other areas. Sound good?",
]

# Generic medical words used by the off-topic heuristic
GENERIC_MEDICAL_TERMS = (
    "diagnosis", "treatment", "symptom", "disease", "condition", "patient", "clinical",
)

OFF_TOPIC_MIN_LENGTH = 20


class InteractionClassifier:
    """
    Classify student utterances ahead of assessment.

    Phrase-bank choices go through the injected random source, so a seeded
    ``random.Random`` makes every suggested response reproducible.
    """

    EMOTIONAL_PATTERNS = [
        re.compile(r"""
            ^ (this \s+ is \s+ (too \s+)? hard | i \s+ can'?t \s+ do \s+ this | i'?m \s+ (so \s+)? confused)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (i \s+ hate | i \s+ don'?t \s+ like | this \s+ sucks | this \s+ is \s+ boring)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ i'?m \s+ (so \s+)? (stressed | frustrated | overwhelmed)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ i \s+ feel \s+ (so \s+)? (stupid | dumb | lost)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (i'?m \s+ never \s+ going \s+ to | i \s+ can'?t \s+ understand)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (i \s+ give \s+ up | i \s+ quit | i'?m \s+ done)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    GIVE_UP_PATTERNS = [
        re.compile(r"""
            ^ (let'?s \s+ skip | can \s+ we \s+ skip | i \s+ don'?t \s+ want \s+ to)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ can \s+ we \s+ do \s+ something \s+ else
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (let'?s \s+ move \s+ on | next \s+ topic)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    PERSONAL_PATTERNS = [
        re.compile(r"""
            ^ (are \s+ you | what'?s \s+ your | how'?s \s+ your | do \s+ you \s+ have)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (how \s+ are \s+ you | good \s+ (morning | afternoon | evening) | hello | hi \b)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (nice \s+ to \s+ meet \s+ you | thanks \s+ for \s+ helping)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    ADVICE_PATTERNS = [
        re.compile(r"""
            ^ (i \s+ have | my \s+ symptoms | should \s+ i \s+ take | can \s+ you \s+ diagnose)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (what \s+ should \s+ i \s+ do | is \s+ this \s+ normal | am \s+ i \b)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (i'?m \s+ experiencing | i \s+ feel | my \s+ doctor \s+ said)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    CHALLENGE_PATTERNS = [
        re.compile(r"""
            ^ (i \s+ think \s+ you'?re \s+ wrong | that'?s \s+ not \s+ right | my \s+ professor \s+ said)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (i \s+ disagree | that'?s \s+ incorrect | my \s+ textbook \s+ says)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (are \s+ you \s+ sure | i \s+ don'?t \s+ think \s+ so)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    META_PATTERNS = [
        re.compile(r"""
            ^ (how \s+ should \s+ i \s+ study | what'?s \s+ the \s+ best \s+ way | will \s+ this \s+ be \s+ on)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (how \s+ long \s+ will | when \s+ will | should \s+ i \s+ memorize)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (study \s+ tips | any \s+ advice | how \s+ do \s+ i \s+ remember)
        """, re.VERBOSE | re.IGNORECASE),
    ]

    TECHNICAL_PATTERNS = [
        re.compile(r"""
            ^ (my \s+ voice | the \s+ app | i \s+ can'?t \s+ see | it'?s \s+ not \s+ working)
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (technical | sound | audio | screen) \b
        """, re.VERBOSE | re.IGNORECASE),
        re.compile(r"""
            ^ (slow | loading | crashed) \b
        """, re.VERBOSE | re.IGNORECASE),
    ]

    def __init__(self, rng: random.Random | None = None):
        """
        Initialize the classifier.

        Args:
            rng: Random source for phrase-bank selection
        """
        self.rng = rng or random.Random()

    def classify(
        self,
        utterance: str,
        last_tutor_utterance: str | None = None,
        topic: str = "",
        subtopic: str | None = None,
    ) -> InteractionClassification:
        """
        Classify an utterance.

        Args:
            utterance: Student utterance
            last_tutor_utterance: The tutor's previous message (not used by the
                current families)
            topic: Current topic, used for off-topic detection and templates
            subtopic: Current subtopic title, used in support templates

        Returns:
            InteractionClassification; only the default medical_response
            requires assessment
        """
        text = (utterance or "").lower().strip()
        subject = subtopic or topic or "this topic"
        topic_name = topic or "this topic"

        if self._matches(self.EMOTIONAL_PATTERNS, text):
            return self._handled(
                InteractionType.EMOTIONAL_SUPPORT, 0.9,
                self._pick(SUPPORT_RESPONSES[self.support_type(text)]).format(subject=subject),
            )

        if self._matches(self.GIVE_UP_PATTERNS, text):
            return self._handled(
                InteractionType.GIVE_UP, 0.8,
                self._pick(MOTIVATIONAL_RESPONSES).format(topic=topic_name),
            )

        if self._matches(self.PERSONAL_PATTERNS, text):
            return self._handled(InteractionType.PERSONAL_CASUAL, 0.7, self._pick(PERSONAL_RESPONSES))

        if self._matches(self.ADVICE_PATTERNS, text):
            return self._handled(InteractionType.MEDICAL_ADVICE, 0.9, self._pick(BOUNDARY_RESPONSES))

        if self._matches(self.CHALLENGE_PATTERNS, text):
            return self._handled(InteractionType.CHALLENGE_AUTHORITY, 0.8, self._pick(AUTHORITY_RESPONSES))

        if self._matches(self.META_PATTERNS, text):
            return self._handled(
                InteractionType.META_LEARNING, 0.8,
                self._pick(META_LEARNING_RESPONSES).format(topic=topic_name),
            )

        if self._matches(self.TECHNICAL_PATTERNS, text):
            return self._handled(InteractionType.TECHNICAL_ISSUE, 0.9, self._pick(TECHNICAL_RESPONSES))

        if is_off_topic_medical(text, topic):
            return self._handled(
                InteractionType.OFF_TOPIC, 0.7,
                self._pick(REDIRECTION_RESPONSES).format(topic=topic_name),
            )

        return InteractionClassification(
            type=InteractionType.MEDICAL_RESPONSE,
            confidence=0.6,
            requires_assessment=True,
        )

    @staticmethod
    def support_type(text: str) -> str:
        """Pick the support bank that fits how the student is struggling."""
        text = text.lower().strip()

        if (
            DIRECT_STRUGGLE_PATTERNS[0].search(text)
            or DIRECT_STRUGGLE_PATTERNS[1].search(text)
            or DIRECT_STRUGGLE_PATTERNS[3].search(text)
            or re.search(r"\b(confused|lost)\b", text)
        ):
            return "completely_lost"
        if DEFLECTION_PATTERNS[0].search(text) or DIRECT_STRUGGLE_PATTERNS[2].search(text):
            return "needs_guidance"
        if any(pattern.search(text) for pattern in FISHING_PATTERNS):
            return "seeking_validation"
        if any(pattern.search(text) for pattern in UNCERTAINTY_PATTERNS):
            return "uncertain_knowledge"
        if any(pattern.search(text) for pattern in VAGUE_PATTERNS):
            return "vague_knowledge"
        if is_too_short(text):
            return "minimal_response"
        return "general"

    def _pick(self, bank: list[str]) -> str:
        return self.rng.choice(bank)

    @staticmethod
    def _matches(patterns: list[re.Pattern], text: str) -> bool:
        return any(pattern.search(text) for pattern in patterns)

    @staticmethod
    def _handled(kind: InteractionType, confidence: float, response: str) -> InteractionClassification:
        logger.debug(f"Routed utterance as {kind.value} ({confidence:.0%})")
        return InteractionClassification(
            type=kind,
            confidence=confidence,
            requires_assessment=False,
            suggested_response=response,
        )


def is_off_topic_medical(text: str, topic: str | None) -> bool:
    """
    A medical question that is not about the current topic.

    True when the text uses a generic medical term, mentions no word of the
    topic and is longer than 20 characters.
    """
    if not topic:
        return False

    text = text.lower()
    has_medical_term = any(term in text for term in GENERIC_MEDICAL_TERMS)
    mentions_topic = any(word.lower() in text for word in topic.split() if word)

    return has_medical_term and not mentions_topic and len(text) > OFF_TOPIC_MIN_LENGTH

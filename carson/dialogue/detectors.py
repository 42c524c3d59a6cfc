"""
Struggle and conversational detectors.

Pure checks shared by the classifier, the assessment adapter and the turn
pipeline:

- is_struggling: the utterance is evasive, confused or fishing for the answer
- is_conversational: the utterance is small talk or a clarification request
  rather than a substantive answer, so it should not be graded
- detect_conversational_intent: what an ungraded turn is asking for, plus
  the tutor question it interrupted
"""

from __future__ import annotations

import re
from typing import Sequence

from carson.core.models import ConversationalIntent, IntentType, Message, Session

# =============================================================================
# Struggle families
# =============================================================================

# Explicit confusion
DIRECT_STRUGGLE_PATTERNS = [
    re.compile(r"""
        ^ (i \s+ don'?t \s+ know | not \s+ sure | no \s+ idea | unsure | i'?m \s+ not \s+ sure)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (confused | lost | stuck) \b
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (help | i \s+ need \s+ help) \b
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        don'?t \s+ understand | not \s+ following | makes \s+ no \s+ sense
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        too \s+ hard | difficult
    """, re.VERBOSE | re.IGNORECASE),
]

# Trying to get the tutor to answer instead
DEFLECTION_PATTERNS = [
    re.compile(r"""
        ^ (can \s+ you \s+ give \s+ me \s+ a \s+ hint | hint | clue)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ what \s+ (do \s+ you \s+ think | would \s+ you \s+ say)
    """, re.VERBOSE | re.IGNORECASE),
]

# Hedged answers that signal partial knowledge
UNCERTAINTY_PATTERNS = [
    re.compile(r"""
        ^ (i'?m \s+ not \s+ sure, \s* but | maybe | perhaps) \b
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (could \s+ it \s+ be | might \s+ it \s+ be)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (i \s+ think \s+ it \s+ might | it \s+ could \s+ be | possibly)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ i \s+ (think | believe | guess) \b
    """, re.VERBOSE | re.IGNORECASE),
]

# Vague or evasive answers
VAGUE_PATTERNS = [
    re.compile(r"""
        ^ (it'?s \s+ related \s+ to | something \s+ about | has \s+ to \s+ do \s+ with)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (the | a | some) \s+ \w+ $                # "the kidney"
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (u+m+ | u+h+ | well | so) \b              # Filler words
    """, re.VERBOSE | re.IGNORECASE),
]

# Answering with a question
FISHING_PATTERNS = [
    re.compile(r"""
        \? $
    """, re.VERBOSE),
    re.compile(r"""
        ^ (is | does | can | would) \s+ it \b
    """, re.VERBOSE | re.IGNORECASE),
]

BARE_ACKNOWLEDGMENT = re.compile(r"^(yes|no|yeah|nope)$", re.IGNORECASE)

STRUGGLE_MIN_LENGTH = 8

# =============================================================================
# Conversational families
# =============================================================================

# Tutor questions asking whether the student is ready to move on
READINESS_PROMPTS = [
    re.compile(r"""
        \b ready \b [^.!?]* \?                      # "Are you ready?", "Ready for the next challenge?"
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        \b shall \s+ we \b [^.!?]* \?               # "Shall we?", "Shall we begin?"
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        \b up \s+ for \s+ it \b [^.!?]* \?
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        \b (want | like) \s+ to \s+ (begin | start | get \s+ started | continue | move \s+ on) \b [^.!?]* \?
    """, re.VERBOSE | re.IGNORECASE),
]

READINESS_PATTERNS = [
    re.compile(r"""
        ^ (yes | yeah | yep | sure | okay | ok | alright | ready)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ready
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        let'?s \s+ (go | start | begin)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (i'?m | am) \s+ ready
    """, re.VERBOSE | re.IGNORECASE),
]

CLARIFICATION_PATTERNS = [
    re.compile(r"""
        ^ (what | how | when | where | why) \s
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (can \s+ you | could \s+ you | please)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (sorry | excuse \s+ me)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        in \s+ the \s+ context \s+ of
        | about \s+ .*? \? $
        | related \s+ to
        | specifically
        | you \s+ mean
        | are \s+ you \s+ asking
        | do \s+ you \s+ want \s+ me \s+ to
    """, re.VERBOSE | re.IGNORECASE),
]

HELP_REQUEST = re.compile(r"^(help|explain|clarify)", re.IGNORECASE)

CONVERSATIONAL_MAX_LENGTH = 6


def _matches_any(patterns: list[re.Pattern], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def is_too_short(utterance: str) -> bool:
    """Very short replies other than a bare yes/no."""
    text = utterance.lower().strip()
    return len(text) < STRUGGLE_MIN_LENGTH and not BARE_ACKNOWLEDGMENT.match(text)


def is_struggling(utterance: str) -> bool:
    """
    Check whether an utterance signals that the student is struggling.

    Explicit confusion, deflection, hedging, vague fillers, answering with a
    question and very short replies all count. Empty input counts as
    struggling.
    """
    text = (utterance or "").lower().strip()

    return (
        _matches_any(DIRECT_STRUGGLE_PATTERNS, text)
        or _matches_any(DEFLECTION_PATTERNS, text)
        or _matches_any(UNCERTAINTY_PATTERNS, text)
        or _matches_any(VAGUE_PATTERNS, text)
        or _matches_any(FISHING_PATTERNS, text)
        or is_too_short(text)
    )


def asked_about_readiness(tutor_utterance: str | None) -> bool:
    """Whether the tutor's message asks if the student is ready to go on."""
    return _matches_any(READINESS_PROMPTS, tutor_utterance or "")


def is_conversational(utterance: str, last_tutor_utterance: str | None = None) -> bool:
    """
    Check whether an utterance is conversational rather than an answer.

    Args:
        utterance: Student utterance
        last_tutor_utterance: The tutor's previous message, if any

    Returns:
        True when the turn should not be graded
    """
    text = (utterance or "").lower().strip()

    if asked_about_readiness(last_tutor_utterance) and _matches_any(READINESS_PATTERNS, text):
        return True

    if _matches_any(CLARIFICATION_PATTERNS, text):
        return True

    struggling = is_struggling(text)
    if HELP_REQUEST.match(text) and not struggling:
        return True

    return len(text) < CONVERSATIONAL_MAX_LENGTH and not struggling


# =============================================================================
# Conversational intent
# =============================================================================

# Checked in order; the first family that matches wins
QUESTION_INTENT_PATTERNS: list[tuple[IntentType, re.Pattern]] = [
    (IntentType.DEFINITION, re.compile(r"""
        what \s+ (does | is) \s+ \w+ \s+ (mean | stand \s+ for)
        | what ('s | \s+ is) \s+ \w+ \?
        | define \s+ \w+
    """, re.VERBOSE | re.IGNORECASE)),
    (IntentType.TIMEFRAME, re.compile(r"""
        how \s+ long \s+ (does | takes? | until)
        | when \s+ (does | will)
        | how \s+ (soon | quickly)
    """, re.VERBOSE | re.IGNORECASE)),
    (IntentType.MECHANISM, re.compile(r"""
        how \s+ does \s+ .+ \s+ work
        | what ('s | \s+ is) \s+ the \s+ mechanism
        | how \s+ is \s+ .+ \s+ (caused | formed | made)
    """, re.VERBOSE | re.IGNORECASE)),
    (IntentType.COMPARISON, re.compile(r"""
        what ('s | \s+ is) \s+ the \s+ difference \s+ between
        | compare \s+ .+ \s+ (to | with | and) \b
        | \b versus \b
        | \b vs \.
    """, re.VERBOSE | re.IGNORECASE)),
    (IntentType.CLARIFICATION, re.compile(r"""
        can \s+ you \s+ (explain | clarify | tell \s+ me)
        | i \s+ don'?t \s+ understand
        | what \s+ do \s+ you \s+ mean
        | could \s+ you \s+ elaborate
    """, re.VERBOSE | re.IGNORECASE)),
    (IntentType.EXAMPLE, re.compile(r"""
        can \s+ you \s+ give \s+ (me \s+)? (an \s+)? example
        | for \s+ example
        | such \s+ as
        | like \s+ what
    """, re.VERBOSE | re.IGNORECASE)),
]

# The part of the utterance that is the actual question
QUERY_EXTRACTION_PATTERNS: dict[IntentType, re.Pattern] = {
    IntentType.DEFINITION: QUESTION_INTENT_PATTERNS[0][1],
    IntentType.TIMEFRAME: re.compile(r"how \s+ long \s+ .+ | when \s+ .+ | how \s+ (soon | quickly) \s+ .+",
                                     re.VERBOSE | re.IGNORECASE),
    IntentType.MECHANISM: re.compile(r"""
        how \s+ does \s+ .+ \s+ work | what ('s | \s+ is) \s+ the \s+ mechanism \s+ .+
        | how \s+ is \s+ .+ \s+ (caused | formed | made)
    """, re.VERBOSE | re.IGNORECASE),
    IntentType.COMPARISON: re.compile(r"""
        what ('s | \s+ is) \s+ the \s+ difference \s+ between \s+ .+
        | compare \s+ .+ \s+ (to | with | and) \s+ .+
    """, re.VERBOSE | re.IGNORECASE),
    IntentType.CLARIFICATION: re.compile(r"can \s+ you \s+ (explain | clarify | tell \s+ me) \s+ .+ | what \s+ do \s+ you \s+ mean \s+ .+",
                                         re.VERBOSE | re.IGNORECASE),
    IntentType.EXAMPLE: re.compile(r"can \s+ you \s+ give \s+ (me \s+)? (an \s+)? example \s+ .+ | for \s+ example \s+ .+",
                                   re.VERBOSE | re.IGNORECASE),
}

CONTEXTUAL_INTENTS = (IntentType.CLARIFICATION, IntentType.MECHANISM, IntentType.COMPARISON)

# Hesitant attempts at the tutor's question
UNCERTAIN_ANSWER_PATTERNS = [
    re.compile(r"""
        ^ [a-z\s]{1,20} \? $                        # "the pain?"
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (maybe | perhaps | possibly | i \s+ think | i \s+ guess | probably | might \s+ be | could \s+ be)
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ (um | uh | well | hmm | i'?m \s+ not \s+ sure | not \s+ sure | dunno | don'?t \s+ know) \b
    """, re.VERBOSE | re.IGNORECASE),
    re.compile(r"""
        ^ .{1,30} \? $
    """, re.VERBOSE),
]

UNCERTAIN_WORDS = re.compile(
    r"\b(maybe|perhaps|possibly|i think|i guess|probably|might|could|unsure|not sure)\b", re.IGNORECASE
)

# Questions aimed at the tutor rather than hesitant answers
DIRECT_QUESTION = re.compile(r"""
    ^ (what | how | when | where | why | which | who | define | compare) \b
    | ^ (can | could | would) \s+ you \b
""", re.VERBOSE | re.IGNORECASE)

QUESTION_WORDS = re.compile(r"\b(what|how|when|where|why|which|who)\b|\?", re.IGNORECASE)

ANSWER_MEDICAL_TERMS = re.compile(
    r"\b(patient|diagnosis|treatment|symptoms?|disease|condition|therapy|medication|clinical)\b", re.IGNORECASE
)

CHATTER_PATTERNS = [
    re.compile(r"\b(weather|sports|politics|food|music|movies)\b", re.IGNORECASE),
    re.compile(r"how \s+ are \s+ you | what'?s \s+ up | \b hello \b | \b hi \s+ there \b", re.VERBOSE | re.IGNORECASE),
    re.compile(r"can \s+ you \s+ help \s+ me \s+ with | \b homework \b | \b assignment \b", re.VERBOSE | re.IGNORECASE),
]

SENTENCE_BREAK = re.compile(r"(?<=[.!])\s+")
EMBEDDED_QUESTION = re.compile(r"[A-Z][^.!]*\?")
MIN_QUESTION_LENGTH = 10


def _clean_question(sentence: str) -> str:
    text = re.sub(r"^\s*[-*•]\s*", "", sentence)
    text = re.sub(r"^\d+\.\s*", "", text)
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
    return re.sub(r"\s+", " ", text).strip()


def interrupted_question(history: Sequence[Message]) -> str | None:
    """
    The tutor's most recent question, if any.

    Walks tutor messages newest first and returns the first sentence that
    carries a question mark, stripped of list markers and bold markup.
    """
    for message in reversed(history):
        if message.role != "assistant" or "?" not in message.content:
            continue

        for sentence in SENTENCE_BREAK.split(message.content):
            if "?" in sentence:
                question = _clean_question(sentence)
                if len(question) > MIN_QUESTION_LENGTH:
                    return question

        match = EMBEDDED_QUESTION.search(message.content)
        if match:
            return match.group(0).strip()

    return None


def is_uncertain_answer(utterance: str, last_tutor_utterance: str | None) -> bool:
    """A hesitant attempt at answering a question the tutor just asked."""
    text = (utterance or "").strip()
    if "?" not in (last_tutor_utterance or "") or not text or DIRECT_QUESTION.match(text):
        return False

    short_question = len(text) < 25 and text.endswith("?")
    return (
        _matches_any(UNCERTAIN_ANSWER_PATTERNS, text)
        or short_question
        or UNCERTAIN_WORDS.search(text) is not None
    )


def _extract_query(utterance: str, intent: IntentType) -> str:
    pattern = QUERY_EXTRACTION_PATTERNS.get(intent)
    match = pattern.search(utterance) if pattern else None
    return match.group(0) if match else utterance


def detect_conversational_intent(utterance: str, session: Session) -> ConversationalIntent:
    """
    Type what a conversational turn is asking for.

    Precedence: uncertain answer, then the question families (definition,
    timeframe, mechanism, comparison, clarification, example), then an
    attempt at answering, then chatter. Anything else is read as an
    assessment response. Question and chatter intents carry the tutor's
    interrupted question so the flow can pick it up again.

    Args:
        utterance: Student utterance
        session: Session the utterance belongs to (history before this turn)

    Returns:
        ConversationalIntent
    """
    text = (utterance or "").strip()
    last_tutor = session.last_tutor_message
    interrupted = interrupted_question(session.history)

    if is_uncertain_answer(text, last_tutor):
        return ConversationalIntent(
            type=IntentType.UNCERTAIN_ANSWER,
            confidence=0.9,
            extracted_query=text,
            requires_contextual_answer=True,
            should_return_to_flow=False,
            interrupted_question=interrupted,
        )

    for intent, pattern in QUESTION_INTENT_PATTERNS:
        if pattern.search(text):
            return ConversationalIntent(
                type=intent,
                confidence=0.9,
                extracted_query=_extract_query(text, intent),
                requires_contextual_answer=intent in CONTEXTUAL_INTENTS and len(session.history) > 2,
                should_return_to_flow=True,
                interrupted_question=interrupted,
            )

    if "?" in last_tutor and ANSWER_MEDICAL_TERMS.search(text) and not QUESTION_WORDS.search(text):
        return ConversationalIntent(type=IntentType.ASSESSMENT_RESPONSE, confidence=0.95)

    if _matches_any(CHATTER_PATTERNS, text):
        return ConversationalIntent(
            type=IntentType.OFF_TOPIC,
            confidence=0.8,
            should_return_to_flow=True,
            interrupted_question=interrupted,
        )

    return ConversationalIntent(type=IntentType.ASSESSMENT_RESPONSE, confidence=0.7)

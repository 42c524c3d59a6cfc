"""
Retention questions.

Every few subtopics the tutor may ask a question linking the new subtopic
to one covered earlier, to check that learning stuck. The policy only
reads the session; it never touches triaging progress.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from loguru import logger

from carson.core.models import MasteryStatus, Session

CONNECTION_QUESTIONS = [
    "Before we continue with {current}, let's connect this to what we learned about {previous}. "
    "How do these two areas relate in clinical practice?",
    "Quick review: we covered {previous} earlier. How would that knowledge help you with a patient "
    "who also has issues related to {current}?",
    "Let's make sure this sticks - can you explain how {previous} might influence your approach to {current}?",
    "Building on our earlier discussion of {previous}, how would you prioritize that knowledge when "
    "dealing with {current}?",
]

MIN_CORRECT_FOR_RETENTION = 2


@dataclass(frozen=True)
class RetentionTest:
    """A request to revisit an earlier subtopic."""
    subtopic_index: int
    question_type: Literal["retention", "connection", "application"] = "retention"
    requested_at: datetime | None = None


class RetentionPolicy:
    """Decides when to ask a retention question."""

    def __init__(
        self,
        rng: random.Random | None = None,
        probability: float = 0.7,
        interval: int = 3,
    ):
        self.rng = rng or random.Random()
        self.probability = probability
        self.interval = interval

    def should_test(self, session: Session) -> RetentionTest | None:
        """
        Check whether to ask a retention question on entering the current subtopic.

        Only every ``interval``-th subtopic (never the first) is eligible, an
        earlier subtopic must have been learned, and then the question is
        asked with ``probability``.
        """
        index = session.current_subtopic_index
        if index <= 0 or index % self.interval != 0:
            return None

        learned = [
            i for i, subtopic in enumerate(session.subtopics[:index])
            if subtopic.status == MasteryStatus.UNDERSTOOD or subtopic.correct_answers >= MIN_CORRECT_FOR_RETENTION
        ]
        if not learned:
            return None

        if self.rng.random() >= self.probability:
            return None

        chosen = self.rng.choice(learned)
        logger.debug(f"Retention check: revisiting subtopic {chosen} from subtopic {index}")
        return RetentionTest(subtopic_index=chosen, requested_at=datetime.now())

    def question_for(self, test: RetentionTest, session: Session) -> str:
        """Render the connection question for a retention test."""
        previous = session.subtopics[test.subtopic_index]
        current = session.current_subtopic
        template = self.rng.choice(CONNECTION_QUESTIONS)
        return template.format(previous=previous.title, current=current.title if current else session.topic)

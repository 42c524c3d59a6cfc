"""
Assessment Adapter: grade an answer on the five-point scale.

One model call per answer with a fixed rubric. The response is parsed
defensively: a JSON object with a valid quality is used as-is, free text is
scanned for a quality keyword, and anything else (including gateway errors
and timeouts) falls back to the deterministic heuristic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from carson.assessment.heuristics import heuristic_quality, keyword_scan_quality
from carson.core.models import AnswerQuality
from carson.dialogue.detectors import is_struggling
from carson.integrations.model_gateway import ModelGateway, PromptPayload, invoke_with_timeout
from carson.integrations.parsing import Malformed, parse_model_output


class GradeSource(str, Enum):
    """Where a grade came from."""
    STRUGGLE_DETECTOR = "struggle_detector"
    MODEL = "model"
    KEYWORD_SCAN = "keyword_scan"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class GradeResult:
    """Quality grade plus the gaps the grader called out."""
    quality: AnswerQuality
    specific_gaps: str | None = None
    source: GradeSource = GradeSource.HEURISTIC


# =============================================================================
# Prompts
# =============================================================================

ASSESSMENT_PROMPT = """You are a medical education expert evaluating a student's response. Assess the quality of their answer and identify specific gaps.

**Topic**: {topic}
**Subtopic**: {subtopic}
**Tutor's Question**: {question}
**Student's Response**: {answer}

Evaluate the response and provide:
1. Overall quality assessment
2. If "partial", what specific important points are missing

For example, if discussing ectopic pregnancy risk factors and they miss PID/STIs, mention that specifically.

Respond in JSON format only:
{{
  "quality": "excellent|good|partial|incorrect|confused",
  "specificGaps": "What important points are missing (only if partial)"
}}
"""


class AssessmentAdapter:
    """Grades answers through a model gateway with a heuristic fallback."""

    def __init__(self, gateway: ModelGateway, timeout_seconds: float = 30.0):
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def assess(
        self,
        answer: str,
        question: str,
        topic: str,
        subtopic: str,
    ) -> GradeResult:
        """
        Grade one answer.

        Args:
            answer: Student answer
            question: The tutor question being answered
            topic: Session topic
            subtopic: Current subtopic title

        Returns:
            GradeResult with quality, optional gap note and grade source
        """
        if is_struggling(answer) or len((answer or "").strip()) < 2:
            return GradeResult(quality=AnswerQuality.CONFUSED, source=GradeSource.STRUGGLE_DETECTOR)

        payload = PromptPayload(
            prompt=ASSESSMENT_PROMPT.format(
                topic=topic or "Medical Topic",
                subtopic=subtopic,
                question=question or "(opening question)",
                answer=answer,
            ),
            purpose="assessment",
        )

        content = await invoke_with_timeout(self.gateway, payload, self.timeout_seconds)
        if content is None:
            return self.fallback(answer)

        return self._interpret(content, answer)

    def fallback(self, answer: str) -> GradeResult:
        """Heuristic grade, identical for identical input."""
        return GradeResult(quality=heuristic_quality(answer), source=GradeSource.HEURISTIC)

    def _interpret(self, content: str, answer: str) -> GradeResult:
        parsed = parse_model_output(content)

        if isinstance(parsed, Malformed):
            scanned = keyword_scan_quality(parsed.raw)
            if scanned is not None:
                logger.debug(f"Assessment output was not JSON, keyword scan found '{scanned.value}'")
                return GradeResult(quality=scanned, source=GradeSource.KEYWORD_SCAN)
            logger.warning("Could not parse assessment output, using heuristic")
            return self.fallback(answer)

        data = parsed.value
        raw_quality = str(data.get("quality", "")).strip().lower()
        try:
            quality = AnswerQuality(raw_quality)
        except ValueError:
            logger.warning(f"Assessment returned invalid quality {raw_quality!r}, using heuristic")
            return self.fallback(answer)

        gaps = data.get("specificGaps")
        specific_gaps = gaps.strip() if isinstance(gaps, str) and gaps.strip() else None
        return GradeResult(quality=quality, specific_gaps=specific_gaps, source=GradeSource.MODEL)

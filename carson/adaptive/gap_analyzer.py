"""
Gap Analyzer: break an answer down into knowledge gaps by severity.

Runs once per subtopic, on the first substantive answer, and seeds the
triaging state machine. Same pattern as grading: one bounded model call,
defensive parsing, deterministic fallback.
"""

from __future__ import annotations

from loguru import logger

from carson.assessment.heuristics import has_domain_vocabulary
from carson.core.models import GapAnalysis
from carson.integrations.model_gateway import ModelGateway, PromptPayload, invoke_with_timeout
from carson.integrations.parsing import Malformed, parse_model_output

GAP_ANALYSIS_PROMPT = """You are a medical education expert analyzing a student's comprehensive response about {subtopic} in the context of {topic}.

**Student's Response**: {answer}

Analyze their response and categorize ALL knowledge gaps:

CRITICAL GAPS (fundamental/dangerous misconceptions that must be addressed):
- Core pathophysiology they misunderstood
- Dangerous clinical misconceptions
- Fundamental mechanisms they missed

IMPORTANT GAPS (common/clinically relevant areas they should know):
- Common factors/presentations they missed
- Standard diagnostic/treatment approaches not mentioned

MINOR GAPS (nice-to-know but not immediately critical):
- Rare conditions/factors they didn't mention
- Academic details that aren't clinically essential

STRENGTH AREAS (things they clearly understand well)

Respond in JSON format only:
{{
  "criticalGaps": ["list of critical gaps"],
  "importantGaps": ["list of important gaps"],
  "minorGaps": ["list of minor gaps"],
  "strengthAreas": ["list of strength areas"]
}}
"""


def fallback_gap_analysis(answer: str) -> GapAnalysis:
    """Heuristic gap analysis, identical for identical input."""
    text = (answer or "").lower().strip()
    length = len(text)

    if length < 10:
        return GapAnalysis(
            critical_gaps=("Insufficient detail provided",),
            important_gaps=("Need more comprehensive explanation",),
        )

    if has_domain_vocabulary(text) and length > 50:
        return GapAnalysis(
            important_gaps=("Some concepts need deeper exploration",),
            minor_gaps=("Advanced applications could be expanded",),
            strength_areas=("Shows medical vocabulary and engagement",),
        )

    return GapAnalysis(
        critical_gaps=("Fundamental concepts need clarification",),
        important_gaps=("Basic understanding needs development",),
        strength_areas=("Attempting to engage with the topic",) if length > 20 else (),
    )


class GapAnalyzer:
    """Categorizes knowledge gaps through a model gateway with a heuristic fallback."""

    def __init__(self, gateway: ModelGateway, timeout_seconds: float = 30.0):
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def analyze(self, answer: str, subtopic: str, topic: str) -> GapAnalysis:
        """
        Analyze an answer for knowledge gaps.

        Args:
            answer: Student answer
            subtopic: Current subtopic title
            topic: Session topic

        Returns:
            GapAnalysis; fields missing from the model output are empty
        """
        payload = PromptPayload(
            prompt=GAP_ANALYSIS_PROMPT.format(
                subtopic=subtopic,
                topic=topic or "Medical Topic",
                answer=answer,
            ),
            purpose="gap-analysis",
        )

        content = await invoke_with_timeout(self.gateway, payload, self.timeout_seconds)
        if content is None:
            return fallback_gap_analysis(answer)

        parsed = parse_model_output(content)
        if isinstance(parsed, Malformed):
            logger.warning("Gap analysis output was not a JSON object, using fallback")
            return fallback_gap_analysis(answer)

        analysis = GapAnalysis.from_dict(parsed.value)
        logger.debug(
            f"Gap analysis for '{subtopic}': {len(analysis.critical_gaps)} critical, "
            f"{len(analysis.important_gaps)} important, {len(analysis.minor_gaps)} minor"
        )
        return analysis

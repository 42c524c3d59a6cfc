"""
Answer assessment.

Components:
- adapter: Model-backed five-point grading with heuristic fallback
- heuristics: Deterministic grading rules
- clinical_reasoning: Clinical reasoning language scorer
"""

from carson.assessment.adapter import AssessmentAdapter, GradeResult, GradeSource
from carson.assessment.clinical_reasoning import score_clinical_reasoning
from carson.assessment.heuristics import heuristic_quality, keyword_scan_quality

__all__ = [
    "AssessmentAdapter",
    "GradeResult",
    "GradeSource",
    "heuristic_quality",
    "keyword_scan_quality",
    "score_clinical_reasoning",
]

"""
Adaptive triaging.

Components:
- GapAnalyzer: Buckets knowledge gaps by severity
- prioritize_gaps: Ranks gaps and bounds how many are surfaced
- TriagingOrchestrator: Per-subtopic phase state machine
"""

from carson.adaptive.gap_analyzer import GapAnalyzer, fallback_gap_analysis
from carson.adaptive.gap_prioritizer import PrioritizedGap, prioritize_analysis, prioritize_gaps
from carson.adaptive.triaging import OrchestrationResult, TriagingOrchestrator

__all__ = [
    "GapAnalyzer",
    "OrchestrationResult",
    "PrioritizedGap",
    "TriagingOrchestrator",
    "fallback_gap_analysis",
    "prioritize_analysis",
    "prioritize_gaps",
]

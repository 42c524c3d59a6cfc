"""
Clinical reasoning scorer.

Looks for the language of clinical thinking in an answer (differentials,
risk stratification, mechanisms, evidence) and for overconfident phrasing
that undercuts it. Categories are weighted by what the subtopic is about,
and a small bonus is given for specialty vocabulary that fits the topic.
"""

from __future__ import annotations

from loguru import logger

from carson.core.models import ClinicalReasoningScore

REASONING_CATEGORIES: dict[str, dict[str, tuple[str, ...]]] = {
    "diagnostic_reasoning": {
        "positive": (
            "differential diagnosis", "rule out", "consider", "workup", "investigate",
            "assess for", "clinical presentation", "history and physical", "red flags",
            "most likely", "less likely", "must exclude", "index of suspicion",
            "pretest probability",
        ),
        "negative": (
            "definitely is", "obviously", "clearly", "always", "never", "impossible",
            "no doubt", "for sure", "guaranteed",
        ),
    },
    "therapeutic_reasoning": {
        "positive": (
            "evidence-based", "guidelines recommend", "first-line", "second-line",
            "contraindicated", "monitor for", "titrate", "dose adjustment", "side effects",
            "risk-benefit", "individualized", "comorbidities", "drug interactions",
        ),
        "negative": (
            "cure", "fix", "heal completely", "permanent solution", "always works",
            "never fails", "miracle cure",
        ),
    },
    "risk_assessment": {
        "positive": (
            "risk factors", "increased risk", "increase risk", "protective factors",
            "relative risk", "odds ratio", "absolute risk", "patient-specific",
            "stratification", "clinically significant",
        ),
        "negative": (
            "no risk", "completely safe", "zero chance", "will definitely", "never happens",
        ),
    },
    "pathophysiology_reasoning": {
        "positive": (
            "mechanism", "pathway", "cascade", "upstream", "downstream", "feedback loop",
            "homeostasis", "compensation", "decompensation", "cellular", "tissue",
            "organ system", "physiological response", "pathological process", "damage",
        ),
        "negative": (
            "just happens", "no real reason", "random", "mysterious",
        ),
    },
    "evidence_based": {
        "positive": (
            "research shows", "studies indicate", "meta-analysis", "systematic review",
            "randomized controlled trial", "evidence suggests", "data supports",
            "clinical trials", "level of evidence",
        ),
        "negative": (
            "i heard", "someone said", "common sense", "everyone knows", "anecdotal",
        ),
    },
    "clinical_correlation": {
        "positive": (
            "correlates with", "associated with", "predicts", "indicates", "suggests",
            "consistent with", "prognostic value", "diagnostic value", "sensitivity",
            "specificity",
        ),
        "negative": (
            "definitely means", "proves", "confirms absolutely", "only possibility",
        ),
    },
}

SPECIALTY_PATTERNS: dict[str, dict[str, tuple[str, ...]]] = {
    "cardiology": {
        "patterns": (
            "hemodynamics", "preload", "afterload", "contractility", "ejection fraction",
            "coronary perfusion", "myocardial oxygen demand", "ischemia", "arrhythmia",
        ),
        "reasoning": ("risk stratification", "functional capacity", "exercise tolerance"),
    },
    "obstetrics": {
        "patterns": (
            "maternal-fetal", "gestational age", "fetal well-being", "uterine contractions",
            "cervical changes", "fetal heart rate", "placental function", "fallopian tube",
            "beta-hcg", "transvaginal ultrasound",
        ),
        "reasoning": ("delivery planning", "fetal monitoring", "maternal safety"),
    },
    "emergency": {
        "patterns": (
            "triage", "acuity", "life-threatening", "time-sensitive", "rapid assessment",
            "primary survey", "secondary survey",
        ),
        "reasoning": ("priority setting", "resource allocation", "disposition planning"),
    },
    "internal_medicine": {
        "patterns": (
            "systems-based", "multimorbidity", "polypharmacy", "functional status",
            "quality of life", "care coordination", "chronic disease management",
        ),
        "reasoning": ("comprehensive assessment", "longitudinal care", "preventive care"),
    },
}

CONTEXT_WEIGHTS: dict[str, dict[str, float]] = {
    "diagnostic_reasoning": {
        "diagnostic_reasoning": 0.4,
        "pathophysiology_reasoning": 0.2,
        "evidence_based": 0.2,
        "clinical_correlation": 0.2,
    },
    "therapeutic_reasoning": {
        "therapeutic_reasoning": 0.4,
        "evidence_based": 0.3,
        "risk_assessment": 0.2,
        "clinical_correlation": 0.1,
    },
    "pathophysiology_reasoning": {
        "pathophysiology_reasoning": 0.5,
        "diagnostic_reasoning": 0.2,
        "clinical_correlation": 0.2,
        "evidence_based": 0.1,
    },
    "risk_assessment": {
        "risk_assessment": 0.4,
        "evidence_based": 0.3,
        "diagnostic_reasoning": 0.2,
        "clinical_correlation": 0.1,
    },
}

DEFAULT_WEIGHT = 0.1
MAX_RAW_SCORE = 20.0
SPECIALTY_BONUS_CAP = 3.0


def reasoning_context(subtopic_title: str) -> str:
    """Which reasoning category a subtopic mostly calls for."""
    title = (subtopic_title or "").lower()

    if any(word in title for word in ("diagnosis", "differential", "assessment")):
        return "diagnostic_reasoning"
    if any(word in title for word in ("treatment", "management", "therapy")):
        return "therapeutic_reasoning"
    if any(word in title for word in ("risk", "factor", "epidemiology")):
        return "risk_assessment"
    if any(word in title for word in ("pathophysiology", "mechanism", "physiology")):
        return "pathophysiology_reasoning"
    if any(word in title for word in ("evidence", "research", "study")):
        return "evidence_based"
    return "diagnostic_reasoning"


def specialty_context(topic: str) -> str:
    topic = (topic or "").lower()

    if any(word in topic for word in ("cardiac", "heart", "coronary")):
        return "cardiology"
    if any(word in topic for word in ("pregnancy", "obstetric", "fetal")):
        return "obstetrics"
    if any(word in topic for word in ("emergency", "acute", "trauma")):
        return "emergency"
    if any(word in topic for word in ("internal", "chronic", "systemic")):
        return "internal_medicine"
    return "general"


def category_weight(category: str, context: str) -> float:
    return CONTEXT_WEIGHTS.get(context, {}).get(category, DEFAULT_WEIGHT)


def sophistication_level(score: float, thinking_patterns: int, response_length: int) -> str:
    if score > 0.7 and thinking_patterns >= 3 and response_length > 100:
        return "advanced"
    if score > 0.4 and thinking_patterns >= 2:
        return "intermediate"
    return "novice"


def _recommendations(score: float, clinical_thinking: list[str], context: str) -> list[str]:
    recommendations: list[str] = []

    if score < 0.3:
        recommendations.append("Focus on clinical reasoning fundamentals")
        recommendations.append("Practice structured problem-solving approaches")

    if not clinical_thinking:
        recommendations.append("Incorporate more clinical thinking language")
        recommendations.append("Consider differential diagnosis approaches")

    context_advice = {
        "diagnostic_reasoning": ("diagnostic", "Develop systematic diagnostic reasoning skills"),
        "therapeutic_reasoning": ("therapeutic", "Consider evidence-based treatment approaches"),
        "pathophysiology_reasoning": ("pathophysiology", "Connect mechanisms to clinical presentations"),
    }
    if context in context_advice:
        marker, advice = context_advice[context]
        if not any(marker in item for item in clinical_thinking):
            recommendations.append(advice)

    if not recommendations:
        recommendations.append("Continue developing clinical reasoning skills")

    return recommendations


def score_clinical_reasoning(answer: str, subtopic_title: str, topic: str) -> ClinicalReasoningScore:
    """
    Score clinical reasoning language in an answer.

    Positive phrases earn 2 points each and negative phrases cost 1, per
    category and floored at zero. Category scores are weighted by the
    subtopic context, a specialty bonus (up to 3) is added, and the total
    is normalized against 20 and capped at 1.
    """
    text = (answer or "").lower()
    context = reasoning_context(subtopic_title)
    specialty = specialty_context(topic)

    total = 0.0
    evidence: list[str] = []
    clinical_thinking: list[str] = []

    for category, phrases in REASONING_CATEGORIES.items():
        positive = [phrase for phrase in phrases["positive"] if phrase in text]
        negative = [phrase for phrase in phrases["negative"] if phrase in text]
        category_score = max(0, len(positive) * 2 - len(negative))

        if positive:
            evidence.extend(f"{category}:{phrase}" for phrase in positive)
            clinical_thinking.append(f"Shows {category.replace('_', ' ')}")

        total += category_score * category_weight(category, context)

    if specialty != "general":
        found = [p for p in SPECIALTY_PATTERNS[specialty]["patterns"] if p in text]
        reasoning = [r for r in SPECIALTY_PATTERNS[specialty]["reasoning"] if r in text]
        evidence.extend(f"specialty:{p}" for p in found)
        evidence.extend(f"reasoning:{r}" for r in reasoning)
        total += min((len(found) + len(reasoning)) * 0.5, SPECIALTY_BONUS_CAP)

    score = min(total / MAX_RAW_SCORE, 1.0)
    level = sophistication_level(score, len(clinical_thinking), len(text))

    logger.debug(f"Clinical reasoning {score:.2f} ({level}, {context}, {len(evidence)} signals)")

    return ClinicalReasoningScore(
        score=score,
        reasoning_type=context,
        sophistication_level=level,
        clinical_thinking=tuple(clinical_thinking),
        evidence=tuple(evidence),
        recommendations=tuple(_recommendations(score, clinical_thinking, context)),
    )

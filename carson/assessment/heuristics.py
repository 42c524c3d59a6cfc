"""
Deterministic grading heuristics.

Used whenever the model cannot grade an answer: the gateway failed, timed
out, or returned something unusable. Everything here is a pure function of
the answer text, so the same answer always gets the same grade.
"""

from __future__ import annotations

import re

from carson.core.models import AnswerQuality
from carson.dialogue.detectors import is_struggling

# Domain vocabulary by area. Multi-word entries match as phrases.
DOMAIN_VOCABULARY: dict[str, tuple[str, ...]] = {
    "basic": (
        "patient", "diagnosis", "diagnose", "treatment", "symptom", "symptoms", "signs",
        "condition", "clinical", "medical", "disease", "syndrome",
    ),
    "advanced": (
        "pathophysiology", "etiology", "prognosis", "differential", "manifestation",
        "comorbidity", "contraindication", "therapeutic", "biomarker",
    ),
    "process": (
        "mechanism", "pathway", "cascade", "regulation", "metabolism", "feedback",
        "homeostasis", "inflammation", "infection", "damage", "obstruction", "scarring",
    ),
    "anatomy": (
        "organ", "tissue", "anatomical", "physiological", "cellular", "vascular",
        "kidney", "renal", "liver", "heart", "lung", "tube", "tubal", "fallopian",
        "uterus", "uterine", "ovary", "ovarian", "cervix", "cervical", "endometrium",
    ),
    "clinical": (
        "assessment", "examination", "investigation", "intervention", "monitoring",
        "management", "surgery", "surgical", "imaging", "ultrasound", "laboratory",
        "risk", "risk factor", "risk factors", "complication", "complications",
    ),
    "obstetric": (
        "pregnancy", "pregnant", "ectopic", "prenatal", "fetal", "maternal", "obstetric",
        "gynecological", "placental", "menstrual", "hcg", "beta-hcg", "preeclampsia",
        "pid", "pelvic inflammatory disease", "ivf", "iud", "methotrexate", "salpingectomy",
    ),
    "cardiorespiratory": (
        "cardiac", "coronary", "hypertension", "hypotension", "arrhythmia", "ischemia",
        "myocardial", "pulmonary", "respiratory", "ventilation", "oxygenation",
    ),
    "renal": (
        "prerenal", "intrarenal", "postrenal", "aki", "creatinine", "gfr", "hypovolemia",
        "perfusion", "oliguria", "proteinuria", "nephron",
    ),
    "endocrine": (
        "hormone", "hormonal", "insulin", "glucose", "thyroid", "adrenal", "diabetes",
    ),
    "infectious": (
        "bacterial", "viral", "antibiotic", "sepsis", "chlamydia", "gonorrhea", "sti", "pathogen",
    ),
}

CAUSAL_CONNECTIVES: tuple[str, ...] = (
    "because", "since", "due to", "caused by", "leads to", "lead to", "results in",
    "results from", "indicates", "therefore", "which causes", "so that",
)

# Quality keywords in scan priority order
QUALITY_KEYWORDS: tuple[AnswerQuality, ...] = (
    AnswerQuality.EXCELLENT,
    AnswerQuality.GOOD,
    AnswerQuality.PARTIAL,
    AnswerQuality.INCORRECT,
    AnswerQuality.CONFUSED,
)

SHORT_ACKNOWLEDGMENT = re.compile(r"^(yes|no|yeah|nope|ok)$")


def _phrase_pattern(terms: tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


VOCABULARY_PATTERN = _phrase_pattern(tuple(term for terms in DOMAIN_VOCABULARY.values() for term in terms))
CAUSAL_PATTERN = _phrase_pattern(CAUSAL_CONNECTIVES)


def domain_terms(text: str) -> list[str]:
    """Domain vocabulary found in the text, lowercased, in order of appearance."""
    return [match.lower() for match in VOCABULARY_PATTERN.findall(text or "")]


def has_domain_vocabulary(text: str) -> bool:
    return VOCABULARY_PATTERN.search(text or "") is not None


def has_causal_reasoning(text: str) -> bool:
    return CAUSAL_PATTERN.search(text or "") is not None


def heuristic_quality(answer: str) -> AnswerQuality:
    """
    Grade an answer without a model.

    confused: struggling, or under 5 characters (bare yes/no/ok excepted)
    good: domain vocabulary and causal reasoning in more than 30 characters
    partial: either signal alone, or more than 20 characters
    incorrect: anything else
    """
    text = (answer or "").lower().strip()
    length = len(text)

    if is_struggling(text):
        return AnswerQuality.CONFUSED

    if length < 5 and not SHORT_ACKNOWLEDGMENT.match(text):
        return AnswerQuality.CONFUSED

    has_vocabulary = has_domain_vocabulary(text)
    has_reasoning = has_causal_reasoning(text)

    if has_vocabulary and has_reasoning and length > 30:
        return AnswerQuality.GOOD
    if has_vocabulary or has_reasoning:
        return AnswerQuality.PARTIAL
    if length > 20:
        return AnswerQuality.PARTIAL
    return AnswerQuality.INCORRECT


def keyword_scan_quality(raw: str) -> AnswerQuality | None:
    """Find the first quality keyword in free text, by priority."""
    text = (raw or "").lower()
    for quality in QUALITY_KEYWORDS:
        if quality.value in text:
            return quality
    return None

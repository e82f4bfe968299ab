"""
Keyword heuristics used when the remote classifier cannot be reached.

Scores start from an adult-platform baseline (adult content expected, other
categories near zero) and are raised by case-insensitive substring matches.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from content_moderation.schemas.moderation import CategoryScores, ModerationResult
from content_moderation.services.policy import evaluate


@dataclass(frozen=True)
class KeywordRule:
    category: str
    keywords: Tuple[str, ...]
    score: float
    flag: str


TEXT_BASELINE = {"adult": 0.6, "violence": 0.05, "hate": 0.05, "self_harm": 0.05}
MEDIA_BASELINE = {"adult": 0.7, "violence": 0.05, "hate": 0.05, "self_harm": 0.05}

TEXT_RULES = (
    KeywordRule(
        "violence",
        ("kill", "murder", "violence", "weapon", "gun", "knife", "blood", "torture", "abuse"),
        0.9,
        "violence_language",
    ),
    KeywordRule(
        "hate",
        ("hate", "racist", "nazi", "terrorist", "supremacist", "genocide", "discrimination"),
        0.95,
        "hate_speech",
    ),
    KeywordRule(
        "self_harm",
        ("suicide", "selfharm", "cutting", "harm yourself", "kill yourself"),
        0.95,
        "selfharm_content",
    ),
)

MEDIA_RULES = (
    KeywordRule(
        "violence",
        ("blood", "weapon", "gun", "knife", "violence", "kill", "murder"),
        0.8,
        "violence_keywords",
    ),
    KeywordRule(
        "hate",
        ("nazi", "racist", "hate", "terrorist", "supremacist"),
        0.9,
        "hate_keywords",
    ),
    KeywordRule(
        "self_harm",
        ("suicide", "selfharm", "cutting", "harm"),
        0.9,
        "selfharm_keywords",
    ),
)

TEXT_PLATFORM_FLAG = "adult_platform_content"
MEDIA_PLATFORM_FLAG = "adult_content_platform"
DOCUMENT_FLAG = "document_file"


def scan_keywords(
    value: str,
    rules: Tuple[KeywordRule, ...],
    baseline: Dict[str, float],
) -> Tuple[CategoryScores, List[str]]:
    """Fold the keyword rules over value, returning raised scores and matched flags."""
    lowered = value.lower()
    scores = dict(baseline)
    flags: List[str] = []

    for rule in rules:
        if any(keyword in lowered for keyword in rule.keywords):
            scores[rule.category] = max(scores[rule.category], rule.score)
            flags.append(rule.flag)

    return CategoryScores(**scores), flags


def classify_text(text: str) -> ModerationResult:
    categories, flags = scan_keywords(text or "", TEXT_RULES, TEXT_BASELINE)
    return evaluate(categories, flags + [TEXT_PLATFORM_FLAG])


def classify_media_url(url: str) -> ModerationResult:
    """Judge media by its URL and file name only."""
    categories, flags = scan_keywords(url or "", MEDIA_RULES, MEDIA_BASELINE)
    return evaluate(categories, flags + [MEDIA_PLATFORM_FLAG])


def document_result() -> ModerationResult:
    """Fixed low-risk approval for files that are neither image nor video."""
    return ModerationResult(
        is_approved=True,
        confidence=0.9,
        categories=CategoryScores(adult=0.1, violence=0.05, hate=0.05, self_harm=0.05),
        flags=[DOCUMENT_FLAG],
        requires_human_review=False,
        reason="Document file - auto-approved",
    )

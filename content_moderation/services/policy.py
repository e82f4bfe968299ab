"""
Threshold policy for an adult-content platform.

Adult content is the product, so it only gets rejected near certainty and
never blocks auto-approval. Violence, hate and self-harm use tight bands: a
small detected risk escalates to a human, a slightly larger one rejects.
"""

from typing import Iterable, List

from content_moderation.schemas.moderation import CategoryScores, ModerationResult

AUTO_APPROVE_CEILING = {
    "violence": 0.10,
    "hate": 0.05,
    "self_harm": 0.05,
}

AUTO_REJECT_FLOOR = {
    "adult": 0.99,
    "violence": 0.20,
    "hate": 0.20,
    "self_harm": 0.20,
}

ADULT_REASON_THRESHOLD = 0.5


def _pct(score: float) -> str:
    return f"{score * 100:.1f}%"


def _reject_reason(categories: CategoryScores, flags: List[str]) -> str:
    if categories.violence > AUTO_REJECT_FLOOR["violence"]:
        return f"Content rejected: violence detected ({_pct(categories.violence)})"
    if categories.hate > AUTO_REJECT_FLOOR["hate"]:
        return f"Content rejected: hate speech detected ({_pct(categories.hate)})"
    if categories.self_harm > AUTO_REJECT_FLOOR["self_harm"]:
        return f"Content rejected: self-harm detected ({_pct(categories.self_harm)})"
    if not flags:
        return "Content rejected: extreme content detected"
    return f"Content rejected: extreme content detected ({', '.join(flags)})"


def _review_reason(categories: CategoryScores) -> str:
    if categories.violence > AUTO_APPROVE_CEILING["violence"]:
        return f"Human review required: violence detected ({_pct(categories.violence)})"
    if categories.hate > AUTO_APPROVE_CEILING["hate"]:
        return f"Human review required: potentially hateful speech ({_pct(categories.hate)})"
    if categories.self_harm > AUTO_APPROVE_CEILING["self_harm"]:
        return f"Human review required: potential self-harm ({_pct(categories.self_harm)})"
    return "Human review required: content needs manual evaluation"


def should_reject(categories: CategoryScores) -> bool:
    return (
        categories.violence > AUTO_REJECT_FLOOR["violence"]
        or categories.hate > AUTO_REJECT_FLOOR["hate"]
        or categories.self_harm > AUTO_REJECT_FLOOR["self_harm"]
        or categories.adult > AUTO_REJECT_FLOOR["adult"]
    )


def can_auto_approve(categories: CategoryScores) -> bool:
    # adult has no approval ceiling
    return (
        categories.violence <= AUTO_APPROVE_CEILING["violence"]
        and categories.hate <= AUTO_APPROVE_CEILING["hate"]
        and categories.self_harm <= AUTO_APPROVE_CEILING["self_harm"]
    )


def evaluate(categories: CategoryScores, flags: Iterable[str] = ()) -> ModerationResult:
    """
    Turn category scores into a decision.

    Rejection is checked first, then auto-approval; anything left sits
    between the two bands and is escalated to a human reviewer.

    Args:
        categories: Scores to evaluate
        flags: Flags collected by the classifier, carried onto the result

    Returns:
        ModerationResult with ``confidence = 1 - max(categories)``
    """
    flags = list(dict.fromkeys(flags))

    if should_reject(categories):
        is_approved, requires_human_review = False, False
        reason = _reject_reason(categories, flags)
    elif can_auto_approve(categories):
        is_approved, requires_human_review = True, False
        if categories.adult > ADULT_REASON_THRESHOLD:
            reason = (
                f"Adult content auto-approved ({_pct(categories.adult)} adult, "
                "compliant with platform policy)"
            )
        else:
            reason = "Content auto-approved (safety scores acceptable)"
    else:
        is_approved, requires_human_review = False, True
        reason = _review_reason(categories)

    return ModerationResult(
        is_approved=is_approved,
        confidence=1 - categories.max_score(),
        categories=categories,
        flags=flags,
        requires_human_review=requires_human_review,
        reason=reason,
    )

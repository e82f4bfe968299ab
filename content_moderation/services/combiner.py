from typing import List, Sequence

from content_moderation.schemas.moderation import CategoryScores, ModerationResult
from content_moderation.services.policy import evaluate

NO_RESULTS_FLAG = "no_results"


def combine_results(results: Sequence[ModerationResult]) -> ModerationResult:
    """
    Merge independent evaluations (title, description, media, link) into one.

    The worst score per category wins and flags are unioned in first-seen
    order before the threshold policy runs again. An empty input is never
    approved.
    """
    if not results:
        return ModerationResult(
            is_approved=False,
            confidence=0.0,
            categories=CategoryScores(adult=0.0, violence=0.0, hate=0.0, self_harm=0.0),
            flags=[NO_RESULTS_FLAG],
            requires_human_review=True,
            reason="No moderation results available",
        )

    combined = CategoryScores(
        adult=max(r.categories.adult for r in results),
        violence=max(r.categories.violence for r in results),
        hate=max(r.categories.hate for r in results),
        self_harm=max(r.categories.self_harm for r in results),
    )
    flags: List[str] = list(dict.fromkeys(flag for r in results for flag in r.flags))

    return evaluate(combined, flags)

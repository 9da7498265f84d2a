# formengine/scoring/range_resolver.py
"""
Range Resolver
--------------
Maps a total score to the feedback message configured for it.

Ranges are closed intervals and may overlap; the first range in
configuration order with min <= score <= max wins. Ranges are validated on
save, so resolution does no checking of its own.
"""
from typing import List, Optional, Sequence, Tuple

from formengine.models.form import FormDefinition, ScoreRange


def resolve_feedback(score: int, ranges: Sequence[ScoreRange]) -> Optional[str]:
    """Message of the first matching range, or None."""
    for score_range in ranges or ():
        if score_range.min <= score <= score_range.max:
            return score_range.message
    return None


def find_overlapping_ranges(ranges: Sequence[ScoreRange]) -> List[Tuple[int, int]]:
    """
    Index pairs (i, j), i < j, of ranges whose intervals intersect.

    Overlap keeps first-match semantics; writes only report it as a warning.
    """
    overlaps: List[Tuple[int, int]] = []
    for i, first in enumerate(ranges):
        for j in range(i + 1, len(ranges)):
            second = ranges[j]
            if first.min <= second.max and second.min <= first.max:
                overlaps.append((i, j))
    return overlaps


def should_show_score_card(form: FormDefinition) -> bool:
    """Scoring is active only when switched on and some field is scored."""
    if form.show_total_score is not True:
        return False
    return any(f.has_numeric_values for f in form.fields)

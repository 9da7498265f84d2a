# formengine/scoring/score_aggregator.py
"""
Score Aggregator
----------------
Turns a response set into one integer total.

    total = Σ contribution(field, answer[field.id])
            over fields with has_numeric_values and a contribution rule

Missing answers and malformed option data contribute 0; the aggregator never
raises. Per-question scores are kept alongside the total so a stored response
records how it was scored.
"""
import structlog
from dataclasses import dataclass, field as dc_field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from formengine.config import settings
from formengine.models.form import FieldDefinition
from formengine.scoring.field_catalog import (
    contribution,
    contribution_rule,
    normalize_answer,
)

logger = structlog.get_logger(__name__)


@dataclass
class ScoreResult:
    """Output of ScoreAggregator.score()."""
    total_score: int
    question_scores: Dict[str, int] = dc_field(default_factory=dict)
    scored_fields: int = 0    # fields eligible for scoring
    answered_fields: int = 0  # eligible fields that had an answer


class ScoreAggregator:
    """Sum per-field contributions into a total score."""

    def __init__(self, affirmative_tokens: Optional[Iterable[str]] = None):
        tokens = affirmative_tokens if affirmative_tokens is not None else settings.AFFIRMATIVE_TOKENS
        self.affirmative_tokens = frozenset(t.strip().lower() for t in tokens)

    def score(
        self,
        responses: Mapping[str, Any],
        fields: Sequence[FieldDefinition],
    ) -> ScoreResult:
        """
        Args:
            responses: Field id -> raw answer.
            fields:    Field definitions of the form, in order.

        Returns:
            ScoreResult with the total and the contribution of every scored
            field that was answered.
        """
        result = ScoreResult(total_score=0)
        if not fields:
            return result

        responses = responses or {}
        for f in fields:
            if not f.has_numeric_values:
                continue
            rule = contribution_rule(f.type)
            if rule is None:
                continue
            result.scored_fields += 1

            raw = responses.get(f.id)
            if raw is None:
                continue
            result.answered_fields += 1

            answer = normalize_answer(rule.kind, raw, self.affirmative_tokens)
            points = contribution(f, answer)
            result.question_scores[f.id] = points
            result.total_score += points

        logger.debug(
            "score_computed",
            total_score=result.total_score,
            scored_fields=result.scored_fields,
            answered_fields=result.answered_fields,
        )
        return result

    def compute_total_score(
        self,
        responses: Mapping[str, Any],
        fields: Sequence[FieldDefinition],
    ) -> int:
        return self.score(responses, fields).total_score

    def compute_question_scores(
        self,
        responses: Mapping[str, Any],
        fields: Sequence[FieldDefinition],
    ) -> Dict[str, int]:
        return self.score(responses, fields).question_scores


def compute_total_score(
    responses: Mapping[str, Any],
    fields: Sequence[FieldDefinition],
) -> int:
    """Module-level shortcut using the configured affirmative tokens."""
    return ScoreAggregator().compute_total_score(responses, fields)


def compute_question_scores(
    responses: Mapping[str, Any],
    fields: Sequence[FieldDefinition],
) -> Dict[str, int]:
    return ScoreAggregator().compute_question_scores(responses, fields)

"""
Submission Scoring Service - Form Scoring & Access Engine
formengine/services/scoring_service.py

Scores one submission against its form:

  1. ScoreAggregator     responses + fields -> total, per-question scores
  2. resolve_feedback    total + form.score_ranges -> feedback message

Only form-level score_ranges are read; the per-field copies are a legacy
mirror and never consulted here.
"""

from dataclasses import dataclass, field as dc_field
from typing import Any, Dict, Mapping, Optional

import structlog

from formengine.models.form import FormDefinition
from formengine.scoring.range_resolver import resolve_feedback
from formengine.scoring.score_aggregator import ScoreAggregator

logger = structlog.get_logger(__name__)


@dataclass
class ScoredSubmission:
    total_score: Optional[int] = None
    question_scores: Dict[str, int] = dc_field(default_factory=dict)
    feedback: Optional[str] = None


class SubmissionScoringService:
    """Glue between the aggregator and the range resolver."""

    def __init__(self, aggregator: Optional[ScoreAggregator] = None):
        self.aggregator = aggregator or ScoreAggregator()

    def score_submission(
        self,
        form: FormDefinition,
        responses: Mapping[str, Any],
    ) -> ScoredSubmission:
        if not form.show_total_score:
            return ScoredSubmission()

        result = self.aggregator.score(responses, form.fields)
        feedback = resolve_feedback(result.total_score, form.score_ranges)

        logger.info(
            "submission_scored",
            form_id=form.id,
            total_score=result.total_score,
            has_feedback=feedback is not None,
        )
        return ScoredSubmission(
            total_score=result.total_score,
            question_scores=result.question_scores,
            feedback=feedback,
        )

from pydantic import BaseModel, Field
from uuid import uuid4
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from formengine.models.enumerations import SyncState


class ResponseSubmit(BaseModel):
    """
    Payload for submitting (or resubmitting) answers to a form.
    """

    responses: Dict[str, Any] = Field(
        default_factory=dict,
        description="Field id -> raw answer"
    )


class FormResponse(BaseModel):
    """
    One submitted response. Never mutated after creation; a resubmission
    creates a new record pointing at the one it replaces.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    form_id: str
    responses: Dict[str, Any] = Field(default_factory=dict)
    submitted_by: Optional[str] = Field(
        default=None,
        description="Submitter email, None for anonymous"
    )
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    total_score: Optional[int] = None
    question_scores: Dict[str, int] = Field(default_factory=dict)
    feedback: Optional[str] = None
    supersedes: Optional[str] = Field(
        default=None,
        description="Id of the earlier response this one replaces"
    )
    sync_state: SyncState = SyncState.UNSYNCED

from pydantic import BaseModel, Field, field_validator, model_validator
from uuid import uuid4
from datetime import datetime, timezone
from typing import Any, List, Optional
import math

from formengine.access.tokens import generate_access_token
from formengine.models.enumerations import FieldType, HttpMethod


def _coerce_numeric_value(value: Any) -> Optional[int]:
    """Lenient integer coercion: anything that is not a whole number becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    return None


class FieldOption(BaseModel):
    """
    One selectable option of a choice-like field.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    label: str = ""
    value: str = ""
    numeric_value: Optional[int] = Field(
        default=None,
        description="Contribution to the total score when selected"
    )

    @field_validator("numeric_value", mode="before")
    @classmethod
    def coerce_numeric_value(cls, v: Any) -> Optional[int]:
        # Malformed per-option data means "no contribution", never a failure
        return _coerce_numeric_value(v)


class ScoreRange(BaseModel):
    """
    Closed score interval mapped to a feedback message.
    """

    min: int = Field(..., description="Inclusive lower bound")
    max: int = Field(..., description="Inclusive upper bound")
    message: str = Field(default="", description="Feedback shown for scores in range")

    @model_validator(mode="after")
    def validate_bounds(self):
        """Ensure min <= max."""
        if self.min > self.max:
            raise ValueError("min must be <= max")
        return self


class FieldDefinition(BaseModel):
    """
    A single question on a form.
    """

    id: str = Field(..., min_length=1, description="Unique within the form")
    type: FieldType
    label: str = ""
    required: bool = False
    placeholder: Optional[str] = None
    description: Optional[str] = None
    options: List[FieldOption] = Field(default_factory=list)
    has_numeric_values: bool = Field(
        default=False,
        description="Operator switch: include this field in the total score"
    )
    score_ranges: List[ScoreRange] = Field(
        default_factory=list,
        description="Denormalized copy of the form's score ranges"
    )

    @field_validator("score_ranges", mode="before")
    @classmethod
    def drop_invalid_ranges(cls, v: Any) -> List[ScoreRange]:
        from formengine.core.validation import validate_score_ranges

        clean, _ = validate_score_ranges(v if isinstance(v, list) else [])
        return clean


class HttpHeader(BaseModel):
    key: str = ""
    value: str = ""


class HttpConfig(BaseModel):
    """
    Optional webhook fired after each submission.
    """

    enabled: bool = False
    url: Optional[str] = None
    method: HttpMethod = HttpMethod.POST
    headers: List[HttpHeader] = Field(default_factory=list)
    body: Optional[str] = Field(
        default=None,
        description="JSON template; key 'id_del_elemento' is replaced by the response"
    )


class FormBase(BaseModel):
    """
    Fields shared by create payloads and stored forms.
    """

    title: str = Field(default="Untitled Form", max_length=255)
    description: str = ""
    fields: List[FieldDefinition] = Field(default_factory=list)
    is_private: bool = False
    show_total_score: bool = False
    allow_view_own_responses: bool = False
    allow_edit_own_responses: bool = False
    form_color: str = "#3b82f6"
    http_config: Optional[HttpConfig] = None

    @model_validator(mode="after")
    def validate_unique_field_ids(self):
        """Ensure field ids are unique within the form."""
        ids = [f.id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError("field ids must be unique within a form")
        return self


class FormCreate(FormBase):
    """
    Model for creating a new form. Collaboration and scoring lists arrive raw
    and are normalized by the synchronizer.
    """

    allowed_users: List[str] = Field(default_factory=list)
    collaborators: List[str] = Field(default_factory=list)
    score_ranges: Any = Field(default_factory=list)


class FormUpdate(BaseModel):
    """
    Partial update; only fields explicitly set are merged.
    """

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    fields: Optional[List[FieldDefinition]] = None
    is_private: Optional[bool] = None
    show_total_score: Optional[bool] = None
    allow_view_own_responses: Optional[bool] = None
    allow_edit_own_responses: Optional[bool] = None
    form_color: Optional[str] = None
    http_config: Optional[HttpConfig] = None
    allowed_users: Optional[List[str]] = None
    collaborators: Optional[List[str]] = None
    score_ranges: Optional[Any] = None


class FormDefinition(FormBase):
    """
    A stored form as held in the local cache and the remote store.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: Optional[str] = Field(default=None, description="Creator's email, None if created anonymously")
    allowed_users: List[str] = Field(default_factory=list)
    collaborators: List[str] = Field(default_factory=list)
    access_token: Optional[str] = Field(default_factory=generate_access_token)
    score_ranges: List[ScoreRange] = Field(default_factory=list)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last local modification timestamp (UTC)"
    )


class FormView(FormBase):
    """
    A form as returned by read endpoints. Built from a FormDefinition dump;
    keys left out of the dump stay unset and are omitted from the response,
    which is how non-editors get a form without its access token, member
    lists and webhook config.
    """

    id: str
    owner_id: Optional[str] = None
    allowed_users: List[str] = Field(default_factory=list)
    collaborators: List[str] = Field(default_factory=list)
    access_token: Optional[str] = None
    score_ranges: List[ScoreRange] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# Visible to owner and collaborators only
EDITOR_ONLY_FIELDS = frozenset({"access_token", "allowed_users", "collaborators", "http_config"})


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error occurrence timestamp")

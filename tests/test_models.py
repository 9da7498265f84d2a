# tests/test_models.py

"""
Model Tests - Pydantic models for forms, responses and principals
"""

import pytest
from pydantic import ValidationError

from formengine.models.enumerations import FieldType, Standing, SyncState
from formengine.models.form import (
    FieldDefinition,
    FieldOption,
    FormCreate,
    FormDefinition,
    FormUpdate,
    HttpConfig,
    ScoreRange,
)
from formengine.models.principal import Permissions, Principal
from formengine.models.response import FormResponse



# FIELD OPTION TESTS


class TestFieldOption:

    @pytest.mark.parametrize("raw, expected", [(3, 3), (2.0, 2), (-1, -1), (None, None)])
    def test_numeric_value_kept(self, raw, expected):
        assert FieldOption(value="a", numeric_value=raw).numeric_value == expected

    @pytest.mark.parametrize("raw", ["3", "abc", True, 2.5, float("nan"), [1]])
    def test_malformed_numeric_value_becomes_none(self, raw):
        assert FieldOption(value="a", numeric_value=raw).numeric_value is None

    def test_ids_are_generated(self):
        assert FieldOption().id != FieldOption().id



# SCORE RANGE TESTS


class TestScoreRange:

    def test_valid(self):
        score_range = ScoreRange(min=0, max=0)
        assert score_range.message == ""

    def test_min_greater_than_max_rejected(self):
        with pytest.raises(ValidationError):
            ScoreRange(min=5, max=1, message="x")



# FIELD DEFINITION TESTS


class TestFieldDefinition:

    def test_type_parsed(self):
        field = FieldDefinition(id="q", type="star-rating")
        assert field.type == FieldType.STAR_RATING
        assert field.has_numeric_values is False

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            FieldDefinition(id="q", type="hologram")

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            FieldDefinition(id="", type="text")

    def test_invalid_field_ranges_dropped(self):
        field = FieldDefinition(
            id="q",
            type="radio",
            score_ranges=[{"min": 0, "max": 5, "message": "ok"}, {"min": 9, "max": 1}],
        )
        assert field.score_ranges == [ScoreRange(min=0, max=5, message="ok")]

    def test_non_list_field_ranges_ignored(self):
        assert FieldDefinition(id="q", type="radio", score_ranges="nope").score_ranges == []



# FORM TESTS


class TestFormModels:

    def test_defaults(self):
        form = FormDefinition()
        assert form.title == "Untitled Form"
        assert form.is_private is False
        assert form.owner_id is None
        assert form.access_token
        assert form.form_color == "#3b82f6"

    def test_tokens_are_unique(self):
        assert FormDefinition().access_token != FormDefinition().access_token

    def test_duplicate_field_ids_rejected(self):
        with pytest.raises(ValidationError):
            FormCreate(fields=[{"id": "q", "type": "text"}, {"id": "q", "type": "email"}])

    def test_create_accepts_raw_score_ranges(self):
        payload = FormCreate(score_ranges=[{"min": "x"}, 3])
        assert payload.score_ranges == [{"min": "x"}, 3]

    def test_update_tracks_explicit_fields(self):
        changes = FormUpdate(title="New")
        assert changes.model_dump(exclude_unset=True) == {"title": "New"}

    def test_http_config_defaults(self):
        config = HttpConfig(url="https://hooks.example.com")
        assert config.enabled is False
        assert config.method.value == "POST"



# RESPONSE / PRINCIPAL TESTS


class TestResponseAndPrincipal:

    def test_response_defaults(self):
        response = FormResponse(form_id="f1", responses={"q": "a"})
        assert response.sync_state == SyncState.UNSYNCED
        assert response.supersedes is None
        assert response.question_scores == {}

    def test_principal_email_normalized(self):
        assert Principal(email="  Someone@Example.COM ").email == "someone@example.com"
        assert Principal(email="   ").email is None

    def test_admin_preview(self):
        assert Principal(standing=Standing.ADMIN).is_admin_preview is True
        assert Principal(email="a@x.com").is_admin_preview is False

    def test_permissions_default_to_nothing(self):
        permissions = Permissions()
        assert not (permissions.can_view or permissions.can_edit or permissions.can_respond)

"""
Field Catalog Tests - Form Scoring & Access Engine
tests/test_field_catalog.py
"""
import pytest

from formengine.models.enumerations import ContributionKind, FieldType
from formengine.models.form import FieldDefinition, FieldOption
from formengine.scoring.field_catalog import (
    BinaryAnswer,
    MultiChoiceAnswer,
    ScaleAnswer,
    SingleChoiceAnswer,
    contribution,
    contribution_rule,
    is_affirmative,
    is_scorable,
    normalize_answer,
    parse_leading_int,
)

TOKENS = frozenset({"true", "yes", "sí", "si"})


class TestContributionRule:
    """Which field types contribute, and how."""

    @pytest.mark.parametrize(
        "field_type, kind",
        [
            (FieldType.CHECKBOX, ContributionKind.MULTI_CHOICE),
            (FieldType.YESNO, ContributionKind.BINARY),
            (FieldType.RADIO, ContributionKind.SINGLE_CHOICE),
            (FieldType.SELECT, ContributionKind.SINGLE_CHOICE),
            (FieldType.IMAGE_SELECT, ContributionKind.SINGLE_CHOICE),
            (FieldType.STAR_RATING, ContributionKind.DIRECT_SCALE),
            (FieldType.OPINION_SCALE, ContributionKind.DIRECT_SCALE),
        ],
    )
    def test_contributing_types(self, field_type, kind):
        rule = contribution_rule(field_type)
        assert rule is not None
        assert rule.kind == kind
        assert field_type in rule.field_types

    @pytest.mark.parametrize(
        "field_type",
        [
            FieldType.TEXT, FieldType.TEXTAREA, FieldType.EMAIL, FieldType.NUMBER,
            FieldType.DATE, FieldType.TIME, FieldType.TIMER, FieldType.FULLNAME,
            FieldType.PHONE, FieldType.ADDRESS, FieldType.MATRIX, FieldType.RANKING,
            FieldType.IMAGE_UPLOAD, FieldType.FILE_UPLOAD, FieldType.DRAWING,
            FieldType.SIGNATURE, FieldType.TERMS, FieldType.WELCOME,
        ],
    )
    def test_non_contributing_types(self, field_type):
        assert contribution_rule(field_type) is None

    def test_is_scorable_needs_flag_and_rule(self):
        assert is_scorable(FieldDefinition(id="a", type="radio", has_numeric_values=True))
        assert not is_scorable(FieldDefinition(id="b", type="radio"))
        assert not is_scorable(FieldDefinition(id="c", type="number", has_numeric_values=True))


class TestParseLeadingInt:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("7", 7),
            (" 12abc", 12),
            ("-3", -3),
            ("+4", 4),
            (5, 5),
            (7.9, 7),
            (-2.5, -2),
            ("abc", None),
            ("", None),
            (None, None),
            (True, None),
            (False, None),
            (float("nan"), None),
            (float("inf"), None),
            ([3], None),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_leading_int(raw) == expected


class TestAffirmative:

    @pytest.mark.parametrize("raw", [True, "yes", "YES", " true ", "Sí", "si", "TRUE"])
    def test_affirmative(self, raw):
        assert is_affirmative(raw, TOKENS) is True

    @pytest.mark.parametrize("raw", [False, "no", "", "nope", 1, None, ["yes"]])
    def test_not_affirmative(self, raw):
        assert is_affirmative(raw, TOKENS) is False

    def test_custom_tokens(self):
        assert is_affirmative("Oui", {"oui"}) is True
        assert is_affirmative("yes", {"oui"}) is False


class TestNormalizeAnswer:

    def test_none_is_no_answer(self):
        for kind in ContributionKind:
            assert normalize_answer(kind, None, TOKENS) is None

    def test_multi_choice(self):
        answer = normalize_answer(ContributionKind.MULTI_CHOICE, ["a", "b"], TOKENS)
        assert answer == MultiChoiceAnswer(selected=("a", "b"))

    def test_multi_choice_rejects_scalar(self):
        assert normalize_answer(ContributionKind.MULTI_CHOICE, "a", TOKENS) is None

    def test_multi_choice_skips_non_strings(self):
        answer = normalize_answer(ContributionKind.MULTI_CHOICE, ["a", 3, None], TOKENS)
        assert answer.selected == ("a",)

    def test_binary(self):
        assert normalize_answer(ContributionKind.BINARY, "Yes", TOKENS) == BinaryAnswer(True)
        assert normalize_answer(ContributionKind.BINARY, "no", TOKENS) == BinaryAnswer(False)

    def test_single_choice_stringifies_ints(self):
        assert normalize_answer(ContributionKind.SINGLE_CHOICE, 2, TOKENS) == SingleChoiceAnswer("2")

    def test_single_choice_rejects_bool_and_lists(self):
        assert normalize_answer(ContributionKind.SINGLE_CHOICE, True, TOKENS) is None
        assert normalize_answer(ContributionKind.SINGLE_CHOICE, ["a"], TOKENS) is None

    def test_direct_scale(self):
        assert normalize_answer(ContributionKind.DIRECT_SCALE, "4", TOKENS) == ScaleAnswer(4)
        assert normalize_answer(ContributionKind.DIRECT_SCALE, "four", TOKENS) is None


class TestContribution:

    def _yesno(self, options):
        return FieldDefinition(id="q", type="yesno", has_numeric_values=True, options=options)

    def test_binary_uses_first_and_second_option(self):
        field = self._yesno([
            FieldOption(value="yes", numeric_value=2),
            FieldOption(value="no", numeric_value=0),
        ])
        assert contribution(field, BinaryAnswer(True)) == 2
        assert contribution(field, BinaryAnswer(False)) == 0

    def test_binary_missing_option_contributes_zero(self):
        field = self._yesno([FieldOption(value="yes", numeric_value=2)])
        assert contribution(field, BinaryAnswer(False)) == 0
        assert contribution(self._yesno([]), BinaryAnswer(True)) == 0

    def test_option_without_numeric_value(self):
        field = FieldDefinition(
            id="q",
            type="radio",
            has_numeric_values=True,
            options=[FieldOption(value="a")],
        )
        assert contribution(field, SingleChoiceAnswer("a")) == 0

    def test_unknown_option_contributes_zero(self):
        field = FieldDefinition(
            id="q",
            type="checkbox",
            has_numeric_values=True,
            options=[FieldOption(value="a", numeric_value=3)],
        )
        assert contribution(field, MultiChoiceAnswer(("a", "zzz"))) == 3

    def test_scale_added_verbatim(self):
        field = FieldDefinition(id="q", type="opinion-scale", has_numeric_values=True)
        assert contribution(field, ScaleAnswer(9)) == 9

    def test_no_answer(self):
        field = FieldDefinition(id="q", type="opinion-scale", has_numeric_values=True)
        assert contribution(field, None) == 0

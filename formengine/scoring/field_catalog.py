# formengine/scoring/field_catalog.py
"""
Field Catalog
-------------
Static taxonomy of which field types can carry a numeric contribution and how
a raw answer is read for each of them.

    kind            field types                       contribution
    multi_choice    checkbox                          Σ numeric_value of selected options
    binary          yesno                             options[0] if affirmative else options[1]
    single_choice   radio, select, image-select       numeric_value of the matching option
    direct_scale    star-rating, opinion-scale        the answer parsed as an integer

Every other type (free text, date/time, uploads, drawing/signature, address,
matrix, ranking, terms, welcome banner) has no rule and never contributes,
whatever its has_numeric_values flag says.

Raw answers are first normalized into a tagged answer; None means the field
has no usable answer and contributes 0.
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from formengine.models.enumerations import ContributionKind, FieldType
from formengine.models.form import FieldDefinition, FieldOption

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ---------------------------------------------------------------------------
# Tagged answers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MultiChoiceAnswer:
    selected: Tuple[str, ...]


@dataclass(frozen=True)
class BinaryAnswer:
    affirmative: bool


@dataclass(frozen=True)
class SingleChoiceAnswer:
    value: str


@dataclass(frozen=True)
class ScaleAnswer:
    value: int


Answer = Union[MultiChoiceAnswer, BinaryAnswer, SingleChoiceAnswer, ScaleAnswer]


@dataclass(frozen=True)
class ContributionRule:
    """How one family of field types contributes to the total score."""
    kind: ContributionKind
    field_types: FrozenSet[FieldType]


_RULES = (
    ContributionRule(ContributionKind.MULTI_CHOICE, frozenset({FieldType.CHECKBOX})),
    ContributionRule(ContributionKind.BINARY, frozenset({FieldType.YESNO})),
    ContributionRule(
        ContributionKind.SINGLE_CHOICE,
        frozenset({FieldType.RADIO, FieldType.SELECT, FieldType.IMAGE_SELECT}),
    ),
    ContributionRule(
        ContributionKind.DIRECT_SCALE,
        frozenset({FieldType.STAR_RATING, FieldType.OPINION_SCALE}),
    ),
)

CONTRIBUTION_RULES: Dict[FieldType, ContributionRule] = {
    field_type: rule for rule in _RULES for field_type in rule.field_types
}


def contribution_rule(field_type: FieldType) -> Optional[ContributionRule]:
    """Rule for a field type, or None when the type never contributes."""
    return CONTRIBUTION_RULES.get(field_type)


def is_scorable(field: FieldDefinition) -> bool:
    """True when the operator enabled scoring and the type supports it."""
    return field.has_numeric_values and contribution_rule(field.type) is not None


# ---------------------------------------------------------------------------
# Answer normalization
# ---------------------------------------------------------------------------

def parse_leading_int(raw: Any) -> Optional[int]:
    """
    Lenient integer parse: "7" -> 7, " 12abc" -> 12, 7.9 -> 7, "abc" -> None.
    Booleans are not numbers.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        return int(match.group(1)) if match else None
    return None


def is_affirmative(raw: Any, affirmative_tokens: Iterable[str]) -> bool:
    if raw is True:
        return True
    if isinstance(raw, str):
        return raw.strip().lower() in set(affirmative_tokens)
    return False


def normalize_answer(
    kind: ContributionKind,
    raw: Any,
    affirmative_tokens: Iterable[str],
) -> Optional[Answer]:
    """Convert a raw answer into the tagged answer for a contribution kind."""
    if raw is None:
        return None

    if kind == ContributionKind.MULTI_CHOICE:
        if not isinstance(raw, (list, tuple)):
            return None
        return MultiChoiceAnswer(selected=tuple(v for v in raw if isinstance(v, str)))

    if kind == ContributionKind.BINARY:
        return BinaryAnswer(affirmative=is_affirmative(raw, affirmative_tokens))

    if kind == ContributionKind.SINGLE_CHOICE:
        if isinstance(raw, bool):
            return None
        if isinstance(raw, (int, str)):
            return SingleChoiceAnswer(value=str(raw))
        return None

    if kind == ContributionKind.DIRECT_SCALE:
        parsed = parse_leading_int(raw)
        return ScaleAnswer(value=parsed) if parsed is not None else None

    return None


# ---------------------------------------------------------------------------
# Contribution
# ---------------------------------------------------------------------------

def _option_value(option: Optional[FieldOption]) -> int:
    if option is None or option.numeric_value is None:
        return 0
    return option.numeric_value


def _find_option(field: FieldDefinition, value: str) -> Optional[FieldOption]:
    return next((opt for opt in field.options if opt.value == value), None)


def contribution(field: FieldDefinition, answer: Optional[Answer]) -> int:
    """Points one answer adds for one field. Never raises."""
    if answer is None:
        return 0

    if isinstance(answer, MultiChoiceAnswer):
        return sum(_option_value(_find_option(field, v)) for v in answer.selected)

    if isinstance(answer, BinaryAnswer):
        index = 0 if answer.affirmative else 1
        option = field.options[index] if len(field.options) > index else None
        return _option_value(option)

    if isinstance(answer, SingleChoiceAnswer):
        return _option_value(_find_option(field, answer.value))

    if isinstance(answer, ScaleAnswer):
        return answer.value

    return 0

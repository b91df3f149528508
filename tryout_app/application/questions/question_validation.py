"""
Shape checks for question payloads.

Pydantic handles the structural part (required fields, block types, no stray
keys) and the rule functions below handle the cross-field part: option counts,
answer ids that must point at declared options/items, and so on.
"""
from typing import Any, Callable, Dict, Iterable, List, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tryout_app.application.errors import ValidationError
from tryout_app.presentation.schemas.question_data_schema import (
    MAX_OPTIONS,
    MIN_OPTIONS,
    OPTION_IDS,
    QUESTION_DATA_MODELS,
    BaseQuestionData,
    ContentBlock,
    ContentItem,
    EssayData,
    MatchingData,
    MultipleChoiceData,
    MultipleResponseData,
    OrderingData,
    QuestionType,
    ShortAnswerData,
    StatementValidationData,
    TrueFalseData,
)


def parse_question_type(value: Union[str, QuestionType]) -> QuestionType:
    try:
        return QuestionType(value)
    except ValueError:
        raise ValidationError("question_type", f"Unknown question type '{value}'")


def requires_manual_grading(question_type: Union[str, QuestionType]) -> bool:
    return parse_question_type(question_type) == QuestionType.ESSAY


def validate_question_data(question_type: Union[str, QuestionType], payload: Any) -> BaseQuestionData:
    """
    Validate a raw payload against the rules of `question_type`.

    Returns the parsed variant model. Raises ValidationError naming the first
    offending field.
    """
    qtype = parse_question_type(question_type)
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_none=True)
    if not isinstance(payload, dict):
        raise ValidationError("question_data", "must be an object")

    model = QUESTION_DATA_MODELS[qtype]
    try:
        data = model.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "question_data"
        raise ValidationError(field, first["msg"])

    if not _has_content(data.question):
        raise ValidationError("question", "question content is required")

    _RULES[qtype](data)
    return data


def dump_question_data(data: BaseQuestionData) -> Dict[str, Any]:
    """JSON-ready form stored in questions.question_data."""
    return data.model_dump(mode="json", exclude_none=True)


# ---------------------------
# Helpers
# ---------------------------

def _has_content(blocks: List[ContentBlock]) -> bool:
    """True when at least one block would show something to the student."""
    for block in blocks:
        if block.type == "image":
            if block.url.strip():
                return True
        elif block.type == "table":
            if any(cell.strip() for row in block.data for cell in row):
                return True
        elif block.content.strip():
            return True
    return False


def _check_item_content(items: Iterable[ContentItem], field: str) -> None:
    for index, item in enumerate(items):
        if not _has_content(item.content):
            raise ValidationError(f"{field}.{index}.content", f"item {item.id} content is required")


def _unique_ids(items: Iterable[ContentItem], field: str) -> List[str]:
    ids = [item.id for item in items]
    seen = set()
    for item_id in ids:
        if item_id in seen:
            raise ValidationError(field, f"duplicate id '{item_id}'")
        seen.add(item_id)
    return ids


def _check_lettered_options(options: List[ContentItem]) -> List[str]:
    if len(options) < MIN_OPTIONS:
        raise ValidationError("options", f"at least {MIN_OPTIONS} options are required")
    if len(options) > MAX_OPTIONS:
        raise ValidationError("options", f"at most {MAX_OPTIONS} options are allowed")

    ids = _unique_ids(options, "options")
    for index, option in enumerate(options):
        if option.id not in OPTION_IDS:
            raise ValidationError(f"options.{index}.id", f"option id must be one of {', '.join(OPTION_IDS)}")
        if not _has_content(option.content):
            raise ValidationError(f"options.{index}.content", f"option {option.id} content is required")
    return ids


# ---------------------------
# Per-type rules
# ---------------------------

def _check_multiple_choice(data: MultipleChoiceData) -> None:
    ids = _check_lettered_options(data.options)
    if data.correct_answer not in ids:
        raise ValidationError("correct_answer", f"'{data.correct_answer}' is not one of the options")


def _check_multiple_response(data: MultipleResponseData) -> None:
    ids = _check_lettered_options(data.options)
    if not data.correct_answers:
        raise ValidationError("correct_answers", "at least one correct answer is required")
    if len(set(data.correct_answers)) != len(data.correct_answers):
        raise ValidationError("correct_answers", "answers must not repeat")
    for answer in data.correct_answers:
        if answer not in ids:
            raise ValidationError("correct_answers", f"'{answer}' is not one of the options")


def _check_true_false(data: TrueFalseData) -> None:
    # correct_answer is already a strict bool
    return None


def _check_statement_validation(data: StatementValidationData) -> None:
    if not data.statements:
        raise ValidationError("statements", "at least one statement is required")
    _unique_ids(data.statements, "statements")
    for index, statement in enumerate(data.statements):
        if not _has_content(statement.content):
            raise ValidationError(f"statements.{index}.content", "statement content is required")


def _check_matching(data: MatchingData) -> None:
    if not data.left_items:
        raise ValidationError("left_items", "at least one item is required")
    if not data.right_items:
        raise ValidationError("right_items", "at least one item is required")
    left_ids = set(_unique_ids(data.left_items, "left_items"))
    _check_item_content(data.left_items, "left_items")
    right_ids = set(_unique_ids(data.right_items, "right_items"))
    _check_item_content(data.right_items, "right_items")

    if not data.correct_pairs:
        raise ValidationError("correct_pairs", "at least one pair is required")
    matched_left = set()
    for pair in data.correct_pairs:
        if pair.left_id not in left_ids:
            raise ValidationError("correct_pairs", f"unknown left id '{pair.left_id}'")
        if pair.right_id not in right_ids:
            raise ValidationError("correct_pairs", f"unknown right id '{pair.right_id}'")
        if pair.left_id in matched_left:
            raise ValidationError("correct_pairs", f"left id '{pair.left_id}' is matched more than once")
        matched_left.add(pair.left_id)


def _check_short_answer(data: ShortAnswerData) -> None:
    if not any(answer.strip() for answer in data.correct_answers):
        raise ValidationError("correct_answers", "at least one acceptable answer is required")


def _check_essay(data: EssayData) -> None:
    if data.min_words is not None and data.max_words is not None and data.min_words > data.max_words:
        raise ValidationError("min_words", "must not be greater than max_words")


def _check_ordering(data: OrderingData) -> None:
    if len(data.items) < 2:
        raise ValidationError("items", "at least 2 items are required")
    item_ids = _unique_ids(data.items, "items")
    _check_item_content(data.items, "items")

    if len(set(data.correct_order)) != len(data.correct_order):
        raise ValidationError("correct_order", "ids must not repeat")
    for item_id in data.correct_order:
        if item_id not in item_ids:
            raise ValidationError("correct_order", f"unknown item id '{item_id}'")
    if len(data.correct_order) != len(item_ids):
        raise ValidationError("correct_order", "every item must appear exactly once")


_RULES: Dict[QuestionType, Callable[[Any], None]] = {
    QuestionType.MULTIPLE_CHOICE: _check_multiple_choice,
    QuestionType.MULTIPLE_RESPONSE: _check_multiple_response,
    QuestionType.TRUE_FALSE: _check_true_false,
    QuestionType.STATEMENT_VALIDATION: _check_statement_validation,
    QuestionType.MATCHING: _check_matching,
    QuestionType.SHORT_ANSWER: _check_short_answer,
    QuestionType.ESSAY: _check_essay,
    QuestionType.ORDERING: _check_ordering,
}

_missing_rules = set(QuestionType) - set(_RULES)
if _missing_rules:
    raise RuntimeError(f"no validation rule for question types: {sorted(t.value for t in _missing_rules)}")

# question_data_schema.py
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, Field, StrictBool


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_RESPONSE = "multiple_response"
    TRUE_FALSE = "true_false"
    STATEMENT_VALIDATION = "statement_validation"
    MATCHING = "matching"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"
    ORDERING = "ordering"


QUESTION_TYPE_LABELS: Dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: "Pilihan Ganda",
    QuestionType.MULTIPLE_RESPONSE: "Pilihan Ganda Kompleks",
    QuestionType.TRUE_FALSE: "Benar/Salah",
    QuestionType.STATEMENT_VALIDATION: "Validasi Pernyataan",
    QuestionType.MATCHING: "Menjodohkan",
    QuestionType.SHORT_ANSWER: "Isian Singkat",
    QuestionType.ESSAY: "Essay",
    QuestionType.ORDERING: "Urutan",
}

DEFAULT_QUESTION_SCORE = 10
MIN_OPTIONS = 2
MAX_OPTIONS = 5
OPTION_IDS = ("A", "B", "C", "D", "E")


def _wire(name: str, legacy: str, **kwargs):
    """Field read under its own name or the camelCase key older payloads were saved with."""
    return Field(validation_alias=AliasChoices(name, legacy), **kwargs)


# ------------------ Content Blocks ------------------

class _Block(BaseModel):
    class Config:
        extra = "forbid"


class TextBlock(_Block):
    type: Literal["text"]
    content: str


class MathBlock(_Block):
    type: Literal["math"]
    content: str  # LaTeX


class ChemistryBlock(_Block):
    type: Literal["chemistry"]
    content: str


class ImageBlock(_Block):
    type: Literal["image"]
    url: str
    caption: Optional[str] = None


class TableBlock(_Block):
    type: Literal["table"]
    data: List[List[str]]  # row-major


ContentBlock = Annotated[
    Union[TextBlock, MathBlock, ChemistryBlock, ImageBlock, TableBlock],
    Field(discriminator="type"),
]


class ContentItem(_Block):
    id: str
    content: List[ContentBlock]


class Statement(_Block):
    id: str
    content: List[ContentBlock]
    correct_answer: StrictBool = _wire("correct_answer", "isTrue")


class MatchPair(_Block):
    left_id: str = _wire("left_id", "leftId")
    right_id: str = _wire("right_id", "rightId")


# ------------------ Question Payloads ------------------

class BaseQuestionData(_Block):
    question: List[ContentBlock]
    explanation: Optional[List[ContentBlock]] = None
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    tags: Optional[List[str]] = None


class MultipleChoiceData(BaseQuestionData):
    options: List[ContentItem]
    correct_answer: str = _wire("correct_answer", "correctAnswer")


class MultipleResponseData(BaseQuestionData):
    options: List[ContentItem]
    correct_answers: List[str] = _wire("correct_answers", "correctAnswers")


class TrueFalseData(BaseQuestionData):
    correct_answer: StrictBool = _wire("correct_answer", "correctAnswer")


class StatementValidationData(BaseQuestionData):
    statements: List[Statement]


class MatchingData(BaseQuestionData):
    left_items: List[ContentItem] = _wire("left_items", "leftColumn")
    right_items: List[ContentItem] = _wire("right_items", "rightColumn")
    correct_pairs: List[MatchPair] = _wire("correct_pairs", "correctMatches")


class ShortAnswerData(BaseQuestionData):
    correct_answers: List[str] = _wire("correct_answers", "correctAnswers")
    case_sensitive: bool = _wire("case_sensitive", "caseSensitive", default=False)


class EssayData(BaseQuestionData):
    min_words: Optional[int] = _wire("min_words", "minWords", default=None, ge=1)
    max_words: Optional[int] = _wire("max_words", "maxWords", default=None, ge=1)
    rubric: Optional[List[ContentBlock]] = None
    sample_answer: Optional[List[ContentBlock]] = _wire("sample_answer", "sampleAnswer", default=None)


class OrderingData(BaseQuestionData):
    items: List[ContentItem]
    correct_order: List[str] = _wire("correct_order", "correctOrder")


QuestionData = Union[
    MultipleChoiceData,
    MultipleResponseData,
    TrueFalseData,
    StatementValidationData,
    MatchingData,
    ShortAnswerData,
    EssayData,
    OrderingData,
]

QUESTION_DATA_MODELS: Dict[QuestionType, Type[BaseQuestionData]] = {
    QuestionType.MULTIPLE_CHOICE: MultipleChoiceData,
    QuestionType.MULTIPLE_RESPONSE: MultipleResponseData,
    QuestionType.TRUE_FALSE: TrueFalseData,
    QuestionType.STATEMENT_VALIDATION: StatementValidationData,
    QuestionType.MATCHING: MatchingData,
    QuestionType.SHORT_ANSWER: ShortAnswerData,
    QuestionType.ESSAY: EssayData,
    QuestionType.ORDERING: OrderingData,
}

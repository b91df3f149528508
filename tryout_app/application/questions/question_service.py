import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from tryout_app.application.access_policy import ActingIdentity, ensure_can_mutate, require_identity
from tryout_app.application.errors import NotFound, ValidationError
from tryout_app.application.operation import failure_result, parse_input
from tryout_app.application.questions.question_validation import (
    dump_question_data,
    parse_question_type,
    validate_question_data,
)
from tryout_app.infrastructure.db.models import QuestionModel
from tryout_app.infrastructure.repositories.question_repository import QuestionRepository
from tryout_app.infrastructure.repositories.tryout_repository import TryoutRepository
from tryout_app.presentation.schemas.question_schema import (
    QuestionCreate,
    QuestionOrderItem,
    QuestionOut,
    QuestionUpdate,
)
from tryout_app.presentation.schemas.result_schema import OperationResult

logger = logging.getLogger(__name__)


class QuestionService:
    """
    Question CRUD scoped to a parent tryout.

    Mutations are allowed for the tryout's creator or an admin. Question
    numbers inside a tryout are kept as a contiguous 1..N sequence.
    """

    def __init__(self, db: Session, question_repo: QuestionRepository, tryout_repo: TryoutRepository):
        self.db = db
        self._questions = question_repo
        self._tryouts = tryout_repo

    def _get_question(self, question_id: str) -> QuestionModel:
        question = self._questions.get_by_id(question_id)
        if not question:
            raise NotFound("Question not found")
        return question

    # ---------------------------
    # Create
    # ---------------------------

    def create(self, data: Any, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            payload = parse_input(QuestionCreate, data)

            tryout = self._tryouts.get_by_id(payload.tryout_id)
            if not tryout:
                raise NotFound("Tryout not found")
            ensure_can_mutate(actor, tryout.creator_id, "No permission to add questions to this tryout")

            question_data = validate_question_data(payload.question_type, payload.question_data)
            question_number = payload.question_number or self._questions.get_max_number(tryout.id) + 1

            question = QuestionModel(
                tryout_id=tryout.id,
                question_number=question_number,
                question_type=payload.question_type.value,
                question_data=dump_question_data(question_data),
                score=payload.score,
            )
            self._questions.add(question)
            self.db.commit()
            self.db.refresh(question)
            logger.info(f"Created question {question.id} (#{question_number}, {question.question_type}) in tryout {tryout.id}")
            return OperationResult.ok(QuestionOut.model_validate(question))
        except Exception as e:
            return failure_result(self.db, "Create question", e, "Failed to create question")

    # ---------------------------
    # Read
    # ---------------------------

    def list(self, tryout_id: str) -> OperationResult:
        # Open read: callers gate access to the containing tryout first.
        try:
            questions = self._questions.list_by_tryout(tryout_id)
            return OperationResult.ok([QuestionOut.model_validate(q) for q in questions])
        except Exception as e:
            return failure_result(self.db, "Get questions", e, "Failed to get questions")

    def get_by_id(self, question_id: str) -> OperationResult:
        try:
            return OperationResult.ok(QuestionOut.model_validate(self._get_question(question_id)))
        except Exception as e:
            return failure_result(self.db, "Get question", e, "Failed to get question")

    # ---------------------------
    # Update
    # ---------------------------

    def update(self, question_id: str, patch: Any, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            question = self._get_question(question_id)
            ensure_can_mutate(actor, question.tryout.creator_id, "No permission to update this question")

            changes = {
                field: value
                for field, value in parse_input(QuestionUpdate, patch).model_dump(exclude_unset=True).items()
                if value is not None
            }

            if "question_number" in changes:
                self._move(question, changes.pop("question_number"))

            if "question_type" in changes or "question_data" in changes:
                question_type = parse_question_type(changes.get("question_type", question.question_type))
                question_data = validate_question_data(
                    question_type, changes.get("question_data", question.question_data)
                )
                changes["question_type"] = question_type.value
                changes["question_data"] = dump_question_data(question_data)

            for field, value in changes.items():
                setattr(question, field, value)

            self.db.commit()
            self.db.refresh(question)
            logger.info(f"Updated question {question_id} ({', '.join(changes) or 'no fields'}) by user_id={actor.id}")
            return OperationResult.ok(QuestionOut.model_validate(question))
        except Exception as e:
            return failure_result(self.db, "Update question", e, "Failed to update question")

    def _move(self, question: QuestionModel, new_number: int) -> None:
        """Put `question` at `new_number` and shift the questions in between."""
        siblings = self._questions.list_by_tryout(question.tryout_id)
        if new_number > len(siblings):
            raise ValidationError("question_number", f"must be between 1 and {len(siblings)}")

        ordered = [q for q in siblings if q.id != question.id]
        ordered.insert(new_number - 1, question)
        for position, sibling in enumerate(ordered, start=1):
            sibling.question_number = position

    # ---------------------------
    # Delete
    # ---------------------------

    def delete(self, question_id: str, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            question = self._get_question(question_id)
            ensure_can_mutate(actor, question.tryout.creator_id, "No permission to delete this question")

            tryout_id = question.tryout_id
            deleted_number = question.question_number

            # delete and renumber commit together
            self._questions.delete(question)
            self._questions.renumber_after_delete(tryout_id, deleted_number)
            self.db.commit()
            logger.info(f"Deleted question {question_id} (#{deleted_number}) from tryout {tryout_id}")
            return OperationResult.ok()
        except Exception as e:
            return failure_result(self.db, "Delete question", e, "Failed to delete question")

    # ---------------------------
    # Duplicate
    # ---------------------------

    def duplicate(self, question_id: str, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            original = self._get_question(question_id)
            ensure_can_mutate(actor, original.tryout.creator_id, "No permission to duplicate this question")

            new_number = self._questions.get_max_number(original.tryout_id) + 1
            copy = QuestionModel(
                tryout_id=original.tryout_id,
                question_number=new_number,
                question_type=original.question_type,
                question_data=original.question_data,
                score=original.score,
            )
            self._questions.add(copy)
            self.db.commit()
            self.db.refresh(copy)
            logger.info(f"Duplicated question {question_id} as {copy.id} (#{new_number})")
            return OperationResult.ok(QuestionOut.model_validate(copy))
        except Exception as e:
            return failure_result(self.db, "Duplicate question", e, "Failed to duplicate question")

    # ---------------------------
    # Reorder
    # ---------------------------

    def reorder(self, tryout_id: str, new_order: Iterable[Any], actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            items = [parse_input(QuestionOrderItem, item) for item in new_order]

            tryout = self._tryouts.get_by_id(tryout_id)
            if not tryout:
                raise NotFound("Tryout not found")
            ensure_can_mutate(actor, tryout.creator_id, "No permission to reorder questions")

            questions = {q.id: q for q in self._questions.list_by_tryout(tryout_id)}
            check_order(items, questions)

            for item in items:
                questions[item.id].question_number = item.question_number
            self.db.commit()
            logger.info(f"Reordered {len(items)} questions in tryout {tryout_id}")
            return OperationResult.ok()
        except Exception as e:
            return failure_result(self.db, "Reorder questions", e, "Failed to reorder questions")


def check_order(items: List[QuestionOrderItem], questions: Dict[str, QuestionModel]) -> None:
    """
    Reject an order that would break the 1..N numbering of the tryout.

    Questions not mentioned keep their current number.
    """
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValidationError("order", f"question {item.id} appears more than once")
        if item.id not in questions:
            raise ValidationError("order", f"question {item.id} does not belong to this tryout")
        seen.add(item.id)

    numbers = {question_id: q.question_number for question_id, q in questions.items()}
    numbers.update({item.id: item.question_number for item in items})
    if sorted(numbers.values()) != list(range(1, len(numbers) + 1)):
        raise ValidationError("order", "question numbers must run from 1 to the number of questions without gaps or repeats")

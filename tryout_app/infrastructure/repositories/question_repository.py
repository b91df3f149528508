from typing import Iterable, List, Optional
import logging
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from ..db.models import QuestionModel

logger = logging.getLogger(__name__)


class QuestionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, question_id: str) -> Optional[QuestionModel]:
        logger.debug(f"Fetching question by id={question_id}")
        question = (
            self.db.query(QuestionModel)
            .options(joinedload(QuestionModel.tryout))
            .filter(QuestionModel.id == question_id)
            .first()
        )
        if not question:
            logger.warning(f"Question not found: id={question_id}")
        return question

    def list_by_tryout(self, tryout_id: str) -> List[QuestionModel]:
        questions = (
            self.db.query(QuestionModel)
            .filter(QuestionModel.tryout_id == tryout_id)
            .order_by(QuestionModel.question_number.asc(), QuestionModel.created_at.asc())
            .all()
        )
        logger.info(f"Retrieved {len(questions)} questions for tryout_id={tryout_id}")
        return questions

    def get_max_number(self, tryout_id: str) -> int:
        max_number = (
            self.db.query(func.max(QuestionModel.question_number))
            .filter(QuestionModel.tryout_id == tryout_id)
            .scalar()
        )
        return max_number or 0

    def add(self, question: QuestionModel) -> QuestionModel:
        self.db.add(question)
        self.db.flush()
        logger.debug(f"Staged question id={question.id} (#{question.question_number}) for tryout_id={question.tryout_id}")
        return question

    def add_all(self, questions: Iterable[QuestionModel]) -> None:
        questions = list(questions)
        self.db.add_all(questions)
        self.db.flush()
        logger.debug(f"Staged {len(questions)} questions")

    def delete(self, question: QuestionModel) -> None:
        self.db.delete(question)
        self.db.flush()

    def renumber_after_delete(self, tryout_id: str, deleted_number: int) -> None:
        """
        Close the gap left by a deleted question.

        Tries a single set-based UPDATE inside a savepoint first; if the backend
        rejects it the numbers are rebuilt from the current order instead.
        """
        try:
            with self.db.begin_nested():
                result = self.db.execute(
                    update(QuestionModel)
                    .where(
                        QuestionModel.tryout_id == tryout_id,
                        QuestionModel.question_number > deleted_number,
                    )
                    .values(question_number=QuestionModel.question_number - 1)
                    .execution_options(synchronize_session="fetch")
                )
            logger.info(f"Renumbered {result.rowcount} questions after #{deleted_number} in tryout_id={tryout_id}")
        except SQLAlchemyError as e:
            logger.warning(f"Bulk renumber failed for tryout_id={tryout_id}, resequencing row by row: {e}")
            self.resequence(tryout_id)

    def resequence(self, tryout_id: str) -> None:
        """Rewrite question_number as 1..N following the current order. Safe to repeat."""
        for position, question in enumerate(self.list_by_tryout(tryout_id), start=1):
            if question.question_number != position:
                question.question_number = position
        self.db.flush()

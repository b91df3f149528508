import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


def generate_question_id() -> str:
    return str(uuid.uuid4())


class QuestionModel(Base):
    __tablename__ = "questions"

    id = Column(String, primary_key=True, default=generate_question_id)
    tryout_id = Column(String, ForeignKey("tryouts.id", ondelete="CASCADE"), nullable=False)
    # 1-based position inside the tryout. Not unique at the DB level: reorder
    # writes numbers one row at a time and passes through duplicate states.
    question_number = Column(Integer, nullable=False)
    question_type = Column(String(40), nullable=False)
    question_data = Column(JSON, nullable=False)
    score = Column(Integer, default=10, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tryout = relationship("TryoutModel", back_populates="questions")

    __table_args__ = (
        Index("ix_questions_tryout_number", "tryout_id", "question_number"),
    )

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class TryoutModel(Base):
    __tablename__ = "tryouts"

    id = Column(String, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(String, ForeignKey("profiles.id"), nullable=False, index=True)
    school_id = Column(String, ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True)
    is_global = Column(Boolean, default=False, nullable=False)

    # free / freemium / premium
    pricing_model = Column(String(20), default="free", nullable=False)
    tryout_price = Column(Integer, default=0, nullable=False)
    explanation_price = Column(Integer, default=0, nullable=False)
    has_explanation = Column(Boolean, default=False, nullable=False)

    duration_minutes = Column(Integer, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    creator = relationship("ProfileModel", back_populates="tryouts")
    school = relationship("SchoolModel", back_populates="tryouts")
    questions = relationship(
        "QuestionModel",
        back_populates="tryout",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuestionModel.question_number",
    )

#user_model.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..base import Base


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False)  # "admin", "guru" or "siswa"
    school_id = Column(String, ForeignKey("schools.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    school = relationship("SchoolModel", back_populates="profiles")
    tryouts = relationship("TryoutModel", back_populates="creator")

    __table_args__ = (
        UniqueConstraint("email", name="uq_email_profile"),
    )

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from tryout_app.application.access_policy import ActingIdentity, Role
from tryout_app.application.questions.question_service import QuestionService
from tryout_app.application.tryouts.tryout_service import TryoutService
from tryout_app.infrastructure.db.session import SessionLocal
from tryout_app.infrastructure.repositories.profile_repository import ProfileRepository
from tryout_app.infrastructure.repositories.question_repository import QuestionRepository
from tryout_app.infrastructure.repositories.tryout_repository import TryoutRepository
from tryout_app.presentation.schemas.result_schema import OperationResult

logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> ActingIdentity:
    """
    The upstream auth proxy authenticates the session and forwards the user id
    in X-User-Id. The role and school come from our own profiles table.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    profile = ProfileRepository(db).get_by_id(x_user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )

    try:
        role = Role(profile.role)
    except ValueError:
        logger.warning(f"Profile {profile.id} has unknown role '{profile.role}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unknown role",
        )

    return ActingIdentity(id=profile.id, role=role, school_id=profile.school_id)


def get_tryout_service(db: Session = Depends(get_db)) -> TryoutService:
    return TryoutService(db, TryoutRepository(db), QuestionRepository(db))


def get_question_service(db: Session = Depends(get_db)) -> QuestionService:
    return QuestionService(db, QuestionRepository(db), TryoutRepository(db))


def unwrap(result: OperationResult) -> OperationResult:
    """Turn a failed envelope into an HTTP error carrying its message."""
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return result

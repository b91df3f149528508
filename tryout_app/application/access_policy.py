import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import or_, true

from tryout_app.application.errors import Forbidden, Unauthorized
from tryout_app.infrastructure.db.models import TryoutModel

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    GURU = "guru"
    SISWA = "siswa"


@dataclass(frozen=True)
class ActingIdentity:
    id: str
    role: Role
    school_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_identity(actor: Optional[ActingIdentity]) -> ActingIdentity:
    if actor is None:
        raise Unauthorized()
    return actor


def can_mutate(actor: ActingIdentity, owner_id: Optional[str]) -> bool:
    """Owner or admin. The only mutation rule in the system."""
    return actor.role == Role.ADMIN or actor.id == owner_id


def ensure_can_mutate(actor: ActingIdentity, owner_id: Optional[str], message: str) -> None:
    if not can_mutate(actor, owner_id):
        logger.warning(f"Permission denied for user_id={actor.id} (role={actor.role.value}) on resource owned by {owner_id}")
        raise Forbidden(message)


def ensure_can_create_tryout(actor: ActingIdentity) -> None:
    if actor.role == Role.SISWA:
        logger.warning(f"Student {actor.id} attempted to create a tryout")
        raise Forbidden("Students cannot create tryouts")


def scope_tryout_fields(actor: ActingIdentity, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Teachers always write school-scoped, non-global tryouts for their own school.
    Admin values pass through untouched.
    """
    if actor.role == Role.GURU:
        fields["is_global"] = False
        fields["school_id"] = actor.school_id
    return fields


def tryout_visibility_clause(actor: ActingIdentity):
    """Base WHERE clause for listing tryouts as `actor`."""
    if actor.role == Role.ADMIN:
        return true()
    if actor.role == Role.GURU:
        return TryoutModel.creator_id == actor.id
    if actor.school_id is None:
        return TryoutModel.is_global.is_(True)
    return or_(
        TryoutModel.is_global.is_(True),
        TryoutModel.school_id == actor.school_id,
    )

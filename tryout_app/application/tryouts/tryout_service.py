import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from tryout_app.application.access_policy import (
    ActingIdentity,
    Role,
    ensure_can_create_tryout,
    ensure_can_mutate,
    require_identity,
    scope_tryout_fields,
    tryout_visibility_clause,
)
from tryout_app.application.errors import NotFound, ValidationError
from tryout_app.application.operation import failure_result, parse_input
from tryout_app.infrastructure.db.models import QuestionModel, TryoutModel
from tryout_app.infrastructure.repositories.question_repository import QuestionRepository
from tryout_app.infrastructure.repositories.tryout_repository import TryoutRepository, generate_tryout_id
from tryout_app.presentation.schemas.result_schema import OperationResult
from tryout_app.presentation.schemas.tryout_schema import (
    CreatorOut,
    SchoolOut,
    TryoutCreate,
    TryoutFilters,
    TryoutOut,
    TryoutSort,
    TryoutUpdate,
    TryoutWithCreatorOut,
    TryoutWithQuestionsOut,
)

logger = logging.getLogger(__name__)

# scalar fields carried over by duplicate(); schedule and identity are not
COPIED_FIELDS = (
    "description",
    "school_id",
    "is_global",
    "pricing_model",
    "tryout_price",
    "explanation_price",
    "has_explanation",
    "duration_minutes",
)

# optional columns a patch may reset to null; a null for anything else is ignored
CLEARABLE_FIELDS = {"description", "school_id", "duration_minutes", "start_time", "end_time"}


def _utc_naive(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def normalize_prices(tryout: TryoutModel) -> None:
    """Zero the price fields the pricing model does not use."""
    if tryout.pricing_model == "free":
        tryout.tryout_price = 0
        tryout.explanation_price = 0
    elif tryout.pricing_model == "freemium":
        tryout.tryout_price = 0
    elif tryout.pricing_model == "premium":
        tryout.explanation_price = 0


def check_tryout_invariants(tryout: TryoutModel) -> None:
    if tryout.is_global and tryout.school_id:
        raise ValidationError("school_id", "global tryouts cannot belong to a school")
    if tryout.start_time and tryout.end_time and _utc_naive(tryout.end_time) < _utc_naive(tryout.start_time):
        raise ValidationError("end_time", "end_time must not be before start_time")


class TryoutService:
    """
    Create/read/update/delete/duplicate for tryouts.

    Every public method returns an OperationResult; nothing raises past it.
    """

    def __init__(self, db: Session, tryout_repo: TryoutRepository, question_repo: QuestionRepository):
        self.db = db
        self._tryouts = tryout_repo
        self._questions = question_repo

    # ---------------------------
    # Create
    # ---------------------------

    def create(self, data: Any, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            ensure_can_create_tryout(actor)
            payload = parse_input(TryoutCreate, data)

            fields = scope_tryout_fields(actor, payload.model_dump())
            tryout = TryoutModel(id=generate_tryout_id(), creator_id=actor.id, **fields)
            normalize_prices(tryout)
            check_tryout_invariants(tryout)

            self._tryouts.add(tryout)
            self.db.commit()
            self.db.refresh(tryout)
            logger.info(f"Created tryout {tryout.id} '{tryout.title}' for user_id={actor.id}")
            return OperationResult.ok(TryoutOut.model_validate(tryout))
        except Exception as e:
            return failure_result(self.db, "Create tryout", e)

    # ---------------------------
    # Read
    # ---------------------------

    def list(
        self,
        filters: Any = None,
        sort: Any = None,
        actor: Optional[ActingIdentity] = None,
    ) -> OperationResult:
        try:
            actor = require_identity(actor)
            filters = parse_input(TryoutFilters, filters or {})
            sort = parse_input(TryoutSort, sort or {})

            # explicit school/creator filters are an admin tool only
            admin_only = {}
            if actor.role == Role.ADMIN:
                admin_only = {"school_id": filters.school_id, "creator_id": filters.creator_id}

            rows = self._tryouts.list_tryouts(
                visibility=tryout_visibility_clause(actor),
                search=filters.search,
                pricing_model=filters.pricing_model,
                is_global=filters.is_global,
                date_from=filters.date_from,
                date_to=filters.date_to,
                sort_field=sort.field,
                sort_direction=sort.direction,
                **admin_only,
            )

            tryouts: List[TryoutWithCreatorOut] = []
            for tryout, total_questions in rows:
                tryouts.append(
                    TryoutWithCreatorOut(
                        **TryoutOut.model_validate(tryout).model_dump(),
                        creator=CreatorOut.model_validate(tryout.creator) if tryout.creator else None,
                        school=SchoolOut.model_validate(tryout.school) if tryout.school else None,
                        total_questions=total_questions,
                    )
                )
            return OperationResult.ok(tryouts)
        except Exception as e:
            return failure_result(self.db, "Get tryouts", e)

    def get_by_id(self, tryout_id: str, actor: Optional[ActingIdentity]) -> OperationResult:
        # Any authenticated identity may read by id; there is no ownership filter here.
        try:
            require_identity(actor)
            tryout = self._tryouts.get_with_details(tryout_id)
            if not tryout:
                raise NotFound("Tryout not found")
            return OperationResult.ok(TryoutWithQuestionsOut.model_validate(tryout))
        except Exception as e:
            return failure_result(self.db, "Get tryout by ID", e)

    # ---------------------------
    # Update
    # ---------------------------

    def update(self, tryout_id: str, patch: Any, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            tryout = self._tryouts.get_by_id(tryout_id)
            if not tryout:
                raise NotFound("Tryout not found")
            ensure_can_mutate(actor, tryout.creator_id, "You can only edit your own tryouts")

            changes = {
                field: value
                for field, value in parse_input(TryoutUpdate, patch).model_dump(exclude_unset=True).items()
                if value is not None or field in CLEARABLE_FIELDS
            }
            if "is_global" in changes or "school_id" in changes:
                changes = scope_tryout_fields(actor, changes)
            for field, value in changes.items():
                setattr(tryout, field, value)
            normalize_prices(tryout)
            check_tryout_invariants(tryout)

            self.db.commit()
            self.db.refresh(tryout)
            logger.info(f"Updated tryout {tryout_id} ({', '.join(changes) or 'no fields'}) by user_id={actor.id}")
            return OperationResult.ok(TryoutOut.model_validate(tryout))
        except Exception as e:
            return failure_result(self.db, "Update tryout", e)

    # ---------------------------
    # Delete
    # ---------------------------

    def delete(self, tryout_id: str, actor: Optional[ActingIdentity]) -> OperationResult:
        try:
            actor = require_identity(actor)
            tryout = self._tryouts.get_by_id(tryout_id)
            if not tryout:
                raise NotFound("Tryout not found")
            ensure_can_mutate(actor, tryout.creator_id, "You can only delete your own tryouts")

            self._tryouts.delete(tryout)
            self.db.commit()
            logger.info(f"Deleted tryout {tryout_id} by user_id={actor.id}")
            return OperationResult.ok(message="Tryout deleted successfully")
        except Exception as e:
            return failure_result(self.db, "Delete tryout", e)

    # ---------------------------
    # Duplicate
    # ---------------------------

    def duplicate(self, tryout_id: str, actor: Optional[ActingIdentity]) -> OperationResult:
        """
        Copy a tryout and its questions to a new tryout owned by `actor`.

        The parent copy is committed on its own. If copying the questions fails
        afterwards the failure is logged and the parent copy is still reported.
        """
        try:
            actor = require_identity(actor)
            ensure_can_create_tryout(actor)
            original = self._tryouts.get_with_details(tryout_id)
            if not original:
                raise NotFound("Tryout not found")

            fields = scope_tryout_fields(actor, {name: getattr(original, name) for name in COPIED_FIELDS})
            source_questions = [
                (q.question_number, q.question_type, q.question_data, q.score)
                for q in original.questions
            ]

            copy = TryoutModel(
                id=generate_tryout_id(),
                title=f"{original.title} (Copy)",
                creator_id=actor.id,
                start_time=None,
                end_time=None,
                **fields,
            )
            check_tryout_invariants(copy)
            self._tryouts.add(copy)
            self.db.commit()
            self.db.refresh(copy)
            logger.info(f"Duplicated tryout {tryout_id} into {copy.id} for user_id={actor.id}")

            if source_questions:
                self._copy_questions(copy.id, source_questions)

            return OperationResult.ok(TryoutOut.model_validate(copy), message="Tryout duplicated successfully")
        except Exception as e:
            return failure_result(self.db, "Duplicate tryout", e)

    def _copy_questions(self, new_tryout_id: str, source_questions) -> None:
        try:
            self._questions.add_all(
                QuestionModel(
                    tryout_id=new_tryout_id,
                    question_number=number,
                    question_type=question_type,
                    question_data=question_data,
                    score=score,
                )
                for number, question_type, question_data, score in source_questions
            )
            self.db.commit()
            logger.info(f"Copied {len(source_questions)} questions into tryout {new_tryout_id}")
        except Exception as e:
            # tryout copy already committed; keep it
            self.db.rollback()
            logger.error(f"Duplicate questions error for tryout {new_tryout_id}: {e}", exc_info=True)

import logging
import random
import string
import time
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session, joinedload, selectinload

from ..db.models import QuestionModel, TryoutModel

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": TryoutModel.created_at,
    "title": TryoutModel.title,
    "start_time": TryoutModel.start_time,
}


def generate_tryout_id() -> str:
    """tryout-<epoch ms>-<7 random base36 chars>"""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"tryout-{timestamp}-{suffix}"


class TryoutRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, tryout_id: str) -> Optional[TryoutModel]:
        logger.debug(f"Fetching tryout by id={tryout_id}")
        tryout = (
            self.db.query(TryoutModel)
            .filter(TryoutModel.id == tryout_id)
            .first()
        )
        if not tryout:
            logger.warning(f"Tryout not found: id={tryout_id}")
        return tryout

    def get_with_details(self, tryout_id: str) -> Optional[TryoutModel]:
        """Tryout joined with its creator and its questions (ordered by number)."""
        logger.debug(f"Fetching tryout with questions for id={tryout_id}")
        tryout = (
            self.db.query(TryoutModel)
            .options(
                joinedload(TryoutModel.creator),
                selectinload(TryoutModel.questions),
            )
            .filter(TryoutModel.id == tryout_id)
            .first()
        )
        if not tryout:
            logger.warning(f"Tryout not found: id={tryout_id}")
        return tryout

    def list_tryouts(
        self,
        *,
        visibility,
        search: Optional[str] = None,
        pricing_model: Optional[str] = None,
        is_global: Optional[bool] = None,
        school_id: Optional[str] = None,
        creator_id: Optional[str] = None,
        date_from=None,
        date_to=None,
        sort_field: str = "created_at",
        sort_direction: str = "desc",
    ) -> List[Tuple[TryoutModel, int]]:
        """
        Rows visible under `visibility` with every supplied filter ANDed on.
        Each row comes back with its question count.
        """
        question_counts = (
            self.db.query(
                QuestionModel.tryout_id.label("tryout_id"),
                func.count(QuestionModel.id).label("total"),
            )
            .group_by(QuestionModel.tryout_id)
            .subquery()
        )

        query = (
            self.db.query(TryoutModel, func.coalesce(question_counts.c.total, 0))
            .outerjoin(question_counts, question_counts.c.tryout_id == TryoutModel.id)
            .options(joinedload(TryoutModel.creator), joinedload(TryoutModel.school))
            .filter(visibility)
        )

        if search:
            query = query.filter(TryoutModel.title.ilike(f"%{search}%"))
        if pricing_model and pricing_model != "all":
            query = query.filter(TryoutModel.pricing_model == pricing_model)
        if is_global is not None:
            query = query.filter(TryoutModel.is_global.is_(is_global))
        if school_id:
            query = query.filter(TryoutModel.school_id == school_id)
        if creator_id:
            query = query.filter(TryoutModel.creator_id == creator_id)
        if date_from:
            query = query.filter(TryoutModel.created_at >= date_from)
        if date_to:
            query = query.filter(TryoutModel.created_at <= date_to)

        column = SORTABLE_FIELDS.get(sort_field, TryoutModel.created_at)
        direction = asc if sort_direction == "asc" else desc
        query = query.order_by(direction(column), direction(TryoutModel.id))

        rows = query.all()
        logger.info(f"Retrieved {len(rows)} tryouts")
        return [(tryout, int(total)) for tryout, total in rows]

    def add(self, tryout: TryoutModel) -> TryoutModel:
        self.db.add(tryout)
        self.db.flush()
        logger.debug(f"Staged tryout id={tryout.id}")
        return tryout

    def delete(self, tryout: TryoutModel) -> None:
        # questions go with it through ON DELETE CASCADE
        self.db.delete(tryout)
        self.db.flush()

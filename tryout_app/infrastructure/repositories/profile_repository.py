from typing import Optional
import logging
from sqlalchemy.orm import Session
from ..db.models import ProfileModel

logger = logging.getLogger(__name__)


class ProfileRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, profile_id: str) -> Optional[ProfileModel]:
        logger.debug(f"Fetching profile by id={profile_id}")
        profile = (
            self.db.query(ProfileModel)
            .filter(ProfileModel.id == profile_id)
            .first()
        )
        if not profile:
            logger.warning(f"Profile not found: id={profile_id}")
        return profile

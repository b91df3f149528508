import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status

from tryout_app.application.access_policy import ActingIdentity
from tryout_app.application.tryouts.tryout_service import TryoutService
from tryout_app.presentation.dependencies import get_current_user, get_tryout_service, unwrap
from tryout_app.presentation.schemas.result_schema import OperationResult
from tryout_app.presentation.schemas.tryout_schema import (
    TryoutCreate,
    TryoutFilters,
    TryoutOut,
    TryoutSort,
    TryoutUpdate,
    TryoutWithCreatorOut,
    TryoutWithQuestionsOut,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tryouts", tags=["Tryouts"])


@router.post("", response_model=OperationResult[TryoutOut], status_code=status.HTTP_201_CREATED)
def create_tryout(
    data: TryoutCreate,
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    logger.info(f"User {user.id} creating tryout '{data.title}'")
    return unwrap(service.create(data, user))


@router.get("", response_model=OperationResult[List[TryoutWithCreatorOut]])
def list_tryouts(
    search: Optional[str] = None,
    pricing_model: Optional[Literal["free", "freemium", "premium", "all"]] = None,
    is_global: Optional[bool] = None,
    school_id: Optional[str] = None,
    creator_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    sort_field: Literal["created_at", "title", "start_time"] = "created_at",
    sort_direction: Literal["asc", "desc"] = "desc",
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    filters = TryoutFilters(
        search=search,
        pricing_model=pricing_model,
        is_global=is_global,
        school_id=school_id,
        creator_id=creator_id,
        date_from=date_from,
        date_to=date_to,
    )
    sort = TryoutSort(field=sort_field, direction=sort_direction)
    return unwrap(service.list(filters, sort, user))


@router.get("/{tryout_id}", response_model=OperationResult[TryoutWithQuestionsOut])
def get_tryout(
    tryout_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    return unwrap(service.get_by_id(tryout_id, user))


@router.patch("/{tryout_id}", response_model=OperationResult[TryoutOut])
def update_tryout(
    tryout_id: str,
    patch: TryoutUpdate,
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    return unwrap(service.update(tryout_id, patch, user))


@router.delete("/{tryout_id}", response_model=OperationResult)
def delete_tryout(
    tryout_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    return unwrap(service.delete(tryout_id, user))


@router.post("/{tryout_id}/duplicate", response_model=OperationResult[TryoutOut], status_code=status.HTTP_201_CREATED)
def duplicate_tryout(
    tryout_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: TryoutService = Depends(get_tryout_service),
):
    return unwrap(service.duplicate(tryout_id, user))

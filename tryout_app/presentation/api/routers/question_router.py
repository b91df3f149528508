import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from tryout_app.application.access_policy import ActingIdentity
from tryout_app.application.questions.bulk_import_usecase import process_bulk_upload
from tryout_app.application.questions.question_service import QuestionService
from tryout_app.presentation.dependencies import get_current_user, get_db, get_question_service, unwrap
from tryout_app.presentation.schemas.bulk_question_schema import BulkUploadResponse
from tryout_app.presentation.schemas.question_schema import (
    QuestionCreate,
    QuestionCreateRequest,
    QuestionOrderItem,
    QuestionOut,
    QuestionUpdate,
)
from tryout_app.presentation.schemas.result_schema import OperationResult

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Questions"])


# --------------------------------------------------
# Questions under a tryout
# --------------------------------------------------
@router.post(
    "/tryouts/{tryout_id}/questions",
    response_model=OperationResult[QuestionOut],
    status_code=status.HTTP_201_CREATED,
)
def create_question(
    tryout_id: str,
    data: QuestionCreateRequest,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    payload = QuestionCreate(tryout_id=tryout_id, **data.model_dump())
    return unwrap(service.create(payload, user))


@router.get("/tryouts/{tryout_id}/questions", response_model=OperationResult[List[QuestionOut]])
def list_questions(
    tryout_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.list(tryout_id))


@router.put("/tryouts/{tryout_id}/questions/order", response_model=OperationResult)
def reorder_questions(
    tryout_id: str,
    new_order: List[QuestionOrderItem],
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.reorder(tryout_id, new_order, user))


@router.post("/tryouts/{tryout_id}/questions/bulk-upload", response_model=OperationResult[BulkUploadResponse])
async def bulk_upload_questions(
    tryout_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: ActingIdentity = Depends(get_current_user),
):
    logger.info(f"User {user.id} initiated bulk upload of {file.filename} for tryout {tryout_id}")
    content = await file.read()
    return unwrap(process_bulk_upload(db, content, file.filename or "", tryout_id, user))


# --------------------------------------------------
# Single question
# --------------------------------------------------
@router.get("/questions/{question_id}", response_model=OperationResult[QuestionOut])
def get_question(
    question_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.get_by_id(question_id))


@router.patch("/questions/{question_id}", response_model=OperationResult[QuestionOut])
def update_question(
    question_id: str,
    patch: QuestionUpdate,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.update(question_id, patch, user))


@router.delete("/questions/{question_id}", response_model=OperationResult)
def delete_question(
    question_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.delete(question_id, user))


@router.post(
    "/questions/{question_id}/duplicate",
    response_model=OperationResult[QuestionOut],
    status_code=status.HTTP_201_CREATED,
)
def duplicate_question(
    question_id: str,
    user: ActingIdentity = Depends(get_current_user),
    service: QuestionService = Depends(get_question_service),
):
    return unwrap(service.duplicate(question_id, user))

import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tryout_app.application.errors import StorageError, TryoutPlatformError, ValidationError
from tryout_app.presentation.schemas.result_schema import OperationResult

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_input(model_cls: Type[M], data: Any) -> M:
    """Accept either an already-built schema or a raw mapping from an in-process caller."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "input"
        raise ValidationError(field, first["msg"])


def failure_result(db: Session, action: str, exc: Exception, fallback: str = "Unknown error") -> OperationResult:
    """Roll back and reduce any failure to the `{success: false, error}` envelope."""
    db.rollback()

    if isinstance(exc, TryoutPlatformError):
        logger.warning(f"{action} rejected: {exc.message}")
        return OperationResult.fail(exc.message, exc.status_code)

    if isinstance(exc, SQLAlchemyError):
        logger.error(f"{action} error: {exc}", exc_info=True)
        storage_error = StorageError(str(getattr(exc, "orig", None) or exc))
        return OperationResult.fail(storage_error.message, storage_error.status_code)

    logger.error(f"{action} exception: {exc}", exc_info=True)
    return OperationResult.fail(str(exc) or fallback)

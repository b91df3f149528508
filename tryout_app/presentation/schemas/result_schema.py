from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """Uniform envelope returned by every lifecycle operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    # Only used by the HTTP layer to pick a status code; never serialized.
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def ok(cls, data=None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, status_code: int = 500) -> "OperationResult":
        return cls(success=False, error=error, status_code=status_code)

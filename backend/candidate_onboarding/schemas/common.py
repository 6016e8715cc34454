"""Common schemas used across the application."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard success envelope.

    Usage:
        response_model=DataResponse[UserOut]

    Returns:
        {"data": {...}}
    """
    data: T

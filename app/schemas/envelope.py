"""
Uniform JSON envelopes
======================
Every relay response is an ApiResponse or, for authentication failures,
a bare ErrorResponse. Unset fields are dropped on the wire.
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope: {success, data?, error?}."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ErrorResponse(BaseModel):
    """Bare error body used for 401 responses."""
    error: str

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

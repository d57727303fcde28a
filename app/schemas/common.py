from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ApiResponse(BaseModel, Generic[T]):
    """Envelope every endpoint answers with."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[Pagination] = None


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="IDs to delete")

    class Config:
        json_schema_extra = {
            "example": {"ids": ["TXN-ABCDEFGH", "TXN-IJKLMNOP"]}
        }


class BulkDeleteResult(BaseModel):
    deleted_count: int
    requested_count: int

from typing import Optional

from fastapi import Query

from app.core.config import settings
from app.core.database import SessionLocal


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class PageParams:
    """
    Page-based pagination shared by the list endpoints.
    `page` is 1-based; `skip` is derived for the service layer.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)"),
        limit: Optional[int] = Query(
            None, ge=1, le=settings.MAX_PAGE_SIZE, description="Number of records per page"
        ),
    ):
        self.page = page
        self.limit = limit or settings.DEFAULT_PAGE_SIZE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

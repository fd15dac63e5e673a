"""
Foojra API — Shared response schemas
"""
from pydantic import BaseModel


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit
        return cls(
            current_page=page,
            total_pages=pages,
            total=total,
            has_next_page=page < pages,
            has_prev_page=page > 1,
        )


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]

"""Shared response schemas."""

import math

from pydantic import BaseModel


def reject_null(value):
    """Before-validator for optional fields whose column is NOT NULL.

    Leaving the field out is fine; sending an explicit null is not.
    """
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class PaginationInfo(BaseModel):
    """Pagination block returned by list endpoints."""
    page: int
    limit: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> "PaginationInfo":
        return cls(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=math.ceil(total_items / limit) if limit else 0,
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str

# marketplace/api/pagination.py
from dataclasses import dataclass


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def compute_total_pages(*, total_count: int, limit: int) -> int:
    if total_count <= 0:
        return 0
    return ((total_count - 1) // limit) + 1


def build_pagination(*, page: PageRequest, total_count: int, extra_count: int = 0) -> dict:
    """Pagination metadata; `extra_count` is reported in the total but not paged."""

    total_pages = compute_total_pages(total_count=total_count, limit=page.limit)
    return {
        "current_page": page.page,
        "total_pages": total_pages,
        "total_services": total_count + extra_count,
        "has_next_page": page.page < total_pages,
        "has_prev_page": page.page > 1,
    }

"""Offset/limit paging primitives."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from core.exceptions import InvalidPageWindowError

T = TypeVar("T")


@dataclass(frozen=True)
class PageWindow:
    """Offset/limit window. ``limit=None`` means no upper bound."""

    offset: int = 0
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.offset < 0 or (self.limit is not None and self.limit <= 0):
            raise InvalidPageWindowError(self.offset, self.limit)

    @classmethod
    def from_page(cls, page_no: int | None, page_size: int | None) -> "PageWindow":
        """Build a window from 1-based page numbers.

        Either value missing means "everything", matching the listing
        endpoints that only paginate when both are supplied.
        """
        if not page_no or not page_size:
            return cls()
        if page_no < 1 or page_size < 1:
            raise InvalidPageWindowError((page_no - 1) * page_size, page_size)
        return cls(offset=(page_no - 1) * page_size, limit=page_size)


@dataclass
class Page(Generic[T]):
    """One window of results plus the total independent of the window."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    window: PageWindow = field(default_factory=PageWindow)

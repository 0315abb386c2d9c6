"""Shared response models."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from ..pagination import Page


T = TypeVar("T")


class CursorPage(BaseModel, Generic[T]):
    """List response shape: ``{"items": [...], "nextCursor": "..."}``.

    ``nextCursor`` is left out entirely on the last page.
    """

    items: List[T] = Field(description="Items on this page")
    next_cursor: Optional[str] = Field(
        default=None,
        alias="nextCursor",
        description="Opaque cursor for the next page; pass it back unchanged"
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_serializer(mode="wrap")
    def _omit_missing_cursor(self, handler):
        data = handler(self)
        if self.next_cursor is None:
            data.pop("nextCursor", None)
            data.pop("next_cursor", None)
        return data

    @classmethod
    def from_page(cls, page: Page):
        """Build the response from a repository page."""
        return cls(items=page.items, next_cursor=page.next_cursor)

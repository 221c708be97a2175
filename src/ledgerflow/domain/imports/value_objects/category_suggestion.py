"""Category suggestion value object."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CategorySuggestion:
    """Best-effort category hint attached to an imported transaction."""

    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    source: str = "none"

    @property
    def is_empty(self) -> bool:
        return self.category_id is None and self.subcategory_id is None

    @classmethod
    def none(cls) -> "CategorySuggestion":
        return cls()

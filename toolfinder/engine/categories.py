"""Closed set of utility categories."""

from enum import Enum
from typing import Dict, List, Optional

from .models import CategoryDefinition


class CategoryType(Enum):
    """Category identifiers, in display order."""
    TEXT = "text"
    DEVELOPER = "developer"
    IMAGE = "image"
    PRODUCTIVITY = "productivity"
    FUN = "fun"


CATEGORIES: Dict[str, CategoryDefinition] = {
    CategoryType.TEXT.value: CategoryDefinition(
        id="text",
        name="Text Tools",
        description="Text manipulation, formatting, and conversion utilities",
    ),
    CategoryType.DEVELOPER.value: CategoryDefinition(
        id="developer",
        name="Developer Tools",
        description="Code formatting, encoding, and development utilities",
    ),
    CategoryType.IMAGE.value: CategoryDefinition(
        id="image",
        name="Image Tools",
        description="Image processing, conversion, and optimization tools",
    ),
    CategoryType.PRODUCTIVITY.value: CategoryDefinition(
        id="productivity",
        name="Productivity Tools",
        description="Calculators, converters, and productivity utilities",
    ),
    CategoryType.FUN.value: CategoryDefinition(
        id="fun",
        name="Fun Tools",
        description="Entertainment, games, and novelty utilities",
    ),
}


def get_category(category_id: str) -> Optional[CategoryDefinition]:
    """Look up a category by id; unknown ids return None."""
    return CATEGORIES.get(category_id)


def category_label(category_id: str) -> str:
    """Display label for a category id, falling back to the raw id."""
    category = CATEGORIES.get(category_id)
    return category.name if category else category_id


def all_categories() -> List[CategoryDefinition]:
    return [CATEGORIES[c.value] for c in CategoryType]

"""Category model for the storefront catalog hierarchy."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

_SLUG_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_SLUG_WHITESPACE = re.compile(r"\s+")
_SLUG_DASHES = re.compile(r"-+")


@dataclass
class Category:
    """Represents a catalog category.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Display label.
        slug: URL-safe identifier, unique among siblings.
        parent_id: Parent category ID, or None for a root category.
        path: Materialized slug chain from the root, e.g. "/electronics/laptops".
        level: Depth from the root (roots are level 0).
        sort_order: Display order among siblings.
        is_active: Soft visibility flag.
        description: Optional free-text description.
    """

    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    path: str = ""
    level: int = 0
    sort_order: int = 0
    is_active: bool = True
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
            "path": self.path,
            "level": self.level,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "description": self.description,
        }


@dataclass
class CategoryTreeNode:
    """A category with its (already ordered) child nodes attached."""

    category: Category
    children: List["CategoryTreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.category.to_dict()
        data["children"] = [child.to_dict() for child in self.children]
        return data


def slugify(name: str) -> str:
    """Build a URL-safe slug from a category name.

    "Home & Garden" becomes "home-garden" and "Men's Clothing" becomes
    "mens-clothing".

    Raises:
        ValueError: If the name contains no usable characters.
    """
    slug = _SLUG_INVALID_CHARS.sub("", name.lower())
    slug = _SLUG_WHITESPACE.sub("-", slug.strip())
    slug = _SLUG_DASHES.sub("-", slug).strip("-")
    if not slug:
        raise ValueError(f"Cannot build a slug from category name {name!r}")
    return slug

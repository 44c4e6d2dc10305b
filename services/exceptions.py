"""Exceptions raised by the category services."""

from typing import Optional


class CategoryError(Exception):
    """Base class for category hierarchy errors."""


class CategoryNotFoundError(CategoryError):
    """The referenced category does not exist."""

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"Category with ID {category_id} not found")


class CircularReferenceError(CategoryError):
    """Moving a category would make it its own ancestor."""

    def __init__(self, category_id: int, new_parent_id: int):
        self.category_id = category_id
        self.new_parent_id = new_parent_id
        super().__init__(
            f"Cannot move category {category_id} under {new_parent_id}: "
            "would create circular reference"
        )


class DuplicateSlugError(CategoryError):
    """A sibling category already uses the slug."""

    def __init__(self, slug: str, parent_id: Optional[int]):
        self.slug = slug
        self.parent_id = parent_id
        where = "root level" if parent_id is None else f"parent {parent_id}"
        super().__init__(f"Category slug '{slug}' already exists at {where}")


class InactiveParentError(CategoryError):
    """Subcategories cannot be created under inactive categories."""

    def __init__(self, parent_id: int):
        self.parent_id = parent_id
        super().__init__(f"Parent category {parent_id} is not active")


class CategoryHasChildrenError(CategoryError):
    """A category with subcategories cannot be deleted."""

    def __init__(self, category_id: int, child_count: int):
        self.category_id = category_id
        self.child_count = child_count
        super().__init__(
            f"Category {category_id} has {child_count} subcategories. "
            "Move or delete them first."
        )

"""Category service for database operations."""

from typing import List, Optional, Tuple
from models.category import Category
from services.exceptions import CategoryNotFoundError

# SQL Query Constants
_CATEGORY_COLUMNS = (
    "id",
    "name",
    "slug",
    "parent_id",
    "path",
    "level",
    "sort_order",
    "is_active",
    "description",
)

_CATEGORY_SELECT_FIELDS = ", ".join(_CATEGORY_COLUMNS)

_CATEGORY_ORDER = "ORDER BY sort_order, id"

# Columns callers may change through update_fields()
_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "slug",
        "description",
        "parent_id",
        "path",
        "level",
        "sort_order",
        "is_active",
    }
)


def _row_to_category(row) -> Category:
    return Category(
        id=row[0],
        name=row[1],
        slug=row[2],
        parent_id=row[3],
        path=row[4],
        level=row[5],
        sort_order=row[6],
        is_active=bool(row[7]),
        description=row[8],
    )


class CategoryService:
    """Record store for categories.

    This service only reads and writes rows. It does not maintain the
    derived path and level columns; CategoryTreeService does that.
    """

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[Category]:
        """Get all categories from the database.

        Returns:
            List of Category objects, ordered by path.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories ORDER BY path, id"
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()

            if row:
                return _row_to_category(row)
            return None

    def find_with_parent(
        self, category_id: int
    ) -> Optional[Tuple[Category, Optional[Category]]]:
        """Get a category together with its immediate parent.

        Args:
            category_id: The category ID to find.

        Returns:
            (category, parent) tuple where parent is None for roots, or None
            if the category doesn't exist.
        """
        child_fields = ", ".join(f"c.{name}" for name in _CATEGORY_COLUMNS)
        parent_fields = ", ".join(f"p.{name}" for name in _CATEGORY_COLUMNS)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {child_fields}, {parent_fields}
                FROM categories c
                LEFT JOIN categories p ON p.id = c.parent_id
                WHERE c.id = ?
                """,
                (category_id,),
            )
            row = cursor.fetchone()

        if not row:
            return None

        width = len(_CATEGORY_COLUMNS)
        category = _row_to_category(row[:width])
        parent = _row_to_category(row[width:]) if row[width] is not None else None
        return category, parent

    def find_by_parent(
        self, parent_id: int, active_only: bool = False
    ) -> List[Category]:
        """Get the immediate children of a category.

        Args:
            parent_id: The parent category ID.
            active_only: Only return active children.

        Returns:
            List of Category objects, ordered by sort_order.
        """
        active_clause = "AND is_active = 1" if active_only else ""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS} FROM categories
                WHERE parent_id = ? {active_clause}
                {_CATEGORY_ORDER}
                """,
                (parent_id,),
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find_roots(self, active_only: bool = False) -> List[Category]:
        """Get all root categories (no parent).

        Args:
            active_only: Only return active roots.

        Returns:
            List of Category objects, ordered by sort_order.
        """
        active_clause = "AND is_active = 1" if active_only else ""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS} FROM categories
                WHERE parent_id IS NULL {active_clause}
                {_CATEGORY_ORDER}
                """
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find_by_slug(self, slug: str, parent_id: Optional[int]) -> Optional[Category]:
        """Get a category by slug among the children of parent_id.

        Args:
            slug: The slug to look for.
            parent_id: Parent category ID, or None to search the roots.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS} FROM categories
                WHERE slug = ? AND parent_id IS ?
                """,
                (slug, parent_id),
            )
            row = cursor.fetchone()

            if row:
                return _row_to_category(row)
            return None

    def find_by_path_prefix(
        self, prefix: str, active_only: bool = True
    ) -> List[Category]:
        """Get categories whose path starts with prefix.

        The comparison is a literal, case-sensitive prefix match.

        Args:
            prefix: Path prefix, e.g. "/electronics".
            active_only: Only return active categories.

        Returns:
            List of Category objects, ordered by level then sort_order.
        """
        active_clause = "AND is_active = 1" if active_only else ""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS} FROM categories
                WHERE substr(path, 1, ?) = ? {active_clause}
                ORDER BY level, sort_order, id
                """,
                (len(prefix), prefix),
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def count_children(self, category_id: int) -> int:
        """Count the immediate children of a category."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM categories WHERE parent_id = ?",
                (category_id,),
            )
            return cursor.fetchone()[0]

    def create(
        self,
        name: str,
        slug: str,
        description: Optional[str] = None,
        parent_id: Optional[int] = None,
        sort_order: int = 0,
        is_active: bool = True,
    ) -> Category:
        """Create a new category.

        The path and level columns are left at their defaults; callers
        must run CategoryTreeService.recompute_path before the row is used.

        Args:
            name: Category name.
            slug: URL-safe slug (unique among siblings).
            description: Optional description of the category.
            parent_id: Optional parent category ID.
            sort_order: Display order among siblings.
            is_active: Visibility flag.

        Returns:
            The created Category object with id populated.

        Raises:
            sqlite3.IntegrityError: If the slug is already used by a sibling.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO categories
                    (name, slug, description, parent_id, sort_order, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, slug, description, parent_id, sort_order, is_active),
            )
            conn.commit()
            category_id = cursor.lastrowid

        return Category(
            id=category_id,
            name=name,
            slug=slug,
            parent_id=parent_id,
            sort_order=sort_order,
            is_active=is_active,
            description=description,
        )

    def update_fields(self, category_id: int, **fields) -> Category:
        """Update selected columns of a category.

        Args:
            category_id: The category ID to update.
            **fields: Column values to set (see _UPDATABLE_FIELDS).

        Returns:
            The updated Category object.

        Raises:
            ValueError: If no fields or an unknown field is given.
            CategoryNotFoundError: If the category doesn't exist.
        """
        if not fields:
            raise ValueError("No fields to update")

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown category fields: {', '.join(sorted(unknown))}")

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = list(fields.values()) + [category_id]

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE categories
                SET {assignments}, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                params,
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise CategoryNotFoundError(category_id)

        return self.find(category_id)

    def delete(self, category_id: int) -> bool:
        """Delete a category by ID.

        Args:
            category_id: The category ID to delete.

        Returns:
            True if category was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cursor.rowcount > 0

"""Helper utilities for tests."""

from dataclasses import replace
from pathlib import Path
import sqlite3

from models.category import Category
from services.exceptions import CategoryNotFoundError


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        with open(migration_file, "r") as f:
            conn.executescript(f.read())

    conn.commit()


def assert_paths_consistent(categories):
    """Assert every category's path and level match its parent chain."""
    by_id = {c.id: c for c in categories}
    for category in categories:
        parent = by_id.get(category.parent_id)
        if parent is None:
            assert category.path == f"/{category.slug}", category
            assert category.level == 0, category
        else:
            assert category.path == f"{parent.path}/{category.slug}", category
            assert category.level == parent.level + 1, category


class FakeCategoryStore:
    """Dict-backed category store implementing the record store interface.

    Records every update_fields call in ``writes`` and can be told to fail
    after a number of writes to simulate a persistence error.
    """

    def __init__(self):
        self.rows = {}
        self.writes = []
        self.fail_after_writes = None
        self._next_id = 1

    def _copy(self, category):
        return replace(category) if category is not None else None

    def _ordered(self, categories):
        return [
            self._copy(c) for c in sorted(categories, key=lambda c: (c.sort_order, c.id))
        ]

    def add(self, name, slug, parent_id=None, path="", level=0, **kwargs):
        """Insert a row directly, bypassing any path maintenance."""
        category = Category(
            id=self._next_id,
            name=name,
            slug=slug,
            parent_id=parent_id,
            path=path,
            level=level,
            **kwargs,
        )
        self.rows[category.id] = category
        self._next_id += 1
        return self._copy(category)

    def find(self, category_id):
        return self._copy(self.rows.get(category_id))

    def find_with_parent(self, category_id):
        category = self.rows.get(category_id)
        if category is None:
            return None
        return self._copy(category), self._copy(self.rows.get(category.parent_id))

    def find_all(self):
        return [self._copy(c) for c in sorted(self.rows.values(), key=lambda c: c.path)]

    def find_by_parent(self, parent_id, active_only=False):
        return self._ordered(
            c
            for c in self.rows.values()
            if c.parent_id == parent_id and (c.is_active or not active_only)
        )

    def find_roots(self, active_only=False):
        return self._ordered(
            c
            for c in self.rows.values()
            if c.parent_id is None and (c.is_active or not active_only)
        )

    def find_by_slug(self, slug, parent_id):
        for c in self.rows.values():
            if c.slug == slug and c.parent_id == parent_id:
                return self._copy(c)
        return None

    def find_by_path_prefix(self, prefix, active_only=True):
        matches = [
            c
            for c in self.rows.values()
            if c.path.startswith(prefix) and (c.is_active or not active_only)
        ]
        return [
            self._copy(c)
            for c in sorted(matches, key=lambda c: (c.level, c.sort_order, c.id))
        ]

    def count_children(self, category_id):
        return sum(1 for c in self.rows.values() if c.parent_id == category_id)

    def create(
        self,
        name,
        slug,
        description=None,
        parent_id=None,
        sort_order=0,
        is_active=True,
    ):
        return self.add(
            name,
            slug,
            parent_id=parent_id,
            description=description,
            sort_order=sort_order,
            is_active=is_active,
        )

    def update_fields(self, category_id, **fields):
        if (
            self.fail_after_writes is not None
            and len(self.writes) >= self.fail_after_writes
        ):
            raise sqlite3.OperationalError("database is locked")

        category = self.rows.get(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        self.rows[category_id] = replace(category, **fields)
        self.writes.append((category_id, fields))
        return self._copy(self.rows[category_id])

    def delete(self, category_id):
        return self.rows.pop(category_id, None) is not None

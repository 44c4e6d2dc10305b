"""Category hierarchy maintenance.

Every category stores a materialized ``path`` ("/electronics/laptops") and a
``level`` (0 for roots). Both are derived from the ``parent_id`` chain and are
kept up to date eagerly: any write that changes a slug or a parent pointer
recomputes the node and its whole subtree. Writes therefore cost one store
update per node in the affected subtree, while reads (prefix queries, tree
menus) are plain indexed lookups with no parent-chain walking.

Subtree propagation uses an explicit worklist rather than recursion, so
deep trees never hit the interpreter's recursion limit.

The record store is injected (see services.categories.CategoryService for
the SQLite implementation). Operations are not wrapped in a transaction and
take no locks. ``recompute_path`` is idempotent, so re-running it (or
``rebuild_all``) repairs a subtree left half-updated by a failed write.
"""

from typing import List, Optional, Sequence, Tuple
from models.category import Category, CategoryTreeNode, slugify
from models.category_seed import CategorySeed
from services.exceptions import (
    CategoryHasChildrenError,
    CategoryNotFoundError,
    CircularReferenceError,
    DuplicateSlugError,
    InactiveParentError,
)
from logger import get_logger

logger = get_logger()


class CategoryTreeService:
    """Maintains path/level consistency and forest shape of the category tree."""

    def __init__(self, store):
        """Initialize the tree service.

        Args:
            store: Category record store (find, find_with_parent,
                   find_by_parent, find_roots, find_by_slug,
                   find_by_path_prefix, count_children, create,
                   update_fields, delete).
        """
        self.store = store

    # Path maintenance

    def recompute_path(self, category_id: int) -> int:
        """Recompute path and level for a category and all its descendants.

        Each node is computed from its parent's freshly computed values, so
        the result is correct no matter how stale the subtree was.

        Args:
            category_id: The category whose subtree should be refreshed.

        Returns:
            Number of categories written (the node plus its descendants).

        Raises:
            CategoryNotFoundError: If the category doesn't exist.
        """
        found = self.store.find_with_parent(category_id)
        if found is None:
            raise CategoryNotFoundError(category_id)

        category, parent = found
        if parent is None:
            if category.parent_id is not None:
                logger.warning(
                    f"Category {category.id} points at missing parent "
                    f"{category.parent_id}; treating it as a root"
                )
            path, level = f"/{category.slug}", 0
        else:
            path, level = f"{parent.path}/{category.slug}", parent.level + 1

        self._write_path(category, path, level)
        written = 1

        # (category_id, path, level) of nodes whose children still need updating
        pending: List[Tuple[int, str, int]] = [(category.id, path, level)]
        while pending:
            parent_id, parent_path, parent_level = pending.pop()
            for child in self.store.find_by_parent(parent_id):
                child_path = f"{parent_path}/{child.slug}"
                child_level = parent_level + 1
                self._write_path(child, child_path, child_level)
                written += 1
                pending.append((child.id, child_path, child_level))

        return written

    def rebuild_all(self) -> int:
        """Recompute paths for every category, root by root.

        Returns:
            Number of categories written.
        """
        logger.info("Rebuilding category paths...")

        written = 0
        for root in self.store.find_roots():
            written += self.recompute_path(root.id)

        logger.info(f"Category paths rebuilt ({written} categories)")
        return written

    def _write_path(self, category: Category, path: str, level: int) -> None:
        logger.debug(f"Category {category.id}: path={path} level={level}")
        self.store.update_fields(category.id, path=path, level=level)

    # Traversal

    def get_ancestors(self, category_id: int) -> List[Category]:
        """Get the ancestors of a category, root first, immediate parent last.

        Returns an empty list for roots and unknown IDs.
        """
        category = self.store.find(category_id)
        if category is None:
            return []

        ancestors = []
        current_id = category.parent_id
        while current_id is not None:
            parent = self.store.find(current_id)
            if parent is None:
                break
            ancestors.append(parent)
            current_id = parent.parent_id

        ancestors.reverse()
        return ancestors

    def get_descendants(self, category_id: int) -> List[Category]:
        """Get every descendant of a category (not including itself).

        The traversal is depth-first from an explicit stack; callers must
        not rely on the order of the result. Returns an empty list for
        leaves and unknown IDs.
        """
        category = self.store.find(category_id)
        if category is None:
            return []

        descendants = []
        stack = [category.id]
        while stack:
            current_id = stack.pop()
            children = self.store.find_by_parent(current_id)
            descendants.extend(children)
            stack.extend(child.id for child in children)

        return descendants

    # Moves

    def validate_move(self, category_id: int, new_parent_id: Optional[int]) -> bool:
        """Check whether moving a category under new_parent_id keeps a forest.

        Moving to the root level is always valid. Moving a category under
        itself or under one of its own descendants is not.
        """
        if new_parent_id is None:
            return True

        if new_parent_id == category_id:
            return False

        descendant_ids = {d.id for d in self.get_descendants(category_id)}
        return new_parent_id not in descendant_ids

    def move(self, category_id: int, new_parent_id: Optional[int]) -> Category:
        """Reparent a category and refresh its subtree.

        All checks run before anything is written, so a rejected move leaves
        the category untouched. Unlike create(), an inactive new parent is
        accepted; the moved subtree is then hidden with it.

        Args:
            category_id: The category to move.
            new_parent_id: The new parent ID, or None to make it a root.

        Returns:
            The moved Category with its new path and level.

        Raises:
            CategoryNotFoundError: If the category or the new parent doesn't exist.
            CircularReferenceError: If the move would create a cycle.
            DuplicateSlugError: If the new parent already has a child with
                the same slug.
        """
        category = self.store.find(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        if new_parent_id is not None and self.store.find(new_parent_id) is None:
            raise CategoryNotFoundError(new_parent_id)

        if not self.validate_move(category_id, new_parent_id):
            raise CircularReferenceError(category_id, new_parent_id)

        sibling = self.store.find_by_slug(category.slug, new_parent_id)
        if sibling is not None and sibling.id != category.id:
            raise DuplicateSlugError(category.slug, new_parent_id)

        self.store.update_fields(category_id, parent_id=new_parent_id)
        written = self.recompute_path(category_id)

        logger.info(
            f"Moved category {category_id} from parent {category.parent_id} "
            f"to {new_parent_id} ({written} paths updated)"
        )
        return self.store.find(category_id)

    # Queries

    def get_by_path_prefix(self, prefix: str) -> List[Category]:
        """Get active categories whose path starts with prefix.

        Ordered by level, then sort_order. Results are only as good as the
        stored paths.
        """
        return self.store.find_by_path_prefix(prefix, active_only=True)

    def get_tree(self, max_depth: Optional[int] = None) -> List[CategoryTreeNode]:
        """Build the nested tree of active categories.

        Args:
            max_depth: Number of levels to include (1 = roots only), or None
                       for the whole tree. Inactive categories hide their
                       subtree.

        Returns:
            Root nodes ordered by sort_order, children attached in sort_order.

        Raises:
            ValueError: If max_depth is less than 1.
        """
        if max_depth is not None and max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")

        roots = [CategoryTreeNode(c) for c in self.store.find_roots(active_only=True)]

        frontier = roots
        depth = 1
        while frontier and (max_depth is None or depth < max_depth):
            next_frontier = []
            for node in frontier:
                node.children = [
                    CategoryTreeNode(c)
                    for c in self.store.find_by_parent(
                        node.category.id, active_only=True
                    )
                ]
                next_frontier.extend(node.children)
            frontier = next_frontier
            depth += 1

        return roots

    # Category lifecycle

    def create(
        self,
        name: str,
        parent_id: Optional[int] = None,
        slug: Optional[str] = None,
        description: Optional[str] = None,
        sort_order: int = 0,
        is_active: bool = True,
    ) -> Category:
        """Create a category and compute its path.

        Args:
            name: Category name.
            parent_id: Optional parent category ID (must exist and be active).
            slug: Optional slug; derived from the name when omitted.
            description: Optional description.
            sort_order: Display order among siblings.
            is_active: Visibility flag.

        Returns:
            The created Category with path and level set.

        Raises:
            ValueError: If no slug can be derived.
            CategoryNotFoundError: If the parent doesn't exist.
            InactiveParentError: If the parent is inactive.
            DuplicateSlugError: If a sibling already uses the slug.
        """
        slug = slugify(slug if slug is not None else name)

        if parent_id is not None:
            parent = self.store.find(parent_id)
            if parent is None:
                raise CategoryNotFoundError(parent_id)
            if not parent.is_active:
                raise InactiveParentError(parent_id)

        if self.store.find_by_slug(slug, parent_id) is not None:
            raise DuplicateSlugError(slug, parent_id)

        created = self.store.create(
            name,
            slug,
            description=description,
            parent_id=parent_id,
            sort_order=sort_order,
            is_active=is_active,
        )
        self.recompute_path(created.id)

        logger.info(f"Created category '{name}' (ID: {created.id})")
        return self.store.find(created.id)

    def rename(
        self,
        category_id: int,
        name: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> Category:
        """Change a category's name and/or slug.

        A new name without an explicit slug regenerates the slug from the
        name. When the slug changes, the whole subtree gets new paths.

        Raises:
            ValueError: If neither name nor slug is given.
            CategoryNotFoundError: If the category doesn't exist.
            DuplicateSlugError: If a sibling already uses the new slug.
        """
        if name is None and slug is None:
            raise ValueError("Nothing to rename: give a name or a slug")

        category = self.store.find(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        fields = {}
        if name is not None:
            fields["name"] = name

        new_slug = slugify(slug if slug is not None else name)
        if new_slug != category.slug:
            sibling = self.store.find_by_slug(new_slug, category.parent_id)
            if sibling is not None and sibling.id != category.id:
                raise DuplicateSlugError(new_slug, category.parent_id)
            fields["slug"] = new_slug

        if not fields:
            return category

        self.store.update_fields(category_id, **fields)
        if "slug" in fields:
            written = self.recompute_path(category_id)
            logger.info(
                f"Renamed category {category_id} slug '{category.slug}' -> "
                f"'{new_slug}' ({written} paths updated)"
            )

        return self.store.find(category_id)

    def update_display(
        self,
        category_id: int,
        sort_order: Optional[int] = None,
        is_active: Optional[bool] = None,
        description: Optional[str] = None,
    ) -> Category:
        """Change sort order, visibility and/or description.

        Paths are not affected. An empty description clears it.

        Raises:
            ValueError: If no value is given.
            CategoryNotFoundError: If the category doesn't exist.
        """
        fields = {}
        if sort_order is not None:
            fields["sort_order"] = sort_order
        if is_active is not None:
            fields["is_active"] = is_active
        if description is not None:
            fields["description"] = description or None

        if not fields:
            raise ValueError(
                "Nothing to update: give a sort order, active flag or description"
            )

        return self.store.update_fields(category_id, **fields)

    def delete(self, category_id: int) -> Category:
        """Delete a leaf category.

        Returns:
            The deleted Category.

        Raises:
            CategoryNotFoundError: If the category doesn't exist.
            CategoryHasChildrenError: If the category still has subcategories.
        """
        category = self.store.find(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        child_count = self.store.count_children(category_id)
        if child_count:
            raise CategoryHasChildrenError(category_id, child_count)

        self.store.delete(category_id)
        logger.info(f"Deleted category '{category.name}' (ID: {category_id})")
        return category

    # Seeding

    def seed(self, entries: Sequence[CategorySeed]) -> Tuple[int, int]:
        """Create categories from nested seed entries.

        Entries whose slug already exists under the same parent are skipped,
        but their children are still processed. Siblings get sort_order from
        their position in the seed list. Each entry is inserted with its own
        is_active flag, so children of inactive entries (new or existing)
        are created without the active-parent check that create() applies.

        Returns:
            (created, skipped) counts.
        """
        created = 0
        skipped = 0

        # (entry, parent_id, sort_order); reversed so the stack pops in file order
        pending = [(entry, None, i) for i, entry in enumerate(entries)][::-1]

        while pending:
            entry, parent_id, sort_order = pending.pop()
            slug = slugify(entry.slug if entry.slug is not None else entry.name)

            existing = self.store.find_by_slug(slug, parent_id)
            if existing is not None:
                logger.info(f"Skipped '{existing.path}' (already exists)")
                skipped += 1
                category = existing
            else:
                category = self.store.create(
                    entry.name,
                    slug,
                    description=entry.description,
                    parent_id=parent_id,
                    sort_order=sort_order,
                    is_active=entry.is_active,
                )
                self.recompute_path(category.id)
                logger.debug(f"Seeded '{entry.name}' (ID: {category.id})")
                created += 1

            children = [
                (child, category.id, i) for i, child in enumerate(entry.children)
            ]
            pending.extend(reversed(children))

        logger.info(f"Seeding complete: {created} created, {skipped} skipped")
        return created, skipped

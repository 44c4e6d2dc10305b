import pytest
import sqlite3

from services.exceptions import CategoryNotFoundError


class TestCategoryService:
    """Tests for CategoryService (the SQLite record store)."""

    def test_create_category_simple(self, services):
        """Test creating a root category row."""
        category = services.categories.create(
            "Electronics", "electronics", "Latest electronics and gadgets"
        )

        assert category.id is not None
        assert category.id > 0
        assert category.name == "Electronics"
        assert category.slug == "electronics"
        assert category.description == "Latest electronics and gadgets"
        assert category.parent_id is None
        assert category.is_active is True
        assert category.sort_order == 0

    def test_create_leaves_path_for_tree_service(self, services):
        """Test that the store does not compute derived columns itself."""
        category = services.categories.create("Electronics", "electronics")

        found = services.categories.find(category.id)
        assert found.path == ""
        assert found.level == 0

    def test_find_category_by_id(self, services):
        """Test finding a category by ID."""
        created = services.categories.create(
            "Fashion", "fashion", "Clothing", sort_order=4, is_active=False
        )

        found = services.categories.find(created.id)

        assert found is not None
        assert found.id == created.id
        assert found.name == "Fashion"
        assert found.sort_order == 4
        assert found.is_active is False

    def test_find_category_by_id_not_found(self, services):
        """Test finding a non-existent category returns None."""
        assert services.categories.find(9999) is None

    def test_find_with_parent_for_root(self, services):
        """Test that a root category comes back without a parent."""
        root = services.categories.create("Electronics", "electronics")

        category, parent = services.categories.find_with_parent(root.id)

        assert category.id == root.id
        assert parent is None

    def test_find_with_parent_for_child(self, services):
        """Test that a child category comes back with its parent."""
        root = services.categories.create("Electronics", "electronics")
        services.categories.update_fields(root.id, path="/electronics")
        child = services.categories.create("Laptops", "laptops", parent_id=root.id)

        category, parent = services.categories.find_with_parent(child.id)

        assert category.id == child.id
        assert parent.id == root.id
        assert parent.path == "/electronics"

    def test_find_with_parent_not_found(self, services):
        """Test find_with_parent returns None for unknown IDs."""
        assert services.categories.find_with_parent(9999) is None

    def test_find_by_parent_orders_by_sort_order(self, services):
        """Test children are returned in sort order."""
        root = services.categories.create("Electronics", "electronics")
        services.categories.create("Tablets", "tablets", parent_id=root.id, sort_order=2)
        services.categories.create("Phones", "phones", parent_id=root.id, sort_order=0)
        services.categories.create("Laptops", "laptops", parent_id=root.id, sort_order=1)

        children = services.categories.find_by_parent(root.id)

        assert [c.slug for c in children] == ["phones", "laptops", "tablets"]

    def test_find_by_parent_active_only(self, services):
        """Test filtering children by the active flag."""
        root = services.categories.create("Electronics", "electronics")
        services.categories.create("Phones", "phones", parent_id=root.id)
        services.categories.create(
            "Pagers", "pagers", parent_id=root.id, is_active=False
        )

        all_children = services.categories.find_by_parent(root.id)
        active_children = services.categories.find_by_parent(root.id, active_only=True)

        assert len(all_children) == 2
        assert [c.slug for c in active_children] == ["phones"]

    def test_find_roots(self, services):
        """Test finding root categories in sort order."""
        fashion = services.categories.create("Fashion", "fashion", sort_order=1)
        electronics = services.categories.create("Electronics", "electronics")
        services.categories.create("Laptops", "laptops", parent_id=electronics.id)
        services.categories.create("Archive", "archive", sort_order=2, is_active=False)

        roots = services.categories.find_roots()
        active_roots = services.categories.find_roots(active_only=True)

        assert [c.slug for c in roots] == ["electronics", "fashion", "archive"]
        assert [c.id for c in active_roots] == [electronics.id, fashion.id]

    def test_find_by_slug_is_scoped_to_parent(self, services):
        """Test slug lookup only matches siblings."""
        electronics = services.categories.create("Electronics", "electronics")
        fashion = services.categories.create("Fashion", "fashion")
        services.categories.create("Accessories", "accessories", parent_id=electronics.id)

        assert services.categories.find_by_slug("accessories", electronics.id) is not None
        assert services.categories.find_by_slug("accessories", fashion.id) is None
        assert services.categories.find_by_slug("accessories", None) is None
        assert services.categories.find_by_slug("fashion", None).id == fashion.id

    def test_same_slug_allowed_under_different_parents(self, services):
        """Test that slugs only need to be unique among siblings."""
        electronics = services.categories.create("Electronics", "electronics")
        fashion = services.categories.create("Fashion", "fashion")

        services.categories.create("Accessories", "accessories", parent_id=electronics.id)
        services.categories.create("Accessories", "accessories", parent_id=fashion.id)

        assert services.categories.count_children(electronics.id) == 1
        assert services.categories.count_children(fashion.id) == 1

    def test_duplicate_sibling_slug_raises_error(self, services):
        """Test the unique index rejects duplicate sibling slugs."""
        root = services.categories.create("Electronics", "electronics")
        services.categories.create("Laptops", "laptops", parent_id=root.id)

        with pytest.raises(sqlite3.IntegrityError):
            services.categories.create("Laptops again", "laptops", parent_id=root.id)

    def test_duplicate_root_slug_raises_error(self, services):
        """Test that roots are treated as siblings of each other."""
        services.categories.create("Electronics", "electronics")

        with pytest.raises(sqlite3.IntegrityError):
            services.categories.create("Electronics 2", "electronics")

    def test_find_by_path_prefix(self, services):
        """Test prefix matching and ordering by level then sort order."""
        rows = [
            ("Electronics", "electronics", "/electronics", 0, 0, True),
            ("Tablets", "tablets", "/electronics/tablets", 1, 2, True),
            ("Laptops", "laptops", "/electronics/laptops", 1, 1, True),
            ("Pagers", "pagers", "/electronics/pagers", 1, 0, False),
            ("Fashion", "fashion", "/fashion", 0, 1, True),
        ]
        for name, slug, path, level, sort_order, is_active in rows:
            category = services.categories.create(
                name, f"{slug}-{level}", sort_order=sort_order, is_active=is_active
            )
            services.categories.update_fields(category.id, path=path, level=level)

        found = services.categories.find_by_path_prefix("/electronics")

        assert [c.path for c in found] == [
            "/electronics",
            "/electronics/laptops",
            "/electronics/tablets",
        ]

        with_inactive = services.categories.find_by_path_prefix(
            "/electronics", active_only=False
        )
        assert len(with_inactive) == 4

    def test_find_by_path_prefix_is_literal_and_case_sensitive(self, services):
        """Test that LIKE wildcards and case do not affect prefix matching."""
        a = services.categories.create("A", "a")
        b = services.categories.create("B", "b")
        services.categories.update_fields(a.id, path="/100%_off")
        services.categories.update_fields(b.id, path="/100xyoff")

        assert [c.id for c in services.categories.find_by_path_prefix("/100%")] == [a.id]
        assert services.categories.find_by_path_prefix("/100%_OFF") == []

    def test_update_fields(self, services):
        """Test updating selected columns."""
        category = services.categories.create("Fashion", "fashion")

        updated = services.categories.update_fields(
            category.id, name="Style", sort_order=3, is_active=False
        )

        assert updated.name == "Style"
        assert updated.slug == "fashion"
        assert updated.sort_order == 3
        assert updated.is_active is False

    def test_update_fields_unknown_field(self, services):
        """Test that only known columns can be updated."""
        category = services.categories.create("Fashion", "fashion")

        with pytest.raises(ValueError, match="Unknown category fields: id"):
            services.categories.update_fields(category.id, id=42)

    def test_update_fields_requires_fields(self, services):
        """Test that an empty update is rejected."""
        category = services.categories.create("Fashion", "fashion")

        with pytest.raises(ValueError):
            services.categories.update_fields(category.id)

    def test_update_nonexistent_category_raises_error(self, services):
        """Test that updating a non-existent category raises an error."""
        with pytest.raises(CategoryNotFoundError, match="Category with ID 9999 not found"):
            services.categories.update_fields(9999, name="Name")

    def test_count_children(self, services):
        """Test counting immediate children only."""
        root = services.categories.create("Electronics", "electronics")
        laptops = services.categories.create("Laptops", "laptops", parent_id=root.id)
        services.categories.create("Gaming", "gaming", parent_id=laptops.id)

        assert services.categories.count_children(root.id) == 1
        assert services.categories.count_children(laptops.id) == 1
        assert services.categories.count_children(9999) == 0

    def test_delete_category(self, services):
        """Test deleting a category."""
        category = services.categories.create("ToDelete", "to-delete")

        assert services.categories.delete(category.id) is True
        assert services.categories.find(category.id) is None

    def test_delete_nonexistent_category(self, services):
        """Test deleting a non-existent category returns False."""
        assert services.categories.delete(9999) is False

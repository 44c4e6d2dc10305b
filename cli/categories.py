#!/usr/bin/env python3

import sys
import json
from pathlib import Path
from pydantic import ValidationError
from config import get_seed_file
from models.category_seed import load_seed_file
from services.exceptions import CategoryError
from logger import get_logger

logger = get_logger()


def _describe(category):
    status = "" if category.is_active else " [inactive]"
    return f"{category.path} (ID: {category.id}, level {category.level}){status}"


def _log_tree(nodes, depth=0):
    for node in nodes:
        category = node.category
        logger.info(f"{'  ' * depth}- {category.name} ({category.path}, ID: {category.id})")
        _log_tree(node.children, depth + 1)


def _fail(message):
    logger.error(message)
    sys.exit(1)


def cmd_list(args, services):
    """List all categories in the database."""
    categories = services.categories.find_all()

    if not categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {category.name}")
        logger.info(f"Path: {category.path} (level {category.level})")
        if category.description:
            logger.info(f"Description: {category.description}")
        if not category.is_active:
            logger.info("Status: inactive")
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_tree(args, services):
    """Show the nested tree of active categories."""
    if args.max_depth is None:
        max_depth = services.config.tree_depth_limit
    else:
        max_depth = args.max_depth or None

    try:
        tree = services.category_tree.get_tree(max_depth)
    except ValueError as e:
        _fail(str(e))

    if not tree:
        logger.info("No active categories found.")
        return

    _log_tree(tree)


def cmd_create(args, services):
    """Create a new category."""
    try:
        category = services.category_tree.create(
            args.name,
            parent_id=args.parent_id,
            slug=args.slug,
            description=args.description,
            sort_order=args.sort_order,
            is_active=not args.inactive,
        )
    except (CategoryError, ValueError) as e:
        _fail(f"Error creating category: {e}")

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Path: {category.path}")


def cmd_rename(args, services):
    """Rename a category and refresh the paths below it."""
    try:
        category = services.category_tree.rename(
            args.category_id, name=args.name, slug=args.slug
        )
    except (CategoryError, ValueError) as e:
        _fail(f"Error renaming category: {e}")

    logger.info(f"✓ Category {category.id} is now '{category.name}' at {category.path}")


def cmd_set(args, services):
    """Change sort order, visibility or description of a category."""
    try:
        category = services.category_tree.update_display(
            args.category_id,
            sort_order=args.sort_order,
            is_active=args.is_active,
            description=args.description,
        )
    except (CategoryError, ValueError) as e:
        _fail(f"Error updating category: {e}")

    logger.info(f"✓ Updated {_describe(category)}, sort order {category.sort_order}")


def cmd_move(args, services):
    """Move a category under a new parent (or to the root level)."""
    new_parent_id = None if args.root else args.parent_id

    try:
        category = services.category_tree.move(args.category_id, new_parent_id)
    except CategoryError as e:
        _fail(f"Error moving category: {e}")

    logger.info(f"✓ Moved category to {category.path}")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category_id = args.category_id

    category = services.categories.find(category_id)
    if not category:
        _fail(f"Category with ID {category_id} not found.")

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Path: {category.path}")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    try:
        services.category_tree.delete(category_id)
    except CategoryError as e:
        _fail(f"Error deleting category: {e}")

    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def cmd_ancestors(args, services):
    """Show the ancestor chain of a category, root first."""
    if services.categories.find(args.category_id) is None:
        _fail(f"Category with ID {args.category_id} not found.")

    ancestors = services.category_tree.get_ancestors(args.category_id)
    if not ancestors:
        logger.info("Category is a root category.")
        return

    for ancestor in ancestors:
        logger.info(_describe(ancestor))


def cmd_descendants(args, services):
    """Show every descendant of a category."""
    if services.categories.find(args.category_id) is None:
        _fail(f"Category with ID {args.category_id} not found.")

    descendants = services.category_tree.get_descendants(args.category_id)
    if not descendants:
        logger.info("Category has no subcategories.")
        return

    for descendant in sorted(descendants, key=lambda c: c.path):
        logger.info(_describe(descendant))
    logger.info(f"\nTotal descendants: {len(descendants)}")


def cmd_find(args, services):
    """Find active categories by path prefix."""
    categories = services.category_tree.get_by_path_prefix(args.prefix)

    if not categories:
        logger.info(f"No active categories under '{args.prefix}'.")
        return

    for category in categories:
        logger.info(_describe(category))


def cmd_rebuild(args, services):
    """Recompute path and level for every category."""
    written = services.category_tree.rebuild_all()
    logger.info(f"✓ Rebuilt paths for {written} categories.")


def cmd_seed(args, services):
    """Seed categories from a JSON file."""
    seed_file = Path(args.file) if args.file else get_seed_file()

    if not seed_file.exists():
        _fail(f"Seed file not found: {seed_file}")

    try:
        entries = load_seed_file(seed_file)
    except json.JSONDecodeError as e:
        _fail(f"Error parsing JSON file: {e}")
    except ValidationError as e:
        _fail(f"Invalid seed file {seed_file}: {e}")

    logger.info(f"\nSeeding categories from {seed_file}")
    logger.info("=" * 80)

    try:
        created, skipped = services.category_tree.seed(entries)
    except (CategoryError, ValueError) as e:
        _fail(f"Error seeding categories: {e}")

    logger.info("=" * 80)
    logger.info(f"Created: {created}")
    logger.info(f"Skipped: {skipped}")
    logger.info(f"Total: {created + skipped}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Browse and maintain the catalog category tree",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List all categories")
    list_parser.set_defaults(func=cmd_list)

    # categories tree
    tree_parser = categories_subparsers.add_parser(
        "tree", help="Show the active category tree"
    )
    tree_parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Number of levels to show (0 = unlimited, default from config)",
    )
    tree_parser.set_defaults(func=cmd_tree)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--parent-id", type=int, help="Parent category ID")
    create_parser.add_argument("--slug", help="Slug (derived from name by default)")
    create_parser.add_argument("--description", help="Category description")
    create_parser.add_argument(
        "--sort-order", type=int, default=0, help="Display order among siblings"
    )
    create_parser.add_argument(
        "--inactive", action="store_true", help="Create the category hidden"
    )
    create_parser.set_defaults(func=cmd_create)

    # categories rename
    rename_parser = categories_subparsers.add_parser(
        "rename", help="Change a category's name and/or slug"
    )
    rename_parser.add_argument("category_id", type=int, help="ID of the category")
    rename_parser.add_argument("--name", help="New name (also regenerates the slug)")
    rename_parser.add_argument("--slug", help="New slug")
    rename_parser.set_defaults(func=cmd_rename)

    # categories set
    set_parser = categories_subparsers.add_parser(
        "set", help="Change sort order, visibility or description"
    )
    set_parser.add_argument("category_id", type=int, help="ID of the category")
    set_parser.add_argument("--sort-order", type=int, help="Display order")
    set_parser.add_argument(
        "--description", help="New description (empty string clears it)"
    )
    visibility = set_parser.add_mutually_exclusive_group()
    visibility.add_argument(
        "--active", dest="is_active", action="store_const", const=True
    )
    visibility.add_argument(
        "--inactive", dest="is_active", action="store_const", const=False
    )
    set_parser.set_defaults(func=cmd_set, is_active=None)

    # categories move
    move_parser = categories_subparsers.add_parser(
        "move", help="Move a category under a new parent"
    )
    move_parser.add_argument("category_id", type=int, help="ID of the category")
    destination = move_parser.add_mutually_exclusive_group(required=True)
    destination.add_argument("--parent-id", type=int, help="New parent category ID")
    destination.add_argument(
        "--root", action="store_true", help="Make the category a root"
    )
    move_parser.set_defaults(func=cmd_move)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories ancestors
    ancestors_parser = categories_subparsers.add_parser(
        "ancestors", help="Show the ancestors of a category"
    )
    ancestors_parser.add_argument("category_id", type=int, help="ID of the category")
    ancestors_parser.set_defaults(func=cmd_ancestors)

    # categories descendants
    descendants_parser = categories_subparsers.add_parser(
        "descendants", help="Show the descendants of a category"
    )
    descendants_parser.add_argument(
        "category_id", type=int, help="ID of the category"
    )
    descendants_parser.set_defaults(func=cmd_descendants)

    # categories find
    find_parser = categories_subparsers.add_parser(
        "find", help="Find active categories by path prefix"
    )
    find_parser.add_argument("prefix", help="Path prefix, e.g. /electronics")
    find_parser.set_defaults(func=cmd_find)

    # categories rebuild
    rebuild_parser = categories_subparsers.add_parser(
        "rebuild", help="Recompute paths for every category"
    )
    rebuild_parser.set_defaults(func=cmd_rebuild)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Seed categories from JSON file"
    )
    seed_parser.add_argument(
        "--file", help="Seed file (defaults to db/seed/categories.json)"
    )
    seed_parser.set_defaults(func=cmd_seed)

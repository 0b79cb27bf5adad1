"""
Command-line entry point for Recipe Steps.

Usage Examples:
    # Create the database tables
    recipe-steps init-db

    # Print a recipe's steps, dependencies and ingredients at double scale
    recipe-steps show 1 --scale 2

    # List the steps that use the output of step 2
    recipe-steps usage 1 2

    # Write a recipe's steps and dependency edges to a JSON file
    recipe-steps export 1 -o recipe_1.json
"""

import argparse
import json
import logging
import sys

from recipe_steps.services import recipe_step_service
from recipe_steps.services.database import initialize_app_database
from recipe_steps.services.dependency_graph import format_in_use_message
from recipe_steps.services.exceptions import ServiceError
from recipe_steps.utils.config import get_config
from recipe_steps.utils.constants import DEFAULT_SCALE_FACTOR


def init_db_cmd() -> int:
    """Create the database and its tables."""
    config = get_config()
    print(f"Initializing database ({config.environment})...")
    initialize_app_database()
    print(f"Database ready: {config.database_url}")
    return 0


def show_cmd(recipe_id: int, factor: float) -> int:
    """Print a recipe at the given scale factor."""
    recipe = recipe_step_service.get_scaled_recipe(recipe_id, factor)

    print(f"{recipe['title']} ({recipe['scale_label']})")
    if recipe["servings"]:
        print(f"Servings: {recipe['servings']}")
    print()

    for step in recipe["steps"]:
        heading = f"Step {step['step_num']}"
        if step["title"]:
            heading += f": {step['title']}"
        print(heading)
        if step["uses_steps"]:
            uses = ", ".join(str(n) for n in step["uses_steps"])
            print(f"  Uses output of: {uses}")
        for ingredient in step["ingredients"]:
            print(f"  - {ingredient['display']} {ingredient['name']}")
        print(f"  {step['description']}")
        print()
    return 0


def usage_cmd(recipe_id: int, step_num: int) -> int:
    """Print which steps use a step's output."""
    dependents = recipe_step_service.get_step_usage(recipe_id, step_num)
    if not dependents:
        print(f"Step {step_num} can be deleted; no other step uses its output.")
    else:
        print(format_in_use_message(step_num, dependents))
    return 0


def export_cmd(recipe_id: int, output_file: str = None) -> int:
    """Write a recipe's steps and dependency edges as JSON."""
    snapshot = recipe_step_service.get_recipe_snapshot(recipe_id)
    data = {"recipe_id": recipe_id, **snapshot.to_dict()}

    if output_file is None:
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    print(f"Exporting recipe {recipe_id} to {output_file}...")
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"Exported {len(data['steps'])} steps, {len(data['edges'])} dependencies")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Recipe step graph utility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  recipe-steps init-db
  recipe-steps show 1 --scale 1.5
  recipe-steps usage 1 2
  recipe-steps export 1 -o recipe_1.json

Environment:
  RECIPE_STEPS_ENV, RECIPE_STEPS_DATABASE_URL, RECIPE_STEPS_REORDER_POLICY
""",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log service operations to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the database tables")

    show_parser = subparsers.add_parser("show", help="Print a recipe's steps")
    show_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    show_parser.add_argument(
        "-s", "--scale",
        dest="factor",
        type=float,
        default=DEFAULT_SCALE_FACTOR,
        help="Scale factor for ingredient quantities (default: 1)",
    )

    usage_parser = subparsers.add_parser("usage", help="Show which steps use a step's output")
    usage_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    usage_parser.add_argument("step_num", type=int, help="Step number")

    export_parser = subparsers.add_parser("export", help="Export a recipe's steps as JSON")
    export_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    export_parser.add_argument(
        "-o", "--output",
        dest="output_file",
        help="Output file (default: print to stdout)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "init-db":
            return init_db_cmd()
        initialize_app_database()
        if args.command == "show":
            return show_cmd(args.recipe_id, args.factor)
        if args.command == "usage":
            return usage_cmd(args.recipe_id, args.step_num)
        if args.command == "export":
            return export_cmd(args.recipe_id, args.output_file)
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())

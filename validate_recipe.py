"""
Simple script to validate a selector recipe file.

Usage:
    python validate_recipe.py recipes/google_maps.yaml
    python validate_recipe.py recipes/google_maps.yaml --snapshot debug_dump.html
"""

import argparse
import sys
import logging
from pathlib import Path

from extractors.search_page import get_selector_match_count
from recipe_loader import load_recipe, validate_recipe

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Validate a selector recipe')
    parser.add_argument('recipe_file')
    parser.add_argument('--snapshot', help='Saved HTML page to count selector matches against')
    args = parser.parse_args()

    try:
        logger.info(f"Loading recipe: {args.recipe_file}")
        recipe = load_recipe(args.recipe_file)

        logger.info("✓ Recipe loaded successfully")
        logger.info(f"  Version: {recipe.version}")
        logger.info(f"  Search URL template: {recipe.search_url_template}")
        logger.info(f"  Place link CSS: {recipe.search.place_link_css}")
        logger.info(f"  Feed CSS: {recipe.search.feed_css}")
        logger.info(f"  Place link glob: {recipe.search.place_link_glob}")
        logger.info(f"  Category: {recipe.detail.category_css} [index {recipe.detail.category_index}]")

        if args.snapshot:
            html = Path(args.snapshot).read_text(encoding='utf-8')
            logger.info(f"  Matches in {args.snapshot}:")
            for section in (recipe.search, recipe.detail):
                for name, css in vars(section).items():
                    if name.endswith('_css'):
                        logger.info(f"    {name}: {get_selector_match_count(html, css)}")

        warnings = validate_recipe(recipe)
        if warnings:
            logger.warning("Validation warnings:")
            for warning in warnings:
                logger.warning(f"  - {warning}")
        else:
            logger.info("✓ No validation warnings")

        logger.info("")
        logger.info("Recipe is valid and ready to use!")
        logger.info(f"Run with: python crawler.py --query \"...\" --max-results 20 --recipe {args.recipe_file}")

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid recipe: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()

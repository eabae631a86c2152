"""
Verify that this machine can run a maps crawl.

Checks the installed packages, launches Chromium the same way
BrowserCrawler does, loads the bundled recipe and runs a few offline
smoke checks.

Usage:
    python check_setup.py
"""

import asyncio
import importlib.util
import sys
from pathlib import Path

# import name -> distribution name
REQUIRED_PACKAGES = {
    'bs4': 'beautifulsoup4',
    'lxml': 'lxml',
    'playwright': 'playwright',
    'pydantic': 'pydantic',
    'yaml': 'pyyaml',
}

BUNDLED_RECIPE = Path(__file__).parent / "recipes" / "google_maps.yaml"


def check_packages():
    """Report every required package that cannot be imported."""
    missing = [dist for module, dist in REQUIRED_PACKAGES.items()
               if importlib.util.find_spec(module) is None]

    if missing:
        print(f"✗ Missing packages: {', '.join(missing)}")
        print("  Install them with: pip install -e .")
        return False

    print(f"✓ Packages: {', '.join(REQUIRED_PACKAGES.values())}")
    return True


async def _launch_chromium():
    from playwright.async_api import async_playwright

    import crawler_config

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=crawler_config.BROWSER_ARGS)
        try:
            context = await browser.new_context(locale='en-US')
            page = await context.new_page()
            await page.set_content("<h1>ok</h1>")
            return await page.locator("h1").first.text_content()
        finally:
            await browser.close()


def check_browser():
    """Launch headless Chromium with the crawler's launch arguments."""
    try:
        heading = asyncio.run(_launch_chromium())
    except Exception as e:
        message = str(e).lower()
        if "executable doesn't exist" in message or "playwright install" in message:
            print("✗ Chromium is not installed for Playwright")
            print("  Install it with: playwright install chromium")
        else:
            print(f"✗ Chromium failed to start: {e}")
        return False

    if heading != "ok":
        print(f"✗ Chromium rendered an unexpected page: {heading!r}")
        return False

    print("✓ Chromium launches headless with the crawler's arguments")
    return True


def check_recipe():
    """Load the bundled selector recipe and list its warnings."""
    from recipe_loader import load_recipe, validate_recipe

    try:
        recipe = load_recipe(str(BUNDLED_RECIPE))
    except (OSError, ValueError) as e:
        print(f"✗ Bundled recipe is invalid: {e}")
        return False

    print(f"✓ Recipe {BUNDLED_RECIPE.name} (version {recipe.version})")
    for warning in validate_recipe(recipe):
        print(f"  ! {warning}")
    return True


def check_offline_behaviour():
    """Frontier cap, normalization and seed URL, without a browser."""
    from frontier import DedupFrontier
    from extractors.detail_page import normalize_phone, normalize_website
    from maps_crawler import build_search_url

    frontier = DedupFrontier(max_results=1)
    checks = [
        ("frontier reserves a new URL", frontier.try_reserve("https://www.google.com/maps/place/a")),
        ("frontier enforces its cap", not frontier.try_reserve("https://www.google.com/maps/place/b")),
        ("phone label is stripped", normalize_phone("Phone: (415) 555-0100") == "(415) 555-0100"),
        ("website decoration is stripped", normalize_website("› example.com") == "example.com"),
        ("query is percent-encoded",
         build_search_url("pizza near me") == "https://www.google.com/maps/search/pizza%20near%20me"),
    ]

    failed = [name for name, passed in checks if not passed]
    if failed:
        for name in failed:
            print(f"✗ {name}")
        return False

    print(f"✓ {len(checks)} offline checks passed")
    return True


def main():
    print("Maps crawler setup check")
    print("-" * 40)

    if not check_packages():
        sys.exit(1)

    results = [check_browser(), check_recipe(), check_offline_behaviour()]

    print("-" * 40)
    if not all(results):
        print("Setup incomplete, see the failures above.")
        sys.exit(1)

    print("Ready. Try:")
    print('  python crawler.py --query "coffee in San Francisco" --max-results 5')


if __name__ == "__main__":
    main()

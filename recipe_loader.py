"""
Recipe loader for the Google Maps crawler.

Loads and validates YAML recipe files holding the page selectors, the
category ordinal and the search URL template. Page markup changes over
time, so these live in versioned recipe files instead of the code.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field, fields
from pathlib import Path
import yaml


DEFAULT_SEARCH_URL_TEMPLATE = "https://www.google.com/maps/search/{query}"


@dataclass
class SearchSelectors:
    """Selectors used on the search results page."""
    place_link_css: str = 'a[href*="/maps/place/"]'
    feed_css: str = 'div[role="feed"]'
    place_link_glob: Optional[str] = "https://www.google.com/maps/place/*"


@dataclass
class DetailSelectors:
    """Selectors used on a place detail page."""
    title_css: str = 'h1'
    rating_css: str = 'span[aria-label*="stars"]'
    reviews_css: str = '[aria-label*="reviews"]'
    address_css: str = '[data-item-id="address"]'
    phone_button_css: str = 'button[data-item-id^="phone:tel"]'
    phone_text_css: str = 'div.Io6YTe'
    website_css: str = 'a[data-item-id="authority"]'
    website_attribute: str = 'href'
    # Ordinal heuristic: the category button is currently the 4th [jslog]
    # element on the page. Best-effort only.
    category_css: str = '[jslog]'
    category_index: int = 3


@dataclass
class Recipe:
    """
    Complete recipe for a maps crawl.

    The defaults describe the current Google Maps layout, so Recipe()
    is usable without a file.
    """
    version: str = "builtin"
    search_url_template: str = DEFAULT_SEARCH_URL_TEMPLATE
    search: SearchSelectors = field(default_factory=SearchSelectors)
    detail: DetailSelectors = field(default_factory=DetailSelectors)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Recipe':
        """
        Create a Recipe from a dictionary (loaded from YAML).

        Args:
            data: Dictionary from YAML file

        Returns:
            Recipe instance

        Raises:
            ValueError: If fields are invalid
        """
        version = str(data.get('version', 'unversioned'))

        template = data.get('search_url_template', DEFAULT_SEARCH_URL_TEMPLATE)
        if not isinstance(template, str) or '{query}' not in template:
            raise ValueError("'search_url_template' must contain a '{query}' placeholder")

        search = _build_section(SearchSelectors, data.get('search'), 'search')
        detail = _build_section(DetailSelectors, data.get('detail'), 'detail')

        if isinstance(detail.category_index, bool) or not isinstance(detail.category_index, int):
            raise ValueError("'detail.category_index' must be an integer")
        if detail.category_index < 0:
            raise ValueError("'detail.category_index' must not be negative")

        return cls(
            version=version,
            search_url_template=template,
            search=search,
            detail=detail
        )


def _build_section(section_cls, section_data: Optional[Dict[str, Any]], name: str):
    """Overlay a YAML mapping onto a selector dataclass, rejecting unknown keys."""
    if section_data is None:
        return section_cls()
    if not isinstance(section_data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    known = {f.name for f in fields(section_cls)}
    unknown = set(section_data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")

    section = section_cls(**section_data)
    for f in fields(section_cls):
        value = getattr(section, f.name)
        if f.name.endswith('_css') and (not isinstance(value, str) or not value.strip()):
            raise ValueError(f"'{name}.{f.name}' must be a non-empty string")
    return section


def load_recipe(file_path: str) -> Recipe:
    """
    Load a recipe from a YAML file.

    Args:
        file_path: Path to YAML recipe file

    Returns:
        Recipe instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If recipe is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Recipe file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError("Recipe file must contain a YAML dictionary")

    return Recipe.from_dict(data)


def validate_recipe(recipe: Recipe) -> List[str]:
    """
    Validate a recipe and return a list of warnings (not errors).

    Args:
        recipe: Recipe to validate

    Returns:
        List of warning messages (empty if no warnings)
    """
    warnings = []

    template = recipe.search_url_template
    if not template.startswith('http://') and not template.startswith('https://'):
        warnings.append(f"Search URL template may be invalid (missing http/https): {template}")

    glob = recipe.search.place_link_glob
    if glob and not glob.startswith('http'):
        warnings.append(f"Place link glob does not look like an absolute URL pattern: {glob}")

    if recipe.detail.category_index > 10:
        warnings.append(f"category_index is unusually high: {recipe.detail.category_index}")

    if recipe.version in ('builtin', 'unversioned'):
        warnings.append("Recipe has no version - selector changes will be hard to track")

    return warnings

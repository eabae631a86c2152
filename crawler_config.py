"""
Configuration settings for the Google Maps listing crawler.
"""

# Maximum number of pages processed at the same time
# 1 = one page at a time (slow, very polite), 10 = aggressive parallelism
MAX_CONCURRENCY = 10

# Navigation budget for page.goto, in seconds
NAVIGATION_TIMEOUT_SECS = 15

# Budget for a whole request handler run (search harvest or detail extraction).
# A search page needs LISTING_WAIT_MS + MAX_SCROLLS * SCROLL_SETTLE_MS plus
# SEARCH_HANDLER_MARGIN_SECS for scrolling and href reads.
REQUEST_HANDLER_TIMEOUT_SECS = 20

# Slack on top of the listing wait and scroll settles for one search page
SEARCH_HANDLER_MARGIN_SECS = 5

# Browser headless mode
# False = browser window visible (useful for debugging consent pages)
HEADLESS = True

# Chromium launch arguments
BROWSER_ARGS = [
    '--disable-gpu',
    '--disable-dev-shm-usage',
    '--disable-setuid-sandbox',
    '--no-sandbox',
    '--no-zygote',
    '--disable-extensions',
    '--blink-settings=imagesEnabled=false',
    '--disable-default-apps',
    '--disable-plugins',
    '--disable-sync',
]

# Resource types aborted before they hit the network
BLOCKED_RESOURCE_TYPES = [
    'image',
    'stylesheet',
    'font',
    'media',
    'ping',
    'manifest',
    'websocket',
    'other',
]

# --- Search page (scroll pagination) ---

# How long to wait for the first listing anchor, in milliseconds
LISTING_WAIT_MS = 8000

# Maximum number of scroll iterations on the results feed
MAX_SCROLLS = 8

# Pixels scrolled per iteration
SCROLL_STEP_PX = 3500

# Time given to lazily-loaded results after each scroll, in milliseconds
SCROLL_SETTLE_MS = 300

# Consecutive no-growth observations before the feed counts as exhausted
STABLE_SCROLL_THRESHOLD = 1

# Number of href reads issued concurrently when harvesting links
LINK_BATCH_SIZE = 20

# --- Detail page ---

# How long to wait for the place heading, in milliseconds
HEADING_WAIT_MS = 4000

# Budget for each individual field read, in milliseconds
FIELD_TIMEOUT_MS = 1000

# True = all fields are read concurrently, False = one after another
PARALLEL_FIELDS = True

# --- Output ---

OUTPUT_DIR = "output"

# Named presets for the deployment variants.
# Keys mirror the constant names above (lowercased).
PRESETS = {
    'fast': {},
    'thorough': {
        'max_concurrency': 3,
        'max_scrolls': 15,
        'scroll_settle_ms': 1000,
        'stable_scroll_threshold': 2,
        'request_handler_timeout_secs': 40,
    },
    'gentle': {
        'max_concurrency': 1,
        'max_scrolls': 5,
        'parallel_fields': False,
    },
}


def get_setting(name, preset=None):
    """
    Look up a setting, letting a named preset override the module default.

    Args:
        name: Lowercase setting name (e.g. 'max_scrolls')
        preset: Preset name from PRESETS, or None for plain defaults

    Returns:
        The configured value
    """
    if preset is not None:
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset: {preset}")
        overrides = PRESETS[preset]
        if name in overrides:
            return overrides[name]
    return globals()[name.upper()]

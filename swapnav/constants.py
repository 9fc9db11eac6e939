"""Shared constants for swapnav."""

# Marker attributes for framework-managed assets, one per asset type
SCRIPT_MARKER_ATTR = "swapnav-injected-script"
STYLE_MARKER_ATTR = "swapnav-injected-link"

# Declarative internal links carry their target path here
NAV_TARGET_ATTR = "swapnav-href"

# Element whose content is replaced by the fetched partial
CONTENT_ROOT_SELECTOR = "#swapnav-main"

# Name under which the browser surface exposes the navigate callback
NAVIGATE_BINDING = "__swapnav_navigate"

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_PARTIALS_PATH = "partials"
DEFAULT_ASSET_LOAD_TIMEOUT_S = 30.0
DEFAULT_FETCH_TIMEOUT_S = 10.0
DEFAULT_FETCH_RETRIES = 3

"""Path helpers shared by the router and the navigation triggers."""

from urllib.parse import urlsplit


def normalize_pattern(pattern: str) -> str:
    """Make sure a route pattern starts with ``/``."""
    return pattern if pattern.startswith("/") else f"/{pattern}"


def clean_path(location: str) -> str:
    """Extract the path of a location, dropping query string and fragment.

    Matrix parameters (``;a=b``) stay part of the path.
    Accepts full URLs (``https://host/a?b#c``) as well as bare paths.
    """
    location = location.strip()
    return urlsplit(location).path or "/"

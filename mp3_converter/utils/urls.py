"""URL checks and title clean-up shared by the API and the orchestrator."""

import re
from typing import Optional

SUPPORTED_HOST_MARKERS = ("youtube.com/", "youtu.be/")

_UNSAFE_TITLE_CHARS = re.compile(r"[^\w\s]")


def is_supported_url(url: Optional[str]) -> bool:
    """Return True if the URL points at one of the supported video hosts."""
    if not url or not isinstance(url, str):
        return False
    return any(marker in url for marker in SUPPORTED_HOST_MARKERS)


def sanitize_title(title: str) -> str:
    """
    Strip everything that is neither a word character nor whitespace.

    The result is used as a download filename, so path separators, quotes
    and the like never survive.

    Args:
        title: Raw title reported by the extraction provider

    Returns:
        Cleaned title (may be empty)
    """
    return _UNSAFE_TITLE_CHARS.sub("", title).strip()

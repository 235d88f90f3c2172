"""Utility functions for pagetomd."""

import re
from urllib.parse import urlparse

_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def domain_from_url(url: str) -> str:
    """Hostname of *url* without a leading ``www.``."""
    host = urlparse(url).hostname or ""
    return host.removeprefix("www.")


def sanitize_filename(name: str, max_length: int = 100) -> str:
    """Drop characters that are unsafe in filenames and collapse whitespace."""
    name = _UNSAFE_FILENAME_RE.sub("", name)
    name = re.sub(r"\s+", " ", name).strip()
    return name[:max_length]

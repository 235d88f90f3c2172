"""Metadata: front-matter fields from meta tags and the heuristic's guesses."""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.element import PreformattedString

from pagetomd.context import Extraction, Metadata
from pagetomd.utils import domain_from_url

MAX_TAGS = 10

TITLE_META = ("og:title", "twitter:title")
SOURCE_META = ("og:site_name", "twitter:site", "application-name")
DESCRIPTION_META = ("og:description", "twitter:description", "description")
AUTHOR_META = ("author", "article:author", "twitter:creator")
PUBLISHED_META = ("article:published_time",)

_INVISIBLE_TAGS = ("script", "style", "noscript", "template")


def extract_metadata(
    html: str | BeautifulSoup,
    url: str = "",
    extraction: Extraction | None = None,
) -> Metadata:
    """Build the front-matter record for a page.

    Every field takes the first non-empty value of: the boundary-detection
    heuristic's guess, the listed meta tags (``name`` or ``property``), and a
    computed default.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "lxml")
    guess = extraction or Extraction()
    domain = domain_from_url(url)

    title = _first(
        guess.title,
        get_meta(soup, TITLE_META),
        _get_title(soup),
    ) or "Untitled"
    source = _first(get_meta(soup, SOURCE_META), guess.site, domain)
    description = _first(guess.description, get_meta(soup, DESCRIPTION_META))
    author = _first(guess.author, get_meta(soup, AUTHOR_META))
    published = _first(
        guess.published,
        get_meta(soup, PUBLISHED_META),
        _get_time_datetime(soup),
    )

    if guess.word_count is not None:
        word_count = guess.word_count
    else:
        word_count = count_words(soup)

    return Metadata(
        title=title,
        url=url,
        domain=domain,
        source=source or "",
        description=description,
        author=author,
        published_date=published,
        tags=extract_tags(soup),
        word_count=word_count,
    )


def extract_tags(soup: BeautifulSoup, limit: int = MAX_TAGS) -> list[str]:
    """Keywords meta plus visible tag links, deduplicated in first-seen order."""
    candidates: list[str] = []

    keywords = soup.find("meta", attrs={"name": "keywords"})
    if keywords and keywords.get("content"):
        candidates.extend(keywords["content"].split(","))

    for link in soup.select(".tags a, a[rel~=tag]"):
        candidates.append(link.get_text())

    seen: set[str] = set()
    tags: list[str] = []
    for candidate in candidates:
        tag = candidate.strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags[:limit]


def count_words(soup: BeautifulSoup) -> int:
    """Whitespace-separated words in the page's visible body text."""
    root = soup.body or soup
    words = 0
    for string in root.find_all(string=True):
        if any(parent.name in _INVISIBLE_TAGS for parent in string.parents):
            continue
        if isinstance(string, PreformattedString):
            continue
        words += len(string.split())
    return words


def get_meta(soup: BeautifulSoup, names: tuple[str, ...]) -> str | None:
    """Content of the first meta tag whose name or property is in *names*."""
    for name in names:
        value = _get_meta(soup, name)
        if value:
            return value
    return None


# --- Private helpers ---


def _first(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


def _get_meta(soup: BeautifulSoup, name: str) -> str | None:
    """Get content from a meta tag by name or property."""
    tag = soup.find("meta", attrs={"name": name})
    if tag and tag.get("content", "").strip():
        return tag["content"].strip()
    tag = soup.find("meta", attrs={"property": name})
    if tag and tag.get("content", "").strip():
        return tag["content"].strip()
    return None


def _get_title(soup: BeautifulSoup) -> str:
    """Get page title."""
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""


def _get_time_datetime(soup: BeautifulSoup) -> str | None:
    time_el = soup.find("time", datetime=True)
    if time_el and time_el["datetime"].strip():
        return time_el["datetime"].strip()
    return None

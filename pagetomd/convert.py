"""Page -> markdown pipeline: readability-lxml extraction, normalization, rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup
from readability import Document

from pagetomd._postprocess import clean_markdown
from pagetomd.context import (
    ConversionContext,
    ConversionResult,
    ConvertOptions,
    Extraction,
)
from pagetomd.engine import render_markdown
from pagetomd.extract import extract_metadata
from pagetomd.normalize import normalize_html

logger = logging.getLogger(__name__)

Heuristic = Callable[[str, str], Extraction]


class ConversionError(RuntimeError):
    """The page could not be turned into markdown."""


@dataclass
class ExtractedContent:
    """Main-content candidate chosen for conversion."""

    html: str
    soup: BeautifulSoup
    extraction: Extraction
    used_fallback: bool = False


def readability_extract(html: str, url: str = "") -> Extraction:
    """Extract main content using Mozilla's Readability algorithm."""
    doc = Document(html, url=url)
    content = doc.summary(html_partial=True)
    text = BeautifulSoup(content, "lxml").get_text(separator=" ", strip=True)
    return Extraction(
        content_html=content,
        title=doc.short_title() or None,
        word_count=len(text.split()),
    )


def extract_content(
    html: str,
    url: str = "",
    heuristic: Heuristic = readability_extract,
    strip_boilerplate: bool = True,
) -> ExtractedContent:
    """Pick the content subtree to convert.

    Uses *heuristic* when boilerplate stripping is on. If it raises or finds
    nothing, falls back to the document body.
    """
    extraction = Extraction()
    if strip_boilerplate:
        try:
            extraction = heuristic(html, url) or Extraction()
        except Exception as exc:
            logger.warning("Boundary detection failed for %s: %s", url or "document", exc)
            extraction = Extraction()

        if extraction.content_html and extraction.content_html.strip():
            soup = BeautifulSoup(extraction.content_html, "lxml")
            return ExtractedContent(extraction.content_html, soup, extraction)

        logger.info("Using body fallback for %s", url or "document")

    doc = BeautifulSoup(html, "lxml")
    body = doc.body or doc
    content_html = body.decode_contents()
    return ExtractedContent(
        content_html,
        BeautifulSoup(content_html, "lxml"),
        extraction,
        used_fallback=True,
    )


def convert_to_markdown(content_html: str, ctx: ConversionContext) -> str:
    """Normalize *content_html*, run the rule engine and clean the result."""
    if ctx.debug:
        logger.debug(
            "convert_to_markdown: source length %d, has <pre>: %s",
            len(content_html), "<pre" in content_html,
        )
    normalized = normalize_html(content_html, ctx)

    try:
        markdown = render_markdown(normalized, ctx)
    except Exception as exc:
        logger.error("Markdown conversion failed for %s: %s", ctx.url or "document", exc)
        raise ConversionError(f"Failed to convert page: {exc}") from exc

    markdown = clean_markdown(markdown)
    if ctx.debug:
        logger.debug("convert_to_markdown: done, %d characters", len(markdown))
    return markdown


def page_to_markdown(
    html: str,
    url: str = "",
    options: ConvertOptions | None = None,
    heuristic: Heuristic = readability_extract,
) -> ConversionResult:
    """Convert a full HTML document into markdown plus front-matter metadata.

    Pipeline:
    1. readability-lxml picks the main content (body fallback)
    2. the normalizer recovers diagrams and canonicalizes code blocks
    3. the rule engine (markdownify + core rules) renders markdown
    4. whitespace post-processing
    Metadata comes from the full document and the extraction's guesses.
    """
    options = options or ConvertOptions()
    ctx = ConversionContext(url=url, raw_html=html, options=options)

    content = extract_content(html, url, heuristic, options.strip_boilerplate)
    metadata = extract_metadata(html, url, content.extraction)
    markdown = convert_to_markdown(content.html, ctx)

    return ConversionResult(markdown=markdown, metadata=metadata)


def html_to_markdown(
    html: str,
    url: str = "",
    strip_boilerplate: bool = True,
) -> str:
    """Convert HTML to clean markdown, dropping the metadata."""
    if not html or not html.strip():
        return ""
    options = ConvertOptions(strip_boilerplate=strip_boilerplate)
    return page_to_markdown(html, url, options).markdown

"""Rewrite extracted content HTML so code and diagrams survive conversion."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from pagetomd.context import CodeBlock, ConversionContext, SourceKind
from pagetomd.diagrams import (
    DIAGRAM_LANGUAGE,
    PLACEHOLDER_TEXT,
    SYNTHESIZED_ATTR,
    DiagramSerializationError,
    assign_sources,
    container_text,
    diagram_kind,
    find_diagram_graphics,
    find_source_container,
    has_diagram_markup,
    scan_escaped_sources,
    serialize_graphic,
    source_from_attributes,
)

logger = logging.getLogger(__name__)

_LANGUAGE_CLASS_PATTERNS = (
    re.compile(r"^language-([\w+#.-]+)$"),
    re.compile(r"^lang-([\w+#.-]+)$"),
)
_TRAILING_BLANK_LINES_RE = re.compile(r"(?:\n[ \t]*)+$")

# Elements that start a new visual line inside a code viewer
_LINE_BREAKING_TAGS = frozenset({
    "div", "p", "li", "tr", "table", "ul", "ol", "section", "article",
    "blockquote", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
})


def normalize_html(html: str, ctx: ConversionContext) -> str:
    """Run the three normalization passes and return the rewritten HTML."""
    source = guard_extraction_loss(html, ctx.raw_html)
    soup = BeautifulSoup(source or "", "lxml")
    root = soup.body or soup

    recover_diagrams(root, soup, ctx)
    canonicalize_code_blocks(root, soup, ctx)

    return root.decode_contents()


def guard_extraction_loss(content_html: str, original_html: str) -> str:
    """Fall back to the whole body when extraction dropped every diagram."""
    if not original_html or has_diagram_markup(content_html):
        return content_html

    original = BeautifulSoup(original_html, "lxml")
    if not find_diagram_graphics(original):
        return content_html

    logger.info("Extracted content lost its diagrams, reverting to full document body")
    body = original.body or original
    return body.decode_contents()


# --- Diagram recovery ---


def recover_diagrams(root: Tag, soup: BeautifulSoup, ctx: ConversionContext) -> None:
    graphics = find_diagram_graphics(root)
    if not graphics:
        return

    sources: list[str | None] = []
    for graphic in graphics:
        source = source_from_attributes(graphic)
        if source is None:
            container = find_source_container(graphic)
            if container is not None:
                source = container_text(container)
                # consumed; otherwise it would also be emitted as a code block
                container.decompose()
        sources.append(source)

    missing = [i for i, source in enumerate(sources) if source is None]
    if missing:
        taken = {source for source in sources if source}
        candidates = [c for c in scan_escaped_sources(ctx.raw_html) if c not in taken]
        if candidates:
            kinds = [diagram_kind(graphics[i]) for i in missing]
            for i, source in zip(missing, assign_sources(kinds, candidates)):
                sources[i] = source

    if ctx.debug:
        logger.debug(
            "recover_diagrams: %d graphics, %d recovered",
            len(graphics), sum(1 for s in sources if s),
        )

    for index, (graphic, source) in enumerate(zip(graphics, sources)):
        key = graphic.get("id") or f"diagram-{index}"
        if source:
            ctx.diagram_sources[key] = source
            graphic.replace_with(_diagram_block(soup, source))
        else:
            logger.debug("No source found for diagram %s", key)
            graphic.replace_with(_diagram_fallback(soup, graphic, ctx))


def _diagram_block(soup: BeautifulSoup, source: str) -> Tag:
    pre = soup.new_tag("pre", attrs={SYNTHESIZED_ATTR: "true"})
    code = soup.new_tag("code", attrs={
        "class": f"language-{DIAGRAM_LANGUAGE}",
        "data-lang": DIAGRAM_LANGUAGE,
    })
    code.string = source
    pre.append(code)
    return pre


def _diagram_fallback(soup: BeautifulSoup, graphic: Tag, ctx: ConversionContext) -> Tag:
    try:
        src = serialize_graphic(graphic, ctx.options.max_image_bytes)
    except DiagramSerializationError as exc:
        logger.debug("Diagram serialization failed: %s", exc)
        placeholder = soup.new_tag("p")
        emphasis = soup.new_tag("em")
        emphasis.string = PLACEHOLDER_TEXT
        placeholder.append(emphasis)
        return placeholder

    title = graphic.get("aria-roledescription") or DIAGRAM_LANGUAGE
    return soup.new_tag("img", attrs={"src": src, "alt": f"{title} diagram"})


# --- Code canonicalization ---


def _classes(tag: Tag) -> list[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def language_from_element(element: Tag | None) -> str | None:
    """Language hint carried by a single element, or None."""
    if element is None:
        return None
    for attr in ("data-lang", "data-language"):
        value = element.get(attr)
        if isinstance(value, str) and value.strip():
            return value.strip()
    for pattern in _LANGUAGE_CLASS_PATTERNS:
        for token in _classes(element):
            match = pattern.match(token)
            if match:
                return match.group(1)
    return None


def detect_language(pre: Tag) -> str | None:
    """Resolve a code block's language from its ``<code>`` then the ``<pre>``."""
    code = pre if pre.name == "code" else pre.find("code")
    container = pre if pre.name == "pre" else pre.find_parent("pre")
    return language_from_element(code) or language_from_element(container)


def layout_text(element: Tag) -> str:
    """Text with the line breaks a browser would render for *element*."""
    parts: list[str] = []

    def newline() -> None:
        if parts and not parts[-1].endswith("\n"):
            parts.append("\n")

    def walk(node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                parts.append(str(child))
            elif child.name == "br":
                parts.append("\n")
            elif child.name in _LINE_BREAKING_TAGS:
                newline()
                walk(child)
                newline()
            else:
                walk(child)

    walk(element)
    return "".join(parts)


def code_element(pre: Tag) -> Tag:
    """The lone ``<code>`` inside *pre*, or *pre* itself when there are none or several."""
    codes = pre.find_all("code")
    return codes[0] if len(codes) == 1 else pre


def extract_code_text(pre: Tag) -> str:
    """Raw code text, or layout text when the raw text lost its line breaks."""
    element = code_element(pre)
    raw = element.get_text()
    if "\n" in raw.strip():
        return raw
    lines = pre.find_all("code") if element is pre else []
    if len(lines) > 1:
        # one <code> per line
        return "\n".join(line.get_text() for line in lines)
    rendered = layout_text(element)
    if "\n" in rendered.strip():
        return rendered
    return raw


def normalize_code_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\u00a0", " ")
    return _TRAILING_BLANK_LINES_RE.sub("", text)


def canonicalize_code_blocks(root: Tag, soup: BeautifulSoup, ctx: ConversionContext) -> None:
    pres = [pre for pre in root.find_all("pre") if pre.find_parent("pre") is None]
    if ctx.debug:
        logger.debug("canonicalize_code_blocks: found %d <pre> elements", len(pres))

    for pre in pres:
        language = detect_language(pre)
        text = normalize_code_text(extract_code_text(pre))

        pre.clear()
        code = soup.new_tag("code")
        if language:
            code["class"] = f"language-{language}"
            code["data-lang"] = language
        code.string = text
        pre.append(code)

        kind = SourceKind.RECOVERED_DIAGRAM if pre.get(SYNTHESIZED_ATTR) else SourceKind.FENCED
        ctx.code_blocks.append(CodeBlock(code=text, language=language, source_kind=kind))

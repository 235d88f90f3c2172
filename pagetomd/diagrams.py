"""Recognize rendered Mermaid graphics and recover the text they were drawn from.

Diagram tools replace their source with an ``<svg>`` at render time, so once
the page has been rendered the original definition is usually only reachable
through side channels. The lookups here go from most to least reliable:

1. a data attribute on the graphic or one of its ancestors;
2. a sibling container that still holds the source text;
3. fenced blocks inside escaped string literals in the raw page HTML
   (hydration payloads, JSON props). This last one is best effort: it only
   understands the common ``\\n`` / ``\\uXXXX`` escaping style.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

SVG_NS = "http://www.w3.org/2000/svg"
DIAGRAM_LANGUAGE = "mermaid"
DIAGRAM_ID_TOKEN = "mermaid-"
SYNTHESIZED_ATTR = "data-pagetomd-synthesized"
PLACEHOLDER_TEXT = "[Diagram could not be recovered]"

# aria-roledescription values written by Mermaid renderers (lower-cased)
_ROLE_DESCRIPTIONS = frozenset({
    "flowchart", "flowchart-v2", "graph", "sequence", "statediagram",
    "classdiagram", "class", "er", "erdiagram", "gantt", "pie", "journey",
    "gitgraph", "mindmap", "timeline", "requirement", "quadrantchart",
})

_SOURCE_ATTRS = (
    "data-mermaid",
    "data-mermaid-source",
    "data-code",
    "data-source",
    "data-diagram",
    "data-graph-definition",
)

# Elements that hold diagram source as text: tag name -> class token
_SOURCE_CONTAINER_CLASSES = {
    "pre": "mermaid",
    "div": "mermaid",
    "textarea": "mermaid",
    "code": "language-mermaid",
}
_SOURCE_SCRIPT_TYPE = "text/x-mermaid"

_ESCAPED_FENCE_RE = re.compile(
    r"```mermaid[ \t]*(?:\\r)?\\n(.*?)(?:(?:\\r)?\\n)?```",
    re.DOTALL,
)
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|[nrt\"\\])")
_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}

_KEYWORD_KINDS = {
    "statediagram": "state",
    "statediagram-v2": "state",
    "sequencediagram": "sequence",
    "flowchart": "flow",
    "flowchart-elk": "flow",
    "graph": "flow",
}


class DiagramSerializationError(ValueError):
    """A graphic could not be turned into an embeddable image."""


def _classes(tag: Tag) -> list[str]:
    value = tag.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def is_diagram_graphic(node: Tag) -> bool:
    """True for an ``<svg>`` drawn by a known diagram tool."""
    if not isinstance(node, Tag) or node.name != "svg":
        return False
    if str(node.get("id", "")).lower().startswith(DIAGRAM_LANGUAGE):
        return True
    if DIAGRAM_LANGUAGE in (c.lower() for c in _classes(node)):
        return True
    role = str(node.get("aria-roledescription", "")).lower()
    return role in _ROLE_DESCRIPTIONS


def find_diagram_graphics(root: Tag) -> list[Tag]:
    return [svg for svg in root.find_all("svg") if is_diagram_graphic(svg)]


def has_diagram_markup(html: str) -> bool:
    """Whether *html* still carries a diagram graphic or its id token."""
    if not html:
        return False
    if DIAGRAM_ID_TOKEN in html:
        return True
    return bool(find_diagram_graphics(BeautifulSoup(html, "lxml")))


def diagram_kind(node: Tag) -> str | None:
    """Guess state / sequence / flow from the graphic's own tokens."""
    tokens = " ".join(
        [str(node.get("id", "")), str(node.get("aria-roledescription", ""))]
        + _classes(node)
    ).lower()
    if "state" in tokens:
        return "state"
    if "sequence" in tokens:
        return "sequence"
    if "flow" in tokens or "graph" in tokens:
        return "flow"
    return None


def source_kind(source: str) -> str | None:
    """Diagram kind named by the leading keyword of the first non-blank line."""
    for line in source.splitlines():
        if line.strip():
            keyword = line.split()[0].lower()
            return _KEYWORD_KINDS.get(keyword)
    return None


def source_from_attributes(node: Tag) -> str | None:
    for element in [node, *node.parents]:
        if not isinstance(element, Tag) or isinstance(element, BeautifulSoup):
            break
        for attr in _SOURCE_ATTRS:
            value = element.get(attr)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _is_source_container(element: Tag) -> bool:
    if not isinstance(element, Tag):
        return False
    if element.get("data-mermaid-source") is not None:
        return True
    if element.name == "script":
        return str(element.get("type", "")).lower() == _SOURCE_SCRIPT_TYPE
    token = _SOURCE_CONTAINER_CLASSES.get(element.name)
    return token is not None and token in _classes(element)


def _is_synthesized(element: Tag) -> bool:
    if element.get(SYNTHESIZED_ATTR) is not None:
        return True
    return element.find_parent(attrs={SYNTHESIZED_ATTR: True}) is not None


def container_text(container: Tag) -> str | None:
    """Diagram source held by *container*, or None when it is not usable."""
    if _is_synthesized(container) or container.find("svg") is not None:
        return None
    value = container.get("data-mermaid-source")
    if isinstance(value, str) and value.strip():
        return value.strip()
    text = container.get_text()
    return text.strip() or None


def find_source_container(node: Tag, max_depth: int = 3) -> Tag | None:
    """Nearest sibling (of the graphic or a close ancestor) holding diagram source."""
    element = node
    for _ in range(max_depth):
        if element is None or isinstance(element, BeautifulSoup):
            break
        for sibling in [*element.find_previous_siblings(), *element.find_next_siblings()]:
            if not isinstance(sibling, Tag):
                continue
            if _is_source_container(sibling):
                candidates = [sibling]
            else:
                candidates = sibling.find_all(_is_source_container)
            for container in candidates:
                if container_text(container):
                    return container
        element = element.parent
    return None


def decode_escapes(payload: str) -> str:
    """Undo JavaScript/JSON string escaping for ``\\n \\r \\t \\" \\\\ \\uXXXX``."""

    def replace(match: re.Match) -> str:
        token = match.group(1)
        if token.startswith("u"):
            return chr(int(token[1:], 16))
        return _SIMPLE_ESCAPES[token]

    decoded = _ESCAPE_RE.sub(replace, payload)
    # join \uXXXX surrogate pairs; unpaired halves become U+FFFD
    decoded = decoded.encode("utf-16", "surrogatepass").decode("utf-16", "replace")
    return decoded.replace("\r\n", "\n").replace("\r", "\n")


def scan_escaped_sources(raw_html: str) -> list[str]:
    """Fenced diagram blocks embedded as escaped string literals, in page order."""
    sources: list[str] = []
    for match in _ESCAPED_FENCE_RE.finditer(raw_html or ""):
        source = decode_escapes(match.group(1)).strip("\n")
        if source.strip() and source not in sources:
            sources.append(source)
    return sources


def assign_sources(kinds: list[str | None], candidates: list[str]) -> list[str | None]:
    """Match candidates to graphics by diagram kind, then by position."""
    remaining = list(candidates)
    assigned: list[str | None] = [None] * len(kinds)

    for i, kind in enumerate(kinds):
        if kind is None:
            continue
        for j, candidate in enumerate(remaining):
            if source_kind(candidate) == kind:
                assigned[i] = remaining.pop(j)
                break

    for i in range(len(kinds)):
        if assigned[i] is None and remaining:
            assigned[i] = remaining.pop(0)

    return assigned


def serialize_graphic(node: Tag, max_bytes: int) -> str:
    """Encode the graphic as a ``data:image/svg+xml`` reference."""
    if not node.get("xmlns"):
        node["xmlns"] = SVG_NS
    markup = str(node)
    size = len(markup.encode("utf-8"))
    if size > max_bytes:
        raise DiagramSerializationError(
            f"serialized diagram is {size} bytes (limit {max_bytes})"
        )
    return "data:image/svg+xml;charset=utf-8," + quote(markup, safe="")

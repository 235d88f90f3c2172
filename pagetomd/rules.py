"""Ordered node rules layered on top of markdownify's per-tag conversion.

A rule matches a node and produces its markdown from the node and the already
converted text of its children. The first matching rule in a ``RuleSet``
wins, so more specific rules have to sit before general ones.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterator

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from pagetomd.context import CodeBlock, ConversionContext, SourceKind
from pagetomd.diagrams import DIAGRAM_LANGUAGE, is_diagram_graphic, source_from_attributes
from pagetomd.normalize import code_element, detect_language

logger = logging.getLogger(__name__)

# Subtrees that never contribute output
NOISE_TAGS = frozenset({
    "script", "style", "noscript", "iframe", "object", "embed", "footer", "nav",
})

_HEADING_RE = re.compile(r"^h([1-6])$")
_BACKTICK_RUN_RE = re.compile(r"`+")


@dataclass
class Rule:
    """A named ``(matches, produce)`` pair.

    ``skip`` lets a rule exclude children it renders on its own from the
    converted child text it receives.
    """

    name: str
    matches: Callable[[Tag], bool]
    produce: Callable[[Tag, str], str]
    skip: Callable[[Tag, Tag], bool] | None = None


class RuleSet:
    """Rules in priority order; index 0 is tried first."""

    def __init__(self, rules: list[Rule] | None = None):
        self._rules: list[Rule] = []
        for rule in rules or []:
            self.add(rule)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def add(self, rule: Rule) -> None:
        if rule.name in self.names():
            raise ValueError(f"duplicate rule: {rule.name}")
        self._rules.append(rule)

    def remove(self, name: str) -> Rule:
        index = self._index(name)
        return self._rules.pop(index)

    def prioritize(self, name: str) -> None:
        """Move rule *name* to the front of the list."""
        self._rules.insert(0, self.remove(name))

    def first_match(self, node: Tag) -> Rule | None:
        for rule in self._rules:
            if rule.matches(node):
                return rule
        return None

    def _index(self, name: str) -> int:
        for i, rule in enumerate(self._rules):
            if rule.name == name:
                return i
        raise KeyError(name)


# --- Helpers ---


def compute_fence(code: str) -> str:
    """Backtick fence that no run inside *code* can close early."""
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    return "`" * max(3, longest + 1)


def fenced_block(code: str, language: str | None = None) -> str:
    fence = compute_fence(code)
    body = f"{code}\n" if code else ""
    return f"\n\n{fence}{language or ''}\n{body}{fence}\n\n"


def plain_text(node: Tag) -> str:
    """Text content of *node*, leaving out comments and noise subtrees."""
    parts = []
    for string in node.find_all(string=True):
        if isinstance(string, PreformattedString):
            continue
        if _inside_noise(string, node):
            continue
        parts.append(str(string))
    return "".join(parts)


def _inside_noise(element, stop: Tag) -> bool:
    for parent in element.parents:
        if parent is stop:
            return False
        if parent.name in NOISE_TAGS:
            return True
    return False


def heading_level(node: Tag) -> int | None:
    match = _HEADING_RE.match(node.name or "")
    return int(match.group(1)) if match else None


def clean_heading(level: int, node: Tag) -> str:
    text = " ".join(plain_text(node).split())
    if not text:
        return ""
    return f"\n\n{'#' * level} {text}\n\n"


# --- Core rules ---


def _is_block_code(node: Tag) -> bool:
    return node.name == "pre"


def _block_code(node: Tag, _text: str) -> str:
    code = plain_text(code_element(node)).strip("\n")
    if not code.strip():
        return ""
    return fenced_block(code, detect_language(node))


def _is_heading(node: Tag) -> bool:
    return heading_level(node) is not None


def _is_heading_single_link(node: Tag) -> bool:
    if not _is_heading(node):
        return False
    children = []
    for child in node.children:
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString) and not child.strip():
            continue
        children.append(child)
    return len(children) == 1 and isinstance(children[0], Tag) and children[0].name == "a"


def _heading(node: Tag, _text: str) -> str:
    return clean_heading(heading_level(node), node)


def _is_link_wrapped_heading(node: Tag) -> bool:
    return node.name == "a" and node.find(_HEADING_RE) is not None


def _link_wrapped_heading(node: Tag, _text: str) -> str:
    heading = node.find(_HEADING_RE)
    return clean_heading(heading_level(heading), heading)


def _figure_skip(figure: Tag, child: Tag) -> bool:
    if child.name == "figcaption":
        return True
    img = figure.find("img")
    if img is None:
        return False
    return child is img or any(d is img for d in child.descendants)


def _figure(node: Tag, text: str) -> str:
    lines = []
    img = node.find("img")
    if img is not None:
        lines.append(f"![{img.get('alt', '')}]({img.get('src', '')})")
    caption = node.find("figcaption")
    if caption is not None:
        caption_text = " ".join(plain_text(caption).split())
        if caption_text:
            lines.append(f"*{caption_text}*")
    if text.strip():
        lines.append(text.strip())
    if not lines:
        return ""
    return "\n\n" + "\n".join(lines) + "\n\n"


def _is_inline_code(node: Tag) -> bool:
    return node.name == "code" and node.find_parent("pre") is None


def build_rules(ctx: ConversionContext) -> RuleSet:
    """The core rules, most specific first."""

    def diagram(node: Tag, _text: str) -> str:
        source = ctx.diagram_sources.get(node.get("id", "")) or source_from_attributes(node)
        return fenced_block(source or "", DIAGRAM_LANGUAGE)

    def inline_code(node: Tag, _text: str) -> str:
        code = plain_text(node)
        if not code:
            return ""
        ctx.code_blocks.append(CodeBlock(code=code, source_kind=SourceKind.INLINE))
        longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
        delimiter = "`" * (longest + 1)
        if code.startswith("`") or code.endswith("`"):
            code = f" {code} "
        return f"{delimiter}{code}{delimiter}"

    return RuleSet([
        Rule("block-code", _is_block_code, _block_code),
        Rule("diagram-graphic", is_diagram_graphic, diagram),
        Rule("link-wrapped-heading", _is_link_wrapped_heading, _link_wrapped_heading),
        Rule("heading-single-link", _is_heading_single_link, _heading),
        Rule("heading-clean", _is_heading, _heading),
        Rule("figure", lambda node: node.name == "figure", _figure, skip=_figure_skip),
        Rule("inline-code", _is_inline_code, inline_code),
    ])

"""Markdown post-processing: whitespace fixups on the rule engine's output."""

from __future__ import annotations

import re

_EXCESS_NEWLINES_RE = re.compile(r"\n{4,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)


def collapse_blank_lines(markdown: str) -> str:
    """Collapse runs of 4+ newlines down to a single blank line."""
    return _EXCESS_NEWLINES_RE.sub("\n\n", markdown)


def strip_trailing_whitespace(markdown: str) -> str:
    """Remove spaces and tabs at the end of every line."""
    return _TRAILING_WHITESPACE_RE.sub("", markdown)


def clean_markdown(markdown: str) -> str:
    """Run all markdown post-processing fixups.

    Trailing whitespace goes first so that lines holding only spaces
    count as empty when blank lines are collapsed.
    """
    if not markdown:
        return markdown

    markdown = strip_trailing_whitespace(markdown)
    markdown = collapse_blank_lines(markdown)
    return markdown.strip()

"""markdownify converter that consults a RuleSet before its own tag handlers."""

from __future__ import annotations

import logging

from bs4 import Tag
from bs4.element import PreformattedString
from markdownify import MarkdownConverter

from pagetomd.context import ConversionContext
from pagetomd.rules import NOISE_TAGS, Rule, RuleSet, build_rules

logger = logging.getLogger(__name__)


class PageConverter(MarkdownConverter):
    """Markdown converter with first-match rules and noise elision.

    Tags in ``NOISE_TAGS`` are dropped before any rule sees them. Otherwise
    the first matching rule renders the node; tags no rule claims fall through
    to markdownify (paragraphs, lists, emphasis, links, images, tables).
    """

    def __init__(self, rules: RuleSet, **options):
        super().__init__(**options)
        self.rules = rules

    def process_tag(self, node, parent_tags=None):
        if parent_tags is None:
            parent_tags = set()
        if node.name in NOISE_TAGS:
            return ""

        rule = self.rules.first_match(node)
        if rule is None:
            return super().process_tag(node, parent_tags=parent_tags)

        text = self._convert_children(node, parent_tags, rule)
        return rule.produce(node, text)

    def _convert_children(self, node: Tag, parent_tags: set, rule: Rule) -> str:
        child_tags = set(parent_tags)
        child_tags.add(node.name)

        parts = []
        for child in node.children:
            if isinstance(child, PreformattedString):
                continue
            if rule.skip is not None and isinstance(child, Tag) and rule.skip(node, child):
                continue
            parts.append(self.process_element(child, parent_tags=child_tags))
        return "".join(part for part in parts if part)


def render_markdown(html: str, ctx: ConversionContext, rules: RuleSet | None = None) -> str:
    """Convert normalized content HTML to raw (not yet cleaned) markdown."""
    if rules is None:
        rules = build_rules(ctx)
    converter = PageConverter(
        rules,
        heading_style=ctx.options.heading_style,
        bullets=ctx.options.bullets,
    )
    if ctx.debug:
        logger.debug("render_markdown: rule order %s", rules.names())
    return converter.convert(html)

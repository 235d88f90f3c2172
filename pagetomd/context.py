"""Per-run state and result records shared by the conversion stages."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class SourceKind(str, Enum):
    """Where a code block's text came from."""

    INLINE = "inline"
    FENCED = "fenced"
    RECOVERED_DIAGRAM = "recovered-diagram"


@dataclass
class CodeBlock:
    """A canonicalized code block as seen by the normalizer or rule engine."""

    code: str
    language: str | None = None
    source_kind: SourceKind = SourceKind.FENCED


@dataclass
class ConvertOptions:
    """Knobs for one conversion run."""

    strip_boilerplate: bool = True
    debug: bool = False
    # Upper bound for an unrecovered diagram inlined as a data: image
    max_image_bytes: int = 200_000
    heading_style: str = "ATX"
    bullets: str = "-"


@dataclass
class Extraction:
    """What the boundary-detection heuristic guessed about a page."""

    content_html: str | None = None
    title: str | None = None
    author: str | None = None
    description: str | None = None
    site: str | None = None
    published: str | None = None
    word_count: int | None = None


@dataclass
class ConversionContext:
    """Mutable working state for a single conversion.

    Created fresh for every invocation and dropped when it finishes.
    """

    url: str = ""
    raw_html: str = ""
    options: ConvertOptions = field(default_factory=ConvertOptions)
    diagram_sources: dict[str, str] = field(default_factory=dict)
    code_blocks: list[CodeBlock] = field(default_factory=list)

    @property
    def debug(self) -> bool:
        return self.options.debug


@dataclass
class Metadata:
    """Front-matter fields for a converted page."""

    title: str
    url: str
    domain: str
    source: str
    description: str | None = None
    author: str | None = None
    published_date: str | None = None
    tags: list[str] = field(default_factory=list)
    word_count: int = 0

    @property
    def reading_time(self) -> int:
        """Minutes at 200 words per minute, rounded up."""
        return math.ceil(self.word_count / 200)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "domain": self.domain,
            "source": self.source,
            "description": self.description,
            "author": self.author,
            "published_date": self.published_date,
            "tags": list(self.tags),
            "word_count": self.word_count,
            "reading_time": self.reading_time,
        }


@dataclass
class ConversionResult:
    """The markdown/metadata pair handed to the output shell."""

    markdown: str
    metadata: Metadata

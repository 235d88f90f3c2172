"""Front matter, filenames and file writers for converted pages."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pagetomd.context import Metadata
from pagetomd.utils import sanitize_filename


def build_filename(metadata: Metadata, suffix: str = ".md") -> str:
    """``"{title} - {domain}.md"`` with unsafe characters removed."""
    title = sanitize_filename(metadata.title or "") or "untitled"
    domain = metadata.domain or "web-clipper"
    return f"{title} - {domain}{suffix}"


def render_front_matter(metadata: Metadata, saved_at: datetime | None = None) -> str:
    """YAML-style front matter block, terminated by a blank line."""
    saved_at = saved_at or datetime.now(timezone.utc)
    fields: dict[str, str | list[str]] = {
        "title": metadata.title,
        "url": metadata.url,
        "domain": metadata.domain,
        "date_saved": saved_at.isoformat(),
        "word_count": str(metadata.word_count),
        "reading_time": f"{metadata.reading_time} min",
    }
    if metadata.author:
        fields["author"] = metadata.author
    if metadata.published_date:
        fields["date_published"] = metadata.published_date
    if metadata.description:
        fields["description"] = metadata.description
    if metadata.tags:
        fields["tags"] = metadata.tags

    lines = ["---"]
    for key, value in fields.items():
        if isinstance(value, list):
            lines.append(f"{key}:")
            lines.extend(f'  - "{_quote(item)}"' for item in value)
        else:
            lines.append(f'{key}: "{_quote(value)}"')
    lines.append("---")
    return "\n".join(lines) + "\n\n"


def _quote(value: str) -> str:
    return str(value).replace('"', '\\"')


def save_markdown(content: str, output_path: Path) -> None:
    """Save markdown content to file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")


def save_bytes(content: bytes, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(content)

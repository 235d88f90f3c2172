"""Tests for pagetomd.output module."""

from datetime import datetime, timezone

from pagetomd.context import Metadata
from pagetomd.output import build_filename, render_front_matter, save_markdown

SAVED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _metadata(**overrides) -> Metadata:
    fields = dict(
        title="Hello Page",
        url="https://example.com/hello",
        domain="example.com",
        source="example.com",
        word_count=420,
    )
    fields.update(overrides)
    return Metadata(**fields)


class TestBuildFilename:
    def test_title_and_domain(self):
        assert build_filename(_metadata()) == "Hello Page - example.com.md"

    def test_unsafe_characters_removed(self):
        meta = _metadata(title='A: "quoted" / title?')
        assert build_filename(meta) == "A quoted title - example.com.md"

    def test_defaults(self):
        meta = _metadata(title="", domain="")
        assert build_filename(meta, ".json") == "untitled - web-clipper.json"


class TestFrontMatter:
    def test_required_fields(self):
        block = render_front_matter(_metadata(), saved_at=SAVED_AT)
        assert block == (
            "---\n"
            'title: "Hello Page"\n'
            'url: "https://example.com/hello"\n'
            'domain: "example.com"\n'
            'date_saved: "2026-01-02T03:04:05+00:00"\n'
            'word_count: "420"\n'
            'reading_time: "3 min"\n'
            "---\n\n"
        )

    def test_optional_fields_and_tags(self):
        meta = _metadata(
            author="Ada",
            published_date="2025-12-01",
            description='Says "hi"',
            tags=["python", "web"],
        )
        block = render_front_matter(meta, saved_at=SAVED_AT)
        assert 'author: "Ada"\n' in block
        assert 'date_published: "2025-12-01"\n' in block
        assert 'description: "Says \\"hi\\""\n' in block
        assert 'tags:\n  - "python"\n  - "web"\n---' in block

    def test_optional_fields_omitted(self):
        block = render_front_matter(_metadata(), saved_at=SAVED_AT)
        assert "author" not in block
        assert "tags" not in block


class TestSaveMarkdown:
    def test_creates_parent_directories(self, tmp_path):
        out = tmp_path / "nested" / "page.md"
        save_markdown("# Title\n", out)
        assert out.read_text(encoding="utf-8") == "# Title\n"

"""Tests for pagetomd.extract module."""

from bs4 import BeautifulSoup

from pagetomd.context import Extraction, Metadata
from pagetomd.extract import count_words, extract_metadata, extract_tags
from pagetomd.utils import domain_from_url, sanitize_filename


class TestTitle:
    def test_heuristic_title_first(self):
        html = '<html><head><title>Doc</title><meta property="og:title" content="OG"></head></html>'
        meta = extract_metadata(html, extraction=Extraction(title="Guess"))
        assert meta.title == "Guess"

    def test_og_title_before_document_title(self):
        html = '<html><head><title>Doc</title><meta property="og:title" content="OG"></head></html>'
        assert extract_metadata(html).title == "OG"

    def test_document_title(self):
        assert extract_metadata("<html><head><title> Doc </title></head></html>").title == "Doc"

    def test_untitled_default(self):
        assert extract_metadata("<p>x</p>").title == "Untitled"


class TestFields:
    def test_author_from_meta(self):
        html = '<html><head><meta name="author" content="Ada"></head></html>'
        assert extract_metadata(html).author == "Ada"

    def test_description_from_meta(self):
        html = '<html><head><meta name="description" content="About things"></head></html>'
        assert extract_metadata(html).description == "About things"

    def test_published_from_time_element(self):
        html = '<body><time datetime="2025-03-01T10:00:00Z">March 1</time></body>'
        assert extract_metadata(html).published_date == "2025-03-01T10:00:00Z"

    def test_published_meta_wins_over_time(self):
        html = (
            '<html><head><meta property="article:published_time" content="2024-01-01">'
            '</head><body><time datetime="2025-03-01">x</time></body></html>'
        )
        assert extract_metadata(html).published_date == "2024-01-01"

    def test_source_prefers_site_name(self):
        html = '<html><head><meta property="og:site_name" content="Example Blog"></head></html>'
        meta = extract_metadata(html, "https://www.example.com/post")
        assert meta.source == "Example Blog"
        assert meta.domain == "example.com"

    def test_source_falls_back_to_domain(self):
        meta = extract_metadata("<p>x</p>", "https://docs.example.org/a")
        assert meta.source == "docs.example.org"

    def test_missing_fields_are_none(self):
        meta = extract_metadata("<p>x</p>")
        assert meta.author is None
        assert meta.description is None
        assert meta.published_date is None
        assert meta.url == ""


class TestTags:
    def test_keywords_and_tag_links_deduplicated(self):
        html = (
            '<html><head><meta name="keywords" content="python, web ,python"></head>'
            '<body><div class="tags"><a>web</a><a>html</a></div>'
            '<a rel="tag" href="/t/css">css</a></body></html>'
        )
        soup = BeautifulSoup(html, "lxml")
        assert extract_tags(soup) == ["python", "web", "html", "css"]

    def test_capped_at_ten_in_first_seen_order(self):
        links = "".join(f"<a>tag{i}</a>" for i in range(15))
        soup = BeautifulSoup(f'<div class="tags">{links}</div>', "lxml")
        assert extract_tags(soup) == [f"tag{i}" for i in range(10)]


class TestWordCount:
    def test_counts_visible_text_only(self):
        html = (
            "<html><head><title>Not counted</title></head><body>"
            "<p>one two three</p><script>var a = 1;</script>"
            "<style>p { color: red }</style><!-- hidden words --><p>four</p>"
            "</body></html>"
        )
        assert count_words(BeautifulSoup(html, "lxml")) == 4

    def test_heuristic_count_used(self):
        meta = extract_metadata("<p>a b c</p>", extraction=Extraction(word_count=450))
        assert meta.word_count == 450
        assert meta.reading_time == 3

    def test_reading_time_rounds_up(self):
        meta = Metadata(title="t", url="", domain="", source="", word_count=201)
        assert meta.reading_time == 2
        assert Metadata(title="t", url="", domain="", source="").reading_time == 0


class TestUtils:
    def test_domain_strips_www(self):
        assert domain_from_url("https://www.example.com/path?q=1") == "example.com"
        assert domain_from_url("https://sub.example.com") == "sub.example.com"
        assert domain_from_url("") == ""

    def test_sanitize_filename(self):
        assert sanitize_filename('What is "AI"? A/B  tests') == "What is AI AB tests"
        assert sanitize_filename("x" * 150) == "x" * 100

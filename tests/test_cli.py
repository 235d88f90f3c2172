"""Tests for the pagetomd command line."""

import orjson
import pytest
from click.testing import CliRunner

import pagetomd.cli as cli_module
from pagetomd.cli import main
from pagetomd.convert import ConversionError

PAGE = (
    "<html><head><title>Hello Page</title></head><body>"
    "<h1>Hello</h1><p>Hello world.</p>"
    '<pre><code class="language-python">print("hi")</code></pre>'
    "</body></html>"
)


@pytest.fixture
def page_file(tmp_path):
    path = tmp_path / "page.html"
    path.write_text(PAGE, encoding="utf-8")
    return path


def _invoke(*args):
    return CliRunner().invoke(main, [str(arg) for arg in args])


class TestCli:
    def test_markdown_with_front_matter(self, page_file):
        result = _invoke(page_file, "--raw", "--url", "https://www.example.com/hello")
        assert result.exit_code == 0, result.output
        assert result.output.startswith("---\n")
        assert 'title: "Hello Page"' in result.output
        assert 'domain: "example.com"' in result.output
        assert "# Hello\n\nHello world." in result.output
        assert '```python\nprint("hi")\n```' in result.output

    def test_no_front_matter(self, page_file):
        result = _invoke(page_file, "--raw", "--no-front-matter")
        assert result.exit_code == 0, result.output
        assert result.output.startswith("# Hello")

    def test_json_format(self, page_file):
        result = _invoke(page_file, "--raw", "--format", "json", "--url", "https://example.com/x")
        assert result.exit_code == 0, result.output
        data = orjson.loads(result.output)
        assert data["metadata"]["title"] == "Hello Page"
        assert data["metadata"]["domain"] == "example.com"
        assert data["metadata"]["reading_time"] == 1
        assert "Hello world." in data["markdown"]

    def test_output_directory(self, page_file, tmp_path):
        out_dir = tmp_path / "notes"
        result = _invoke(page_file, "--raw", "--url", "https://example.com/hello", "-o", f"{out_dir}/")
        assert result.exit_code == 0, result.output
        saved = out_dir / "Hello Page - example.com.md"
        assert saved.exists()
        assert "Hello world." in saved.read_text(encoding="utf-8")

    def test_invalid_source(self):
        result = _invoke("not-a-url-or-file")
        assert result.exit_code == 1
        assert "Source must be a URL" in result.output

    def test_conversion_error_exits_nonzero(self, page_file, monkeypatch):
        def broken(html, url, options):
            raise ConversionError("Failed to convert page: boom")

        monkeypatch.setattr(cli_module, "page_to_markdown", broken)
        result = _invoke(page_file, "--raw")
        assert result.exit_code == 1
        assert "Failed to convert page: boom" in result.output

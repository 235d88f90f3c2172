"""pagetomd - convert web pages to clean markdown with front matter."""

from pagetomd.context import ConversionResult, ConvertOptions, Metadata
from pagetomd.convert import ConversionError, html_to_markdown, page_to_markdown

__version__ = "0.1.0"

__all__ = [
    "ConversionError",
    "ConversionResult",
    "ConvertOptions",
    "Metadata",
    "html_to_markdown",
    "page_to_markdown",
]

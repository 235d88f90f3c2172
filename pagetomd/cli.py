"""pagetomd CLI - Click command definition and main entry point."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
import httpx
import orjson
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from pagetomd.context import ConversionResult, ConvertOptions
from pagetomd.convert import ConversionError, page_to_markdown
from pagetomd.fetch import FetchResult, fetch_static
from pagetomd.output import build_filename, render_front_matter, save_bytes, save_markdown

console = Console(stderr=True)


@click.command()
@click.argument("source")
@click.option("-o", "--output", "output_path", type=click.Path(), default=None,
              help="Output file or directory. Omit for stdout.")
@click.option("--format", "output_format", type=click.Choice(["markdown", "json"]),
              default="markdown", help="Output format (default: markdown)")
@click.option("--url", "page_url", default=None,
              help="Page URL to record when SOURCE is a local file")
@click.option("--raw", is_flag=True, help="Disable boilerplate removal (readability)")
@click.option("--no-front-matter", is_flag=True, help="Omit the front matter block")
@click.option("--timeout", default=30, help="Fetch timeout in seconds")
@click.option("-v", "--verbose", is_flag=True, help="Verbose progress output")
@click.option("--debug", is_flag=True, help="Log conversion internals")
def main(
    source: str,
    output_path: str | None,
    output_format: str,
    page_url: str | None,
    raw: bool,
    no_front_matter: bool,
    timeout: int,
    verbose: bool,
    debug: bool,
):
    """Convert a web page to clean markdown with front matter.

    SOURCE can be a URL or a local HTML file.

    \b
    Examples:
        pagetomd https://example.com/article        # markdown to stdout
        pagetomd https://example.com -o notes/       # save "<title> - <domain>.md"
        pagetomd saved.html --url https://example.com/post
        pagetomd https://example.com --format json   # markdown + metadata as JSON
    """
    _configure_logging(verbose, debug)

    source_path = Path(source)
    is_file = source_path.exists() and source_path.is_file()
    is_url = source.startswith(("http://", "https://"))

    if not is_file and not is_url:
        raise click.ClickException(
            f"Source must be a URL (http/https) or existing file: {source}"
        )

    if is_file:
        html = source_path.read_text(encoding="utf-8", errors="replace")
        url = page_url or ""
    else:
        with Progress(
            SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
            console=console, transient=True,
        ) as progress:
            if verbose:
                progress.add_task(description="Fetching...", total=None)
            fetched = asyncio.run(_fetch(source, timeout))
        html = fetched.html
        url = page_url or fetched.url

    options = ConvertOptions(strip_boilerplate=not raw, debug=debug)
    try:
        result = page_to_markdown(html, url, options)
    except ConversionError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        meta = result.metadata
        console.print(
            f"[dim]{meta.title} - {meta.word_count} words, "
            f"{meta.reading_time} min read[/dim]"
        )

    _write_result(result, output_format, output_path, no_front_matter)


async def _fetch(url: str, timeout: int) -> FetchResult:
    try:
        try:
            return await fetch_static(url, timeout=timeout)
        except httpx.ConnectError as e:
            if "CERTIFICATE_VERIFY_FAILED" in str(e):
                console.print(
                    "[yellow]SSL verification failed, retrying without verification[/yellow]",
                )
                return await fetch_static(url, timeout=timeout, verify_ssl=False)
            raise
    except httpx.HTTPError as e:
        raise click.ClickException(f"Failed to fetch {url}: {e}") from e


def _write_result(
    result: ConversionResult,
    output_format: str,
    output_path: str | None,
    no_front_matter: bool,
) -> None:
    if output_format == "json":
        payload = {"markdown": result.markdown, "metadata": result.metadata.to_dict()}
        data = orjson.dumps(payload, option=orjson.OPT_INDENT_2)
        if output_path:
            out = _resolve_output(output_path, build_filename(result.metadata, ".json"))
            save_bytes(data, out)
            console.print(f"[green]Saved:[/green] {out}")
        else:
            click.echo(data.decode())
        return

    content = result.markdown
    if not no_front_matter:
        content = render_front_matter(result.metadata) + content

    if output_path:
        out = _resolve_output(output_path, build_filename(result.metadata))
        save_markdown(content, out)
        console.print(f"[green]Saved:[/green] {out}")
    else:
        click.echo(content)


def _resolve_output(output_path: str, filename: str) -> Path:
    out = Path(output_path)
    if out.is_dir() or output_path.endswith("/"):
        out.mkdir(parents=True, exist_ok=True)
        out = out / filename
    return out


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Send pagetomd log records to stderr at the requested level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger("pagetomd")
    logger.setLevel(level)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


if __name__ == "__main__":
    main()

"""Build ``pages.json`` from a repository's documentation tree.

:class:`DocModelBuilder` lists the markdown files under the configured docs
directory, fetches them through the run's content source, and parses each one
into a :class:`~illumina.models.Page`. Pages are keyed by a slug derived from
their docs-relative path and ordered by that path, so an unchanged docs tree
always yields the same file.

Example
-------
>>> from pathlib import Path
>>> from illumina.docs_model import DocModelBuilder
>>> from illumina.sources import LocalContentSource
>>> source = LocalContentSource(Path("."), docs_path="docs")  # doctest: +SKIP
>>> builder = DocModelBuilder(source, "docs")  # doctest: +SKIP
>>> document = builder.run(Path("data/pages.json"))  # doctest: +SKIP
>>> sorted(document.pages)  # doctest: +SKIP
['architecture', 'index']
"""

from __future__ import annotations

import asyncio
import posixpath
import sys
import typing as typ

from ._constants import DEFAULT_CONCURRENCY, DOC_SUFFIXES
from .concurrency import map_with_concurrency
from .config.models import DEFAULT_DOCS_PATH
from .markdown_parser import page_slug, parse_page, unique_slug
from .models import MermaidSection, Page, PagesDocument, dump_json
from .paths import clean_path
from .sources import ContentSourceError, build_content_source

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import BuildConfig
    from .sources import ContentSource


class DocsNotFoundError(RuntimeError):
    """Raised when the docs directory holds no markdown pages."""


class DocModelBuilder:
    """Parse every markdown page under a docs directory into the page model."""

    def __init__(
        self,
        source: ContentSource,
        docs_path: str = DEFAULT_DOCS_PATH,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.source = source
        self.docs_path = clean_path(docs_path)
        self.concurrency = concurrency

    def run(self, output_file: Path) -> PagesDocument:
        """Build the page model and write it to ``output_file``.

        Returns
        -------
        PagesDocument
            The document that was written.

        Raises
        ------
        DocsNotFoundError
            If no markdown files exist under the docs directory.
        ContentSourceError
            If the docs directory cannot be listed.
        """
        document = asyncio.run(self.build())
        dump_json(output_file, document)
        diagrams = sum(
            isinstance(section, MermaidSection)
            for page in document.pages.values()
            for section in page.sections
        )
        print(
            f"wrote {output_file} ({len(document.pages)} pages, {diagrams} diagrams)"
        )
        return document

    async def build(self) -> PagesDocument:
        """Return the page model without writing it."""
        paths = await self.source.list_files(self.docs_path, DOC_SUFFIXES)
        if not paths:
            msg = f"No markdown files found under '{self.docs_path or '.'}'."
            raise DocsNotFoundError(msg)

        texts = await map_with_concurrency(paths, self._fetch_page, self.concurrency)
        pages: dict[str, Page] = {}
        used: set[str] = set()
        for path, text in zip(paths, texts, strict=True):
            if text is None:
                continue
            slug = unique_slug(page_slug(self._docs_relative(path)), used)
            pages[slug] = parse_page(text, path=path, slug=slug)
            print(f"  {path} -> {slug}")
        return PagesDocument(pages=pages)

    async def _fetch_page(self, path: str) -> str | None:
        """Fetch one page; a page that vanished or failed is skipped, not fatal."""
        try:
            text = await self.source.fetch(path)
        except ContentSourceError as exc:
            print(f"  SKIPPED: {path} ({exc})", file=sys.stderr)
            return None
        if text is None:
            print(f"  SKIPPED: {path} (not found)", file=sys.stderr)
        return text

    def _docs_relative(self, path: str) -> str:
        if not self.docs_path:
            return path
        return posixpath.relpath(path, self.docs_path)


def build_pages(config: BuildConfig) -> PagesDocument:
    """Build ``pages.json`` for ``config`` using its selected content source."""
    source = build_content_source(config)
    try:
        return DocModelBuilder(source, config.docs_path).run(config.pages_file)
    finally:
        source.close()


__all__ = ["DocModelBuilder", "DocsNotFoundError", "build_pages"]

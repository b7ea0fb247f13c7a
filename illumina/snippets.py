"""Resolve every file referenced by a diagram node into ``source-files.json``.

The resolver reads ``pages.json``, collects the distinct ``file`` values of
all mermaid node references, fetches each file once through the run's
content source with a fixed number of fetches in flight, and writes one
record per path: the content with its line count and language, or a
``"File not found"`` record carrying only the language.

A missing or malformed ``pages.json`` stops the run before anything is
written. Once fetching starts, a file that is missing or fails to download is
recorded and reported, and the remaining files are still resolved.

Example
-------
>>> from pathlib import Path
>>> from illumina.snippets import SnippetResolver
>>> from illumina.sources import LocalContentSource
>>> resolver = SnippetResolver(LocalContentSource(Path(".")))  # doctest: +SKIP
>>> records = resolver.run(
...     Path("data/pages.json"), Path("data/source-files.json")
... )  # doctest: +SKIP
Found 2 unique source files referenced
  src/foo.go (go, 2 lines)
wrote data/source-files.json (2 source files, 1 missing)
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import sys
import typing as typ

import msgspec

from ._constants import DEFAULT_CONCURRENCY, MERMAID_SECTION
from .concurrency import map_with_concurrency
from .languages import detect_language
from .models import (
    MermaidSection,
    Page,
    PageSections,
    PagesIndex,
    ResolvedFile,
    dump_json,
)
from .sources import ContentSourceError, build_content_source

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import BuildConfig
    from .sources import ContentSource


class PagesFormatError(ValueError):
    """Raised when ``pages.json`` does not have the expected structure."""


def load_pages(pages_file: Path) -> dict[str, PageSections]:
    """Read the page model written by the docs stage.

    Raises
    ------
    FileNotFoundError
        If ``pages_file`` does not exist.
    PagesFormatError
        If the file cannot be read or is not JSON shaped like
        ``{"pages": {...}}``.
    """
    if not pages_file.exists():
        msg = f"Pages JSON '{pages_file}' not found. Run `illumina docs` first."
        raise FileNotFoundError(msg)
    try:
        payload = pages_file.read_bytes()
    except OSError as exc:
        msg = f"Pages JSON '{pages_file}' cannot be read: {exc}"
        raise PagesFormatError(msg) from exc
    try:
        index = msgspec.json.decode(payload, type=PagesIndex)
    except msgspec.DecodeError as exc:
        msg = f"Pages JSON '{pages_file}' is malformed: {exc}"
        raise PagesFormatError(msg) from exc
    return index.pages


def collect_file_paths(
    pages: cabc.Mapping[str, Page | PageSections],
) -> list[str]:
    """Return each distinct file referenced by a mermaid node, in first-seen order.

    Sections of any other type are ignored. An empty list is a valid result.

    Raises
    ------
    PagesFormatError
        If a mermaid section does not match the diagram section schema.
    """
    seen: set[str] = set()
    ordered: list[str] = []
    for slug, page in pages.items():
        for section in page.sections:
            diagram = _as_mermaid(slug, section)
            if diagram is None:
                continue
            for ref in diagram.node_files.values():
                if ref.file not in seen:
                    seen.add(ref.file)
                    ordered.append(ref.file)
    return ordered


class SnippetResolver:
    """Fetch and classify every source file the page model references."""

    concurrency = DEFAULT_CONCURRENCY

    def __init__(self, source: ContentSource) -> None:
        self.source = source

    def run(self, pages_file: Path, output_file: Path) -> dict[str, ResolvedFile]:
        """Resolve the files referenced by ``pages_file`` into ``output_file``.

        Returns
        -------
        dict[str, ResolvedFile]
            The records written, keyed by path in first-seen order.

        Raises
        ------
        FileNotFoundError
            If ``pages_file`` does not exist; nothing is written.
        PagesFormatError
            If ``pages_file`` is malformed; nothing is written.
        """
        paths = collect_file_paths(load_pages(pages_file))
        print(f"Found {len(paths)} unique source files referenced")
        resolved = asyncio.run(self.resolve(paths))
        dump_json(output_file, resolved)
        missing = sum(record.error is not None for record in resolved.values())
        print(
            f"wrote {output_file} ({len(resolved)} source files, {missing} missing)"
        )
        return resolved

    async def resolve(self, paths: cabc.Sequence[str]) -> dict[str, ResolvedFile]:
        """Return one record per path, fetching at most ``concurrency`` at once."""
        records = await map_with_concurrency(
            paths, self._resolve_file, self.concurrency
        )
        return dict(zip(paths, records, strict=True))

    async def _resolve_file(self, path: str) -> ResolvedFile:
        language = detect_language(path)
        try:
            content = await self.source.fetch(path)
        except ContentSourceError as exc:
            print(f"  FAILED: {path} ({exc})", file=sys.stderr)
            return ResolvedFile.missing(language)
        if content is None:
            print(f"  MISSING: {path}", file=sys.stderr)
            return ResolvedFile.missing(language)
        record = ResolvedFile.found(language, content)
        print(f"  {path} ({language}, {record.total_lines} lines)")
        return record


def extract_snippets(config: BuildConfig) -> dict[str, ResolvedFile]:
    """Resolve ``config.pages_file`` into ``config.source_files_file``."""
    source = build_content_source(config)
    try:
        return SnippetResolver(source).run(config.pages_file, config.source_files_file)
    finally:
        source.close()


def _as_mermaid(slug: str, section: object) -> MermaidSection | None:
    """Return ``section`` as a diagram section, or None for other section kinds."""
    if isinstance(section, MermaidSection):
        return section
    if not isinstance(section, dict) or section.get("type") != MERMAID_SECTION:
        return None
    try:
        return msgspec.convert(section, MermaidSection)
    except msgspec.ValidationError as exc:
        msg = f"Page '{slug}' has an invalid mermaid section: {exc}"
        raise PagesFormatError(msg) from exc


__all__ = [
    "PagesFormatError",
    "SnippetResolver",
    "collect_file_paths",
    "extract_snippets",
    "load_pages",
]

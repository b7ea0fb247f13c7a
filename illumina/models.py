"""Wire models shared by the page model builder and the snippet resolver.

Both ``pages.json`` and ``source-files.json`` are encoded from the
``msgspec`` structs below. Field names are snake_case in Python and camelCase
on the wire (``node_files`` becomes ``nodeFiles``), and optional anchor fields
are omitted when unset so the JSON stays compact.

Example
-------
>>> import msgspec
>>> from illumina.models import FileRef, MermaidSection
>>> section = MermaidSection(code="graph TD; A", node_files={"A": FileRef("a.go")})
>>> msgspec.json.encode(section)
b'{"type":"mermaid","code":"graph TD; A","nodeFiles":{"A":{"file":"a.go"}}}'
"""

from __future__ import annotations

import typing as typ

import msgspec

from ._constants import MARKDOWN_SECTION, MERMAID_SECTION, MISSING_FILE_ERROR

if typ.TYPE_CHECKING:
    from pathlib import Path


class FileRef(msgspec.Struct, rename="camel", omit_defaults=True):
    """Repository file a diagram node points at.

    Attributes
    ----------
    file : str
        Normalized, repository-relative POSIX path.
    symbol : str | None
        Symbol named after ``#`` in the click target, if any.
    start_line : int | None
        First line of an ``#L10-L20`` style anchor.
    end_line : int | None
        Last line of the anchor; equals ``start_line`` for ``#L10``.
    """

    file: str
    symbol: str | None = None
    start_line: int | None = None
    end_line: int | None = None


class MarkdownSection(
    msgspec.Struct, tag_field="type", tag=MARKDOWN_SECTION, rename="camel"
):
    """Prose between diagrams, kept as raw markdown."""

    content: str


class MermaidSection(
    msgspec.Struct, tag_field="type", tag=MERMAID_SECTION, rename="camel"
):
    """Diagram source plus the node-to-file bindings its click lines declared."""

    code: str = ""
    node_files: dict[str, FileRef] = msgspec.field(default_factory=dict)


Section = MarkdownSection | MermaidSection


class Page(msgspec.Struct, rename="camel"):
    """A documentation page and its ordered sections."""

    slug: str
    title: str
    path: str
    sections: list[Section] = msgspec.field(default_factory=list)


class PagesDocument(msgspec.Struct):
    """Top-level shape of ``pages.json``."""

    pages: dict[str, Page] = msgspec.field(default_factory=dict)


class PageSections(msgspec.Struct):
    """Lenient page view used by the resolver.

    Sections stay untyped so kinds the resolver does not know about pass
    through without failing validation.
    """

    sections: list[dict[str, typ.Any]] = msgspec.field(default_factory=list)


class PagesIndex(msgspec.Struct):
    """Lenient view of ``pages.json`` keyed by page slug."""

    pages: dict[str, PageSections]


class ResolvedFile(msgspec.Struct, rename="camel", omit_defaults=True):
    """Entry written to ``source-files.json`` for one referenced path.

    A resolved entry carries ``total_lines`` and ``content``; an unresolved
    one carries ``error`` instead. ``language`` is always present.
    """

    language: str
    total_lines: int | None = None
    content: str | None = None
    error: str | None = None

    @classmethod
    def found(cls, language: str, content: str) -> ResolvedFile:
        """Build a success record, counting the lines of ``content``."""
        return cls(
            language=language, total_lines=count_lines(content), content=content
        )

    @classmethod
    def missing(cls, language: str) -> ResolvedFile:
        """Build the not-found record for a path."""
        return cls(language=language, error=MISSING_FILE_ERROR)


def count_lines(content: str) -> int:
    """Return the number of newline-delimited lines in ``content``.

    A trailing newline terminates the last line rather than starting a new
    one, so ``"a\\nb\\n"`` and ``"a\\nb"`` both count two lines.
    """
    if not content:
        return 0
    newlines = content.count("\n")
    return newlines if content.endswith("\n") else newlines + 1


def dump_json(path: Path, payload: object) -> Path:
    """Write ``payload`` to ``path`` as indented JSON, replacing any old file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = msgspec.json.format(msgspec.json.encode(payload), indent=2)
    path.write_bytes(encoded + b"\n")
    return path


__all__ = [
    "FileRef",
    "MarkdownSection",
    "MermaidSection",
    "Page",
    "PageSections",
    "PagesDocument",
    "PagesIndex",
    "ResolvedFile",
    "Section",
    "count_lines",
    "dump_json",
]

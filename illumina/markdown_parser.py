r"""Parse documentation markdown into pages of prose and diagram sections.

Fenced ``mermaid`` blocks become diagram sections; the markdown between them
is kept as prose sections. Inside each diagram, ``click`` directives whose
target is a repository path are lifted out of the diagram source and recorded
as node-to-file references, so the site can show the code behind each node.

Example
-------
>>> from illumina.markdown_parser import parse_sections
>>> text = '# Demo\n```mermaid\ngraph TD\n  A\n  click A "src/a.go#L3-L9"\n```\n'
>>> sections = parse_sections(text)
>>> sections[1].node_files["A"].file, sections[1].node_files["A"].start_line
('src/a.go', 3)
"""

from __future__ import annotations

import posixpath
import re
from textwrap import dedent

from .models import FileRef, MarkdownSection, MermaidSection, Page, Section
from .paths import clean_path, within_root

MERMAID_BLOCK_PATTERN = re.compile(
    r"^[ ]{0,3}(?P<fence>`{3,}|~{3,})[ \t]*mermaid\b[^\n]*\n"
    r"(?P<body>.*?)"
    r"^[ ]{0,3}(?P=fence)[`~]*[ \t]*(?:\n|\Z)",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)
FENCED_BLOCK_PATTERN = re.compile(
    r"^[ ]{0,3}(?P<fence>`{3,}|~{3,}).*?^[ ]{0,3}(?P=fence)[`~]*[ \t]*$",
    re.MULTILINE | re.DOTALL,
)
TITLE_PATTERN = re.compile(r"^#[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
CLICK_PATTERN = re.compile(
    r'^[ \t]*click[ \t]+(?P<node>[^\s"]+)[ \t]+(?:href[ \t]+)?'
    r'"(?P<target>[^"]*)"(?P<rest>.*)$'
)
URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
LINE_ANCHOR_PATTERN = re.compile(r"^L(\d+)(?:-L?(\d+))?$", re.IGNORECASE)
INDEX_STEMS = frozenset({"readme", "index"})


def parse_page(markdown_text: str, *, path: str, slug: str) -> Page:
    """Build a Page for the markdown stored at repository path ``path``.

    Parameters
    ----------
    markdown_text : str
        Raw page markdown.
    path : str
        Repository-relative location of the page, used for the fallback title
        and to resolve ``../`` click targets.
    slug : str
        Unique identifier already chosen for the page.

    Returns
    -------
    Page
        Page with its title and ordered sections.
    """
    text = _normalize_newlines(markdown_text)
    title = _extract_title(text) or _title_from_path(path)
    sections = parse_sections(text, page_dir=posixpath.dirname(path))
    return Page(slug=slug, title=title, path=path, sections=sections)


def parse_sections(markdown_text: str, *, page_dir: str = "") -> list[Section]:
    """Split markdown into prose and mermaid sections in document order.

    Blank prose between diagrams is dropped. Returns an empty list for empty
    input.
    """
    text = _normalize_newlines(markdown_text)
    sections: list[Section] = []
    cursor = 0
    for match in MERMAID_BLOCK_PATTERN.finditer(text):
        _append_prose(sections, text[cursor : match.start()])
        body = dedent(match.group("body"))
        sections.append(parse_mermaid(body, page_dir=page_dir))
        cursor = match.end()
    _append_prose(sections, text[cursor:])
    return sections


def parse_mermaid(code: str, *, page_dir: str = "") -> MermaidSection:
    """Extract file-bound click directives from a mermaid diagram.

    Click lines that point at repository files are removed from the returned
    diagram source and recorded in ``node_files``; when a node is bound more
    than once the last directive wins. URL links and callback directives stay
    in the diagram untouched.
    """
    kept: list[str] = []
    node_files: dict[str, FileRef] = {}
    for line in code.splitlines():
        match = CLICK_PATTERN.match(line)
        if match:
            ref = parse_click_target(match.group("target"), page_dir)
            if ref is not None:
                node_files[match.group("node")] = ref
                continue
        kept.append(line)
    return MermaidSection(code="\n".join(kept).strip("\n"), node_files=node_files)


def parse_click_target(target: str, page_dir: str = "") -> FileRef | None:
    """Return the FileRef a click target names, or None for ordinary links.

    ``src/app.py#L10-L20`` yields a line range, ``src/app.py#main`` a symbol.
    Targets with a URL scheme, protocol-relative URLs and bare fragments are
    links, not file references. ``../`` targets are resolved against
    ``page_dir`` when that keeps them inside the repository.
    """
    candidate = target.strip()
    if (
        not candidate
        or candidate.startswith(("#", "//"))
        or URL_SCHEME_PATTERN.match(candidate)
    ):
        return None

    raw_path, _, anchor = candidate.partition("#")
    file = clean_path(raw_path)
    if not file:
        return None
    if file.startswith("../") and page_dir:
        joined = posixpath.normpath(posixpath.join(clean_path(page_dir), file))
        if within_root(joined):
            file = joined

    anchor = anchor.strip()
    line_match = LINE_ANCHOR_PATTERN.match(anchor)
    if line_match:
        first = int(line_match.group(1))
        last = int(line_match.group(2) or first)
        return FileRef(
            file=file, start_line=min(first, last), end_line=max(first, last)
        )
    return FileRef(file=file, symbol=anchor or None)


def page_slug(relative_path: str) -> str:
    """Derive a slug from a docs-relative markdown path.

    ``README``/``index`` pages take their directory's name, or ``index`` at
    the top of the docs tree.
    """
    directory, filename = posixpath.split(clean_path(relative_path))
    stem = posixpath.splitext(filename)[0]
    parts = [part for part in directory.split("/") if part]
    if stem.lower() not in INDEX_STEMS:
        parts.append(stem)
    if not parts:
        return "index"
    slug = re.sub(r"[^a-z0-9]+", "-", "/".join(parts).lower()).strip("-")
    return slug or "page"


def unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def _append_prose(sections: list[Section], chunk: str) -> None:
    content = chunk.strip("\n")
    if content.strip():
        sections.append(MarkdownSection(content=content))


def _extract_title(text: str) -> str | None:
    """Return the first level-one heading outside fenced code blocks."""
    match = TITLE_PATTERN.search(FENCED_BLOCK_PATTERN.sub("", text))
    if not match:
        return None
    return _clean_heading(match.group(1)) or None


def _title_from_path(path: str) -> str:
    directory, filename = posixpath.split(clean_path(path))
    stem = posixpath.splitext(filename)[0]
    if stem.lower() in INDEX_STEMS:
        stem = posixpath.basename(directory) or "Overview"
    return re.sub(r"[-_]+", " ", stem).strip().title() or "Overview"


def _clean_heading(text: str) -> str:
    """Return a cleaned heading, removing escapes and whitespace."""
    return text.replace("\\", "").strip()


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


__all__ = [
    "CLICK_PATTERN",
    "MERMAID_BLOCK_PATTERN",
    "page_slug",
    "parse_click_target",
    "parse_mermaid",
    "parse_page",
    "parse_sections",
    "unique_slug",
]

r"""Repository-relative path handling shared by the parser and content sources.

Click targets, local reads, and raw GitHub URLs all use the same path strings,
so they are cleaned the same way everywhere: backslashes become ``/``, leading
slashes and ``./`` segments are dropped, and ``..`` segments are collapsed with
POSIX semantics.

Example
-------
>>> from illumina.paths import candidate_paths, clean_path
>>> clean_path(".\\src\\main.go")
'src/main.go'
>>> candidate_paths("../src/main.go", "docs")
['src/main.go']
"""

from __future__ import annotations

import posixpath


def clean_path(path: str) -> str:
    """Return ``path`` as a normalized POSIX path, or ``""`` when it is empty.

    Leading ``..`` segments are preserved; :func:`within_root` decides whether
    the result may be read.
    """
    text = path.strip().replace("\\", "/").lstrip("/")
    if not text:
        return ""
    normalized = posixpath.normpath(text)
    return "" if normalized == "." else normalized


def within_root(path: str) -> bool:
    """Return True when a cleaned path stays inside the repository root."""
    return bool(path) and path != ".." and not path.startswith("../")


def candidate_paths(path: str, docs_path: str | None = None) -> list[str]:
    """Return the repository-relative locations to try for ``path``, in order.

    The path is tried relative to the repository root first, then relative to
    ``docs_path``. Locations that escape the root are omitted.
    """
    candidates: list[str] = []
    primary = clean_path(path)
    if within_root(primary):
        candidates.append(primary)
    docs_dir = clean_path(docs_path or "")
    if docs_dir:
        relative = clean_path(path)
        if relative:
            joined = posixpath.normpath(posixpath.join(docs_dir, relative))
            if within_root(joined) and joined not in candidates:
                candidates.append(joined)
    return candidates


__all__ = ["candidate_paths", "clean_path", "within_root"]

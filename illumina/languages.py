"""Map source file paths to highlighting language tags.

Example
-------
>>> from illumina.languages import detect_language
>>> detect_language("src/foo.go")
'go'
>>> detect_language("notes/todo.unknownext")
'text'
"""

from __future__ import annotations

import posixpath

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

from ._constants import FALLBACK_LANGUAGE

FILENAME_LANGUAGES: dict[str, str] = {
    "dockerfile": "docker",
    "makefile": "makefile",
    "gemfile": "ruby",
    "rakefile": "ruby",
    "justfile": "makefile",
    "cmakelists.txt": "cmake",
}

EXTENSION_LANGUAGES: dict[str, str] = {
    ".go": "go",
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".tsx": "tsx",
    ".rs": "rust",
    ".rb": "ruby",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".swift": "swift",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".php": "php",
    ".ex": "elixir",
    ".exs": "elixir",
    ".erl": "erlang",
    ".lua": "lua",
    ".dart": "dart",
    ".r": "r",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "bash",
    ".sql": "sql",
    ".graphql": "graphql",
    ".proto": "protobuf",
    ".tf": "hcl",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".vue": "vue",
    ".svelte": "svelte",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".xml": "xml",
    ".md": "markdown",
    ".markdown": "markdown",
}


def detect_language(path: str) -> str:
    """Return the language tag used to highlight the file at ``path``.

    The lookup is a pure function of the path: exact file names first, then
    the lower-cased extension, then Pygments' filename patterns. Paths nothing
    recognizes map to ``"text"``.
    """
    name = posixpath.basename(path.replace("\\", "/"))
    lowered = name.lower()
    if lowered in FILENAME_LANGUAGES:
        return FILENAME_LANGUAGES[lowered]

    _stem, ext = posixpath.splitext(lowered)
    if ext in EXTENSION_LANGUAGES:
        return EXTENSION_LANGUAGES[ext]

    if not name:
        return FALLBACK_LANGUAGE
    try:
        lexer = get_lexer_for_filename(name)
    except ClassNotFound:
        return FALLBACK_LANGUAGE
    return lexer.aliases[0] if lexer.aliases else FALLBACK_LANGUAGE


__all__ = ["EXTENSION_LANGUAGES", "FILENAME_LANGUAGES", "detect_language"]

"""Common literal values used across illumina.

These constants keep artifact filenames, section tags, and pipeline limits
centralized so the builders, the resolver, and tests import the same values
without drifting.

Examples
--------
>>> from illumina import _constants
>>> _constants.SOURCE_FILES_FILENAME
'source-files.json'
>>> _constants.DEFAULT_CONCURRENCY
10
"""

PAGES_FILENAME = "pages.json"
SOURCE_FILES_FILENAME = "source-files.json"

MARKDOWN_SECTION = "markdown"
MERMAID_SECTION = "mermaid"

MISSING_FILE_ERROR = "File not found"
FALLBACK_LANGUAGE = "text"

DEFAULT_CONCURRENCY = 10
DOC_SUFFIXES = (".md", ".markdown")

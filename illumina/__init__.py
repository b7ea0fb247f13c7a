"""Extract diagram-linked source snippets from markdown documentation.

This package builds the JSON data behind an illumina documentation site:
``pages.json`` (pages split into prose and mermaid sections, with each
diagram node's ``click`` target recorded as a file reference) and
``source-files.json`` (the content and language of every referenced file).

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from illumina import main
>>> main(["build", "--repo-root", "."])  # doctest: +SKIP
>>> from illumina import app
>>> callable(app)
True
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]

"""Cyclopts CLI entrypoint for the illumina extraction stages.

The ``illumina`` console script builds the JSON data a documentation site is
rendered from. ``illumina docs`` parses the markdown docs into
``pages.json``, ``illumina snippets`` resolves every diagram file reference
into ``source-files.json``, and ``illumina build`` runs both in order. Options
can also be supplied through ``ILLUMINA_*`` environment variables, and the
usual ``LOCAL_REPO_ROOT``/``GITHUB_REPOSITORY`` variables are honoured by the
configuration loader.

Examples
--------
Build both artifacts from the current working copy:

>>> from illumina.cli import main
>>> main(["build", "--repo-root", "."])  # doctest: +SKIP

Resolve snippets from GitHub into a custom data directory:

>>> from illumina.cli import app
>>> app(
...     ["snippets", "--repo", "owner/name", "--data-dir", "site/data"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import BuildConfig, BuildConfigError, load_build_config
from .docs_model import DocsNotFoundError, build_pages
from .snippets import PagesFormatError, extract_snippets
from .sources import ContentSourceError

FATAL_ERRORS = (
    BuildConfigError,
    ContentSourceError,
    DocsNotFoundError,
    FileNotFoundError,
    PagesFormatError,
)

app = App(name="illumina", config=cyclopts.config.Env("ILLUMINA_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path | None, Parameter(help="Optional YAML build configuration")
]
RepoRootOption = typ.Annotated[
    Path | None, Parameter(help="Local working copy to read files from")
]
DocsPathOption = typ.Annotated[
    str | None, Parameter(help="Documentation directory inside the repository")
]
RepoOption = typ.Annotated[
    str | None, Parameter(help="GitHub repository (owner/name) for remote reads")
]
BranchOption = typ.Annotated[
    str | None, Parameter(help="Branch or ref for remote reads")
]
DataDirOption = typ.Annotated[
    Path | None, Parameter(help="Directory receiving the JSON artifacts")
]


def _load_config(
    config: Path | None,
    *,
    repo_root: Path | None,
    docs_path: str | None,
    repo: str | None,
    branch: str | None,
    data_dir: Path | None,
) -> BuildConfig:
    """Merge CLI options over the YAML file and environment."""
    return load_build_config(
        config,
        overrides={
            "repo_root": repo_root,
            "docs_path": docs_path,
            "repo": repo,
            "branch": branch,
            "data_dir": data_dir,
        },
    )


@app.command(help="Parse the markdown docs into pages.json.")
def docs(
    *,
    config: ConfigOption = None,
    repo_root: RepoRootOption = None,
    docs_path: DocsPathOption = None,
    repo: RepoOption = None,
    branch: BranchOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Build the page model for the configured documentation tree.

    Raises
    ------
    BuildConfigError
        If no content source can be selected.
    DocsNotFoundError
        If the docs directory contains no markdown files.
    """
    build_config = _load_config(
        config,
        repo_root=repo_root,
        docs_path=docs_path,
        repo=repo,
        branch=branch,
        data_dir=data_dir,
    )
    build_pages(build_config)


@app.command(help="Resolve diagram file references into source-files.json.")
def snippets(
    *,
    config: ConfigOption = None,
    repo_root: RepoRootOption = None,
    docs_path: DocsPathOption = None,
    repo: RepoOption = None,
    branch: BranchOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Fetch every file referenced by ``pages.json`` and record its content.

    Raises
    ------
    FileNotFoundError
        If ``pages.json`` has not been generated yet.
    PagesFormatError
        If ``pages.json`` is malformed.
    """
    build_config = _load_config(
        config,
        repo_root=repo_root,
        docs_path=docs_path,
        repo=repo,
        branch=branch,
        data_dir=data_dir,
    )
    extract_snippets(build_config)


@app.command(help="Run the docs and snippets stages in sequence.")
def build(
    *,
    config: ConfigOption = None,
    repo_root: RepoRootOption = None,
    docs_path: DocsPathOption = None,
    repo: RepoOption = None,
    branch: BranchOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Build ``pages.json`` and then ``source-files.json`` from one configuration."""
    build_config = _load_config(
        config,
        repo_root=repo_root,
        docs_path=docs_path,
        repo=repo,
        branch=branch,
        data_dir=data_dir,
    )
    print("[1/2] Parsing docs")
    build_pages(build_config)
    print("[2/2] Extracting source snippets")
    extract_snippets(build_config)


def main(tokens: list[str] | None = None) -> None:
    """Invoke the Cyclopts application behind the ``illumina`` console command.

    Fatal setup errors (bad configuration, missing or malformed
    ``pages.json``, an empty docs tree) are reported on stderr and end the
    process with exit status 1.

    Examples
    --------
    >>> main(["snippets", "--repo-root", "."])  # doctest: +SKIP
    """
    try:
        app(tokens)
    except FATAL_ERRORS as exc:
        print(f"illumina: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()

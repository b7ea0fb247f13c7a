"""Typed configuration consumed by both extraction stages."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from .._constants import PAGES_FILENAME, SOURCE_FILES_FILENAME

DEFAULT_DOCS_PATH = "docs"
DEFAULT_BRANCH = "main"
DEFAULT_DATA_DIR = Path("data")


class BuildConfigError(ValueError):
    """Raised when the build configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class BuildConfig:
    """Where documentation and source files come from, and where JSON goes.

    Attributes
    ----------
    repo_root : Path | None
        Local working copy. When set, every read happens on disk and the
        GitHub settings are ignored.
    docs_path : str
        Repository-relative documentation directory.
    repo : str | None
        ``owner/name`` slug used for remote reads.
    branch : str
        Branch (or ``refs/...`` ref) used for remote reads.
    token : str | None
        Optional GitHub token for private repositories and rate limits.
    data_dir : Path
        Directory receiving ``pages.json`` and ``source-files.json``.
    """

    repo_root: Path | None = None
    docs_path: str = DEFAULT_DOCS_PATH
    repo: str | None = None
    branch: str = DEFAULT_BRANCH
    token: str | None = None
    data_dir: Path = DEFAULT_DATA_DIR

    @property
    def is_local(self) -> bool:
        """Return True when reads should come from the local working copy."""
        return self.repo_root is not None

    @property
    def pages_file(self) -> Path:
        """Return the path of the page model artifact."""
        return self.data_dir / PAGES_FILENAME

    @property
    def source_files_file(self) -> Path:
        """Return the path of the resolved source files artifact."""
        return self.data_dir / SOURCE_FILES_FILENAME

    def validate(self) -> BuildConfig:
        """Check that the configuration can select a content source.

        Returns
        -------
        BuildConfig
            ``self``, to allow chaining after construction.

        Raises
        ------
        BuildConfigError
            If neither a local root nor a repository is configured, or the
            repository slug is not in ``owner/name`` form.
        """
        if self.repo_root is None and not self.repo:
            msg = "Configure either a local repository root or a GitHub repository."
            raise BuildConfigError(msg)
        if self.repo is not None:
            owner, _, name = self.repo.partition("/")
            if not owner or not name or "/" in name:
                msg = f"Repository '{self.repo}' must use the 'owner/name' form."
                raise BuildConfigError(msg)
        return self


__all__ = [
    "DEFAULT_BRANCH",
    "DEFAULT_DATA_DIR",
    "DEFAULT_DOCS_PATH",
    "BuildConfig",
    "BuildConfigError",
]

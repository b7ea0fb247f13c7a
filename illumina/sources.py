"""Read documentation and source files from a working copy or from GitHub.

Both extraction stages read through a :class:`ContentSource`. The source is
picked once per run by :func:`build_content_source`: a configured local
repository root wins, otherwise files are downloaded from
``raw.githubusercontent.com`` and directory listings come from the GitHub git
tree API via ``github3.py``.

``fetch`` returns ``None`` when a file does not exist; that is an expected
outcome, not an error. Transport problems raise :class:`ContentSourceError`.
Blocking work runs in worker threads so many fetches can be awaited at once.

Example
-------
>>> import asyncio
>>> from pathlib import Path
>>> from illumina.sources import LocalContentSource
>>> source = LocalContentSource(Path("."), docs_path="docs")  # doctest: +SKIP
>>> asyncio.run(source.fetch("README.md"))  # doctest: +SKIP
'# Project...'
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import posixpath
import typing as typ
from http import HTTPStatus
from pathlib import Path

import requests
from github3 import GitHub
from github3 import exceptions as gh_exc
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ._constants import DEFAULT_CONCURRENCY, DOC_SUFFIXES
from .config.models import DEFAULT_BRANCH, DEFAULT_DOCS_PATH
from .paths import candidate_paths, clean_path

if typ.TYPE_CHECKING:
    from .config import BuildConfig

RAW_CONTENT_BASE = "https://raw.githubusercontent.com"


class ContentSourceError(RuntimeError):
    """Raised when a content source cannot be reached or answers unexpectedly."""


class ContentSource(typ.Protocol):
    """Anything that can fetch repository files by relative path."""

    async def fetch(self, path: str) -> str | None:
        """Return the file content, or ``None`` when the file does not exist."""
        ...

    async def list_files(
        self, directory: str, suffixes: cabc.Sequence[str] = DOC_SUFFIXES
    ) -> list[str]:
        """Return sorted repository-relative paths below ``directory``."""
        ...

    def close(self) -> None:
        """Release any resources held by the source."""
        ...


class LocalContentSource:
    """Serve files from a checked-out working copy."""

    def __init__(self, repo_root: Path, docs_path: str = DEFAULT_DOCS_PATH) -> None:
        self.repo_root = repo_root
        self.docs_path = docs_path
        self._resolved_root = repo_root.resolve()

    async def fetch(self, path: str) -> str | None:
        """Read ``path`` from the working copy without blocking the event loop."""
        return await asyncio.to_thread(self._read, path)

    async def list_files(
        self, directory: str, suffixes: cabc.Sequence[str] = DOC_SUFFIXES
    ) -> list[str]:
        """Return files below ``directory`` whose suffix is in ``suffixes``."""
        return await asyncio.to_thread(self._walk, directory, tuple(suffixes))

    def close(self) -> None:
        """Nothing to release for on-disk reads."""

    def _read(self, path: str) -> str | None:
        for candidate in candidate_paths(path, self.docs_path):
            target = self.repo_root / candidate
            try:
                if not target.is_file() or not self._inside_root(target):
                    continue
                return target.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                msg = f"Failed to read '{candidate}' from {self.repo_root}: {exc}"
                raise ContentSourceError(msg) from exc
        return None

    def _walk(self, directory: str, suffixes: tuple[str, ...]) -> list[str]:
        base = self.repo_root / clean_path(directory)
        lowered = tuple(suffix.lower() for suffix in suffixes)
        try:
            if not base.is_dir():
                return []
            found = [
                path.relative_to(self.repo_root).as_posix()
                for path in base.rglob("*")
                if not _is_hidden(path.relative_to(base))
                and path.is_file()
                and path.suffix.lower() in lowered
            ]
        except OSError as exc:
            msg = f"Failed to list '{directory}' in {self.repo_root}: {exc}"
            raise ContentSourceError(msg) from exc
        return sorted(found)

    def _inside_root(self, target: Path) -> bool:
        """Reject symlinks that point outside the working copy."""
        return target.resolve().is_relative_to(self._resolved_root)


class GitHubContentSource:
    """Serve files from a GitHub repository at a branch or ref.

    File bodies are downloaded from ``raw.githubusercontent.com`` through a
    shared ``requests.Session`` with bounded retries on server errors.
    Listings use the git tree API through a lazily created ``github3`` client.
    """

    def __init__(
        self,
        repo: str,
        *,
        ref: str = DEFAULT_BRANCH,
        docs_path: str = DEFAULT_DOCS_PATH,
        token: str | None = None,
        session: requests.Session | None = None,
        github: GitHub | None = None,
        timeout: float = 30.0,
        raw_base: str = RAW_CONTENT_BASE,
    ) -> None:
        """Initialise the source for ``owner/name`` at ``ref``.

        Parameters
        ----------
        repo : str
            Repository identifier in ``owner/name`` form.
        ref : str, optional
            Branch name, or a full ``refs/...`` ref. Defaults to ``"main"``.
        docs_path : str, optional
            Documentation directory used as the second lookup location.
        token : str | None, optional
            GitHub token sent as a bearer ``Authorization`` header and used
            for the API client.
        session : requests.Session, optional
            Preconfigured session; a retrying session is built when omitted.
        github : GitHub, optional
            Preconfigured ``github3`` client used for listings.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``30.0``.
        raw_base : str, optional
            Base URL for raw file downloads.
        """
        self.repo = repo.strip()
        self.ref = ref
        self.docs_path = docs_path
        self.timeout = timeout
        self._token = token
        self._raw_base = raw_base.rstrip("/")
        self._session = session or _build_session()
        self._github_client = github
        self._headers = {"User-Agent": "illumina/0.1"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    async def fetch(self, path: str) -> str | None:
        """Download ``path`` without blocking the event loop."""
        return await asyncio.to_thread(self._download, path)

    async def list_files(
        self, directory: str, suffixes: cabc.Sequence[str] = DOC_SUFFIXES
    ) -> list[str]:
        """Return repository files below ``directory`` with a matching suffix."""
        return await asyncio.to_thread(self._list_tree, directory, tuple(suffixes))

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._session.close()

    def raw_url(self, path: str) -> str:
        """Return the raw download URL for a cleaned repository path."""
        ref_segment = self.ref
        if not ref_segment.startswith("refs/"):
            ref_segment = f"refs/heads/{ref_segment}"
        return f"{self._raw_base}/{self.repo}/{ref_segment}/{path}"

    def _download(self, path: str) -> str | None:
        for candidate in candidate_paths(path, self.docs_path):
            url = self.raw_url(candidate)
            try:
                response = self._session.get(
                    url, headers=self._headers, timeout=self.timeout
                )
            except requests.RequestException as exc:
                msg = f"Failed to download '{candidate}' from {self.repo}: {exc}"
                raise ContentSourceError(msg) from exc

            if response.status_code == HTTPStatus.NOT_FOUND:
                continue
            if response.status_code >= HTTPStatus.BAD_REQUEST:
                msg = (
                    f"Download of '{candidate}' from {self.repo} failed with "
                    f"status {response.status_code}"
                )
                raise ContentSourceError(msg)
            return response.text
        return None

    def _github(self) -> GitHub:
        """Return a cached github3.py client, authenticated when a token is set."""
        if self._github_client is None:
            self._github_client = GitHub(token=self._token)
        return self._github_client

    def _list_tree(self, directory: str, suffixes: tuple[str, ...]) -> list[str]:
        owner, _, name = self.repo.partition("/")
        prefix = clean_path(directory)
        lowered = tuple(suffix.lower() for suffix in suffixes)
        try:
            repository = self._github().repository(owner, name)
            tree = repository.tree(_tree_sha(self.ref), recursive=True)
        except gh_exc.GitHubException as exc:
            msg = f"Failed to list '{prefix or '/'}' in {self.repo}@{self.ref}: {exc}"
            raise ContentSourceError(msg) from exc

        found: list[str] = []
        for entry in tree.tree:
            if entry.type != "blob":
                continue
            entry_path = entry.path
            if prefix and not entry_path.startswith(f"{prefix}/"):
                continue
            if posixpath.splitext(entry_path)[1].lower() in lowered:
                found.append(entry_path)
        return sorted(found)


def build_content_source(
    config: BuildConfig,
) -> LocalContentSource | GitHubContentSource:
    """Return the content source selected by ``config``.

    A local repository root takes precedence; otherwise the configured GitHub
    repository is used. The choice holds for the whole run.
    """
    if config.repo_root is not None:
        return LocalContentSource(config.repo_root, docs_path=config.docs_path)
    if not config.repo:
        msg = "A GitHub repository is required when no local root is configured."
        raise ContentSourceError(msg)
    return GitHubContentSource(
        config.repo,
        ref=config.branch,
        docs_path=config.docs_path,
        token=config.token,
    )


def _build_session() -> requests.Session:
    """Return a session that retries idempotent requests on server errors."""
    session = requests.Session()
    retry = Retry(
        total=5,
        read=5,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry, pool_maxsize=DEFAULT_CONCURRENCY)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _is_hidden(relative: Path) -> bool:
    """Return True when any segment of ``relative`` starts with a dot."""
    return any(part.startswith(".") for part in relative.parts)


def _tree_sha(ref: str) -> str:
    """Strip ``refs/heads/`` or ``refs/tags/`` so the tree API accepts the ref."""
    for prefix in ("refs/heads/", "refs/tags/"):
        if ref.startswith(prefix):
            return ref[len(prefix) :]
    return ref


__all__ = [
    "RAW_CONTENT_BASE",
    "ContentSource",
    "ContentSourceError",
    "GitHubContentSource",
    "LocalContentSource",
    "build_content_source",
]

"""Shared fixtures for the illumina test suite.

``memory_source`` builds an in-memory content source that records every fetch
and tracks how many fetches are in flight at once, which lets tests check the
concurrency bound without touching the network or the filesystem. The
environment is scrubbed of the variables the configuration loader reads so
tests never pick up the developer's shell settings.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import os
import typing as typ

import pytest

from illumina._constants import DOC_SUFFIXES
from illumina.config.loader import ENV_VARS


class InMemorySource:
    """Content source double serving files from a dict."""

    def __init__(
        self,
        files: cabc.Mapping[str, str],
        *,
        delay: float = 0.0,
        failures: cabc.Mapping[str, Exception] | None = None,
    ) -> None:
        self.files = dict(files)
        self.delay = delay
        self.failures = dict(failures or {})
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch(self, path: str) -> str | None:
        self.calls.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if path in self.failures:
                raise self.failures[path]
            return self.files.get(path)
        finally:
            self.in_flight -= 1

    async def list_files(
        self, directory: str, suffixes: cabc.Sequence[str] = DOC_SUFFIXES
    ) -> list[str]:
        prefix = f"{directory}/" if directory else ""
        return sorted(
            path
            for path in self.files
            if path.startswith(prefix) and path.endswith(tuple(suffixes))
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_source() -> typ.Callable[..., InMemorySource]:
    """Return a factory for in-memory content sources."""

    def _factory(
        files: cabc.Mapping[str, str] | None = None, **kwargs: typ.Any
    ) -> InMemorySource:
        return InMemorySource(files or {}, **kwargs)

    return _factory


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables inherited from the calling shell."""
    for names in ENV_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    for name in [key for key in os.environ if key.startswith("ILLUMINA_")]:
        monkeypatch.delenv(name, raising=False)

"""Assemble a BuildConfig from YAML, the environment, and explicit overrides."""

from __future__ import annotations

import collections.abc as cabc
import os
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .models import (
    DEFAULT_BRANCH,
    DEFAULT_DATA_DIR,
    DEFAULT_DOCS_PATH,
    BuildConfig,
    BuildConfigError,
)

CONFIG_KEYS = ("repo_root", "docs_path", "repo", "branch", "data_dir")

ENV_VARS: dict[str, tuple[str, ...]] = {
    "repo_root": ("LOCAL_REPO_ROOT",),
    "docs_path": ("DOCS_PATH",),
    "repo": ("GITHUB_REPOSITORY",),
    "branch": ("GITHUB_BRANCH",),
    "token": ("GITHUB_TOKEN", "GH_TOKEN"),
    "data_dir": ("ILLUMINA_DATA_DIR",),
}


def load_build_config(
    path: Path | None = None,
    *,
    environ: cabc.Mapping[str, str] | None = None,
    overrides: cabc.Mapping[str, typ.Any] | None = None,
) -> BuildConfig:
    """Load and validate the build configuration.

    Values are layered from lowest to highest precedence: the optional YAML
    file, the environment, then ``overrides`` (typically CLI options). Unset
    and empty values never replace a lower layer.

    Parameters
    ----------
    path : Path, optional
        YAML file with any of ``repo_root``, ``docs_path``, ``repo``,
        ``branch`` and ``data_dir``. Skipped when ``None``. The GitHub token
        is only taken from the environment.
    environ : Mapping[str, str], optional
        Environment to read; defaults to ``os.environ``.
    overrides : Mapping[str, Any], optional
        Explicit values keyed like the YAML file.

    Returns
    -------
    BuildConfig
        Validated configuration.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given but does not exist.
    BuildConfigError
        If the YAML file cannot be read or parsed, is not a mapping, or the
        merged values cannot select a content source.
    """
    values: dict[str, typ.Any] = {}
    if path is not None:
        values.update(_read_yaml(path))
    values.update(_env_values(os.environ if environ is None else environ))
    if overrides:
        values.update(_present(overrides))
    return _build(values).validate()


def config_from_env(environ: cabc.Mapping[str, str] | None = None) -> BuildConfig:
    """Return a validated BuildConfig read from environment variables only."""
    return load_build_config(environ=environ)


def _read_yaml(path: Path) -> dict[str, typ.Any]:
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except (OSError, UnicodeDecodeError, YAMLError) as exc:
        msg = f"Configuration file '{path}' could not be loaded: {exc}"
        raise BuildConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise BuildConfigError(msg)
    return _present({key: loaded.get(key) for key in CONFIG_KEYS})


def _env_values(environ: cabc.Mapping[str, str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, names in ENV_VARS.items():
        for name in names:
            value = (environ.get(name) or "").strip()
            if value:
                values[key] = value
                break
    return values


def _present(values: cabc.Mapping[str, typ.Any]) -> dict[str, typ.Any]:
    """Drop keys whose value is None or a blank string."""
    return {
        key: value
        for key, value in values.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }


def _build(values: cabc.Mapping[str, typ.Any]) -> BuildConfig:
    repo_root = values.get("repo_root")
    repo = values.get("repo")
    token = values.get("token")
    return BuildConfig(
        repo_root=Path(repo_root) if repo_root is not None else None,
        docs_path=str(values.get("docs_path", DEFAULT_DOCS_PATH)).strip("/")
        or DEFAULT_DOCS_PATH,
        repo=str(repo).strip() if repo is not None else None,
        branch=str(values.get("branch", DEFAULT_BRANCH)),
        token=str(token) if token is not None else None,
        data_dir=Path(values.get("data_dir", DEFAULT_DATA_DIR)),
    )


__all__ = ["CONFIG_KEYS", "ENV_VARS", "config_from_env", "load_build_config"]

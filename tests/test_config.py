"""Tests for layered build configuration loading."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from illumina.config import (
    BuildConfig,
    BuildConfigError,
    config_from_env,
    load_build_config,
)


def _write_yaml(path: Path, body: str) -> Path:
    path.write_text(dedent(body).lstrip(), encoding="utf-8")
    return path


def test_config_from_env_reads_local_root() -> None:
    config = config_from_env({"LOCAL_REPO_ROOT": "/work/repo", "DOCS_PATH": "/guide/"})

    assert config.repo_root == Path("/work/repo")
    assert config.is_local, "a local root should select local reads"
    assert config.docs_path == "guide", "slashes around the docs path are dropped"
    assert config.branch == "main"
    assert config.pages_file == Path("data/pages.json")
    assert config.source_files_file == Path("data/source-files.json")


def test_config_from_env_reads_github_settings() -> None:
    config = config_from_env(
        {
            "GITHUB_REPOSITORY": "owner/repo",
            "GITHUB_BRANCH": "dev",
            "GH_TOKEN": "fallback-token",
            "ILLUMINA_DATA_DIR": "site/data",
        }
    )

    assert config.repo == "owner/repo"
    assert not config.is_local
    assert config.branch == "dev"
    assert config.token == "fallback-token", "GH_TOKEN should back up GITHUB_TOKEN"
    assert config.data_dir == Path("site/data")


def test_github_token_takes_precedence_over_gh_token() -> None:
    config = config_from_env(
        {
            "GITHUB_REPOSITORY": "owner/repo",
            "GITHUB_TOKEN": "primary",
            "GH_TOKEN": "secondary",
        }
    )

    assert config.token == "primary"


def test_blank_environment_values_are_ignored() -> None:
    config = config_from_env(
        {"GITHUB_REPOSITORY": "owner/repo", "DOCS_PATH": "  ", "GITHUB_BRANCH": ""}
    )

    assert config.docs_path == "docs"
    assert config.branch == "main"


def test_yaml_environment_and_overrides_are_layered(tmp_path: Path) -> None:
    config_file = _write_yaml(
        tmp_path / "illumina.yaml",
        """
        repo: yaml/repo
        branch: yaml-branch
        docs_path: handbook
        data_dir: yaml-data
        """,
    )

    config = load_build_config(
        config_file,
        environ={"GITHUB_BRANCH": "env-branch", "ILLUMINA_DATA_DIR": "env-data"},
        overrides={"data_dir": Path("cli-data"), "repo": None, "docs_path": ""},
    )

    assert config.repo == "yaml/repo", "unset overrides must not clear YAML values"
    assert config.branch == "env-branch", "environment should beat YAML"
    assert config.data_dir == Path("cli-data"), "overrides should beat environment"
    assert config.docs_path == "handbook"


def test_missing_yaml_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_build_config(tmp_path / "absent.yaml", environ={})


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    config_file = _write_yaml(tmp_path / "list.yaml", "- one\n- two\n")

    with pytest.raises(BuildConfigError, match="mapping"):
        load_build_config(config_file, environ={})


def test_empty_yaml_falls_back_to_environment(tmp_path: Path) -> None:
    config_file = _write_yaml(tmp_path / "empty.yaml", "")

    config = load_build_config(config_file, environ={"LOCAL_REPO_ROOT": "."})

    assert config.repo_root == Path(".")


def test_a_content_source_must_be_configured() -> None:
    with pytest.raises(BuildConfigError, match="local repository root"):
        config_from_env({})


@pytest.mark.parametrize("repo", ["owner", "owner/", "/name", "a/b/c"])
def test_repository_slug_must_be_owner_and_name(repo: str) -> None:
    with pytest.raises(BuildConfigError, match="owner/name"):
        config_from_env({"GITHUB_REPOSITORY": repo})


def test_validate_returns_self() -> None:
    config = BuildConfig(repo="owner/repo")

    assert config.validate() is config


def test_process_environment_is_used_by_default(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "env/repo")

    config = load_build_config()

    assert config.repo == "env/repo"


def test_invalid_yaml_is_a_configuration_error(tmp_path: Path) -> None:
    config_file = _write_yaml(tmp_path / "broken.yaml", "repo: {owner/repo\n")

    with pytest.raises(BuildConfigError, match="could not be loaded"):
        load_build_config(config_file, environ={})


def test_token_is_not_read_from_yaml(tmp_path: Path) -> None:
    config_file = _write_yaml(
        tmp_path / "illumina.yaml",
        """
        repo: owner/repo
        token: committed-secret
        """,
    )

    config = load_build_config(config_file, environ={"GITHUB_TOKEN": ""})

    assert config.token is None, "tokens should only come from the environment"

"""Behaviour tests for the snippets stage using pytest-bdd.

The scenarios in ``snippet_resolution.feature`` run the docs and snippets
stages against a temporary working copy, and run the resolver against a
GitHub content source whose HTTP session is mocked. They check that each
referenced file is fetched once, that absent files become not-found records,
that a transport failure is confined to the failing file, and that a missing
``pages.json`` stops the stage before anything is written.

Usage
-----
Run ``pytest tests/bdd/test_snippet_resolution.py -v``. No network access is
required.
"""

from __future__ import annotations

import asyncio
import json
import typing as typ
from pathlib import Path

import msgspec
import pytest
import requests
from pytest_bdd import given, parsers, scenarios, then, when

from illumina._constants import MISSING_FILE_ERROR
from illumina.config import BuildConfig
from illumina.docs_model import build_pages
from illumina.snippets import SnippetResolver, extract_snippets
from illumina.sources import GitHubContentSource

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "snippet_resolution.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _records(scenario_state: ScenarioState) -> dict[str, typ.Any]:
    """Return the resolved records as plain JSON data."""
    if "records" in scenario_state:
        return scenario_state["records"]
    config = typ.cast("BuildConfig", scenario_state["config"])
    return json.loads(config.source_files_file.read_text(encoding="utf-8"))


@given(
    parsers.parse(
        'a working copy whose overview diagram references "{present}" twice '
        'and "{absent}"'
    )
)
def given_working_copy(
    tmp_path: Path, scenario_state: ScenarioState, present: str, absent: str
) -> None:
    """Write a docs page whose diagram links two nodes to one file."""
    root = tmp_path / "repo"
    (root / "docs").mkdir(parents=True)
    target = root / present
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("package main\nfunc main(){}\n", encoding="utf-8")
    (root / "docs" / "overview.md").write_text(
        "# Overview\n\n"
        "```mermaid\n"
        "graph TD\n"
        "  A --> B --> C\n"
        f'  click A "{present}"\n'
        f'  click B "{present}#main"\n'
        f'  click C "{absent}"\n'
        "```\n",
        encoding="utf-8",
    )
    scenario_state["config"] = BuildConfig(repo_root=root, data_dir=tmp_path / "data")


@given("a working copy without a generated pages.json")
def given_no_pages(tmp_path: Path, scenario_state: ScenarioState) -> None:
    """Point the configuration at an empty data directory."""
    root = tmp_path / "repo"
    root.mkdir()
    scenario_state["config"] = BuildConfig(repo_root=root, data_dir=tmp_path / "data")


@given(
    parsers.parse(
        'a GitHub repository where "{present}" exists and "{failing}" returns '
        "a server error"
    )
)
def given_remote_repository(
    mocker: MockerFixture, scenario_state: ScenarioState, present: str, failing: str
) -> None:
    """Mock raw downloads: one file succeeds, the other answers HTTP 503."""

    def _get(url: str, **_: typ.Any) -> typ.Any:
        response = mocker.Mock()
        if url.endswith(f"/{present}"):
            response.status_code = 200
            response.text = "package a\n"
        elif url.endswith(f"/{failing}"):
            response.status_code = 503
            response.text = ""
        else:
            response.status_code = 404
            response.text = ""
        return response

    session = mocker.Mock(spec=requests.Session)
    session.get.side_effect = _get
    scenario_state["source"] = GitHubContentSource("owner/repo", session=session)


@when("I run the docs and snippets stages")
def when_run_both_stages(scenario_state: ScenarioState) -> None:
    """Build pages.json and then source-files.json from the working copy."""
    config = typ.cast("BuildConfig", scenario_state["config"])
    build_pages(config)
    extract_snippets(config)


@when("I run only the snippets stage")
def when_run_snippets(scenario_state: ScenarioState) -> None:
    """Run the snippets stage and capture the fatal error it raises."""
    config = typ.cast("BuildConfig", scenario_state["config"])
    with pytest.raises(FileNotFoundError) as excinfo:
        extract_snippets(config)
    scenario_state["error"] = excinfo.value


@when(parsers.parse('I resolve "{first}" and "{second}" from GitHub'))
def when_resolve_remote(
    scenario_state: ScenarioState, first: str, second: str
) -> None:
    """Resolve both paths through the mocked GitHub source."""
    source = typ.cast("GitHubContentSource", scenario_state["source"])
    records = asyncio.run(SnippetResolver(source).resolve([first, second]))
    scenario_state["records"] = msgspec.to_builtins(records)


@then(parsers.parse("source-files.json lists {count:d} files"))
def then_file_count(scenario_state: ScenarioState, count: int) -> None:
    """Check the number of distinct files recorded."""
    records = _records(scenario_state)
    assert len(records) == count, f"expected {count} records, got {list(records)!r}"


@then(
    parsers.parse(
        '"{path}" is recorded with language "{language}" and {lines:d} lines'
    )
)
def then_resolved(
    scenario_state: ScenarioState, path: str, language: str, lines: int
) -> None:
    """Check a successfully resolved record."""
    record = _records(scenario_state)[path]
    assert record["language"] == language
    assert record["totalLines"] == lines
    assert "error" not in record, f"{path} should not carry an error"
    assert record["content"], f"{path} should carry its content"


@then(
    parsers.parse('"{path}" is recorded as not found with language "{language}"')
)
def then_missing(scenario_state: ScenarioState, path: str, language: str) -> None:
    """Check a not-found record carries only the language and the error."""
    record = _records(scenario_state)[path]
    assert record == {"language": language, "error": MISSING_FILE_ERROR}, (
        f"unexpected record for {path}: {record!r}"
    )


@then("the run stops because pages.json is missing")
def then_pages_missing(scenario_state: ScenarioState) -> None:
    """Check the fatal error names the missing page model."""
    error = scenario_state["error"]
    assert "pages.json" in str(error), f"unexpected error {error!r}"


@then("no source-files.json is written")
def then_nothing_written(scenario_state: ScenarioState) -> None:
    """Check no output artifact was produced."""
    config = typ.cast("BuildConfig", scenario_state["config"])
    assert not config.source_files_file.exists()

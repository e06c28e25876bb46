"""Shared pytest fixtures for the test suite."""

import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from tagger.github_api import RefPage, RefRecord


def make_git_ref(ref: str, sha: str = "default_sha") -> MagicMock:
    """Create a mock PyGithub GitRef with the given fully qualified name.

    Args:
        ref: The full ref name (e.g., 'refs/tags/v1').
        sha: The SHA of the commit the ref points to.
    """
    git_ref = MagicMock()
    git_ref.ref = ref
    git_ref.object.sha = sha
    git_ref.raw_data = {"ref": ref, "object": {"sha": sha, "type": "commit"}}
    return git_ref


def make_page(names: list[str], cursor: str | None = None, has_next_page: bool = False) -> RefPage:
    """Create a RefPage whose refs point at 'sha-<name>' commits."""
    return RefPage(
        refs=[RefRecord(name=name, commit_id=f"sha-{name}") for name in names],
        end_cursor=cursor,
        has_next_page=has_next_page,
    )


@pytest.fixture
def mock_github_api() -> MagicMock:
    """Create a mock GitHubAPI instance for unit tests."""
    mock_api = MagicMock()
    mock_api.list_refs_page.return_value = RefPage()
    mock_api.list_matching_refs.return_value = []
    mock_api.update_ref.side_effect = lambda ref_name, sha, force=True: make_git_ref(f"refs/{ref_name}", sha)
    mock_api.create_ref.side_effect = lambda ref, sha: make_git_ref(ref, sha)
    return mock_api


@pytest.fixture
def mock_github_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set up mock GitHub environment variables."""
    env_vars = {
        "GITHUB_EVENT_NAME": "release",
        "GITHUB_EVENT_PATH": str(tmp_path / "event.json"),
        "GITHUB_SHA": "abc123def456",
        "GITHUB_REPOSITORY": "owner/repo",
        "GITHUB_OUTPUT": str(tmp_path / "output.txt"),
        "GITHUB_TOKEN": "test-token",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    for key in ("INPUT_TOKEN", "INPUT_DEBUG", "INPUT_DRY_RUN", "INPUT_PUBLISH_LATEST_TAG", "INPUT_PREFER_BRANCH_RELEASES"):
        monkeypatch.delenv(key, raising=False)
    return env_vars


@pytest.fixture
def write_event(mock_github_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Return a helper that writes an event payload and sets GITHUB_EVENT_NAME."""

    def _write(event_name: str, payload: dict[str, Any]) -> None:
        monkeypatch.setenv("GITHUB_EVENT_NAME", event_name)
        Path(mock_github_env["GITHUB_EVENT_PATH"]).write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def mock_pygithub() -> Generator[dict[str, Any], None, None]:
    """Patch PyGithub for unit tests."""
    with patch("tagger.github_api.Github") as mock_github:
        mock_repo = MagicMock()
        mock_github.return_value.get_repo.return_value = mock_repo
        yield {"github": mock_github, "repo": mock_repo, "requester": mock_github.return_value.requester}


@pytest.fixture
def sample_tags() -> list[str]:
    """Sample tag names as returned by the refs query."""
    return [
        "v1.0.0",
        "v1.0.1",
        "v1.1.0-rc.1",
        "v1",
        "latest",
        "v2.0.0",
        "not-a-version",
    ]

"""Unit tests for github_api.py - GitHubAPI wrapper methods."""

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from github.GithubException import GithubException

from tagger.github_api import REFS_PAGE_SIZE, REFS_QUERY, GitHubAPI, RefPage, RefRecord


def _refs_response(nodes: list[dict[str, Any]], end_cursor: str | None = None, has_next_page: bool = False) -> dict:
    return {
        "data": {
            "repository": {
                "refs": {
                    "nodes": nodes,
                    "pageInfo": {"endCursor": end_cursor, "hasNextPage": has_next_page},
                }
            }
        }
    }


class TestGitHubAPIInit:
    """Tests for GitHubAPI initialization and token handling."""

    def test_init_with_explicit_token_and_repo(self):
        """GitHubAPI initializes with explicit token and repository."""
        with patch("tagger.github_api.Github") as mock_github:
            mock_repo = MagicMock()
            mock_github.return_value.get_repo.return_value = mock_repo

            api = GitHubAPI(token="test-token", repository="owner/repo")

            mock_github.assert_called_once_with("test-token")
            mock_github.return_value.get_repo.assert_called_once_with("owner/repo")
            assert api.owner == "owner"
            assert api.name == "repo"

    def test_init_with_env_vars(self, monkeypatch):
        """GitHubAPI uses environment variables when parameters not provided."""
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        monkeypatch.setenv("GITHUB_REPOSITORY", "env-owner/env-repo")

        with patch("tagger.github_api.Github") as mock_github:
            mock_repo = MagicMock()
            mock_github.return_value.get_repo.return_value = mock_repo

            GitHubAPI()

            mock_github.assert_called_once_with("env-token")
            mock_github.return_value.get_repo.assert_called_once_with("env-owner/env-repo")

    def test_init_missing_token_raises_error(self, monkeypatch):
        """GitHubAPI raises ValueError when token is missing."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GITHUB_REPOSITORY", "owner/repo")

        with pytest.raises(ValueError, match="GitHub token is required"):
            GitHubAPI()

    def test_init_missing_repository_raises_error(self, monkeypatch):
        """GitHubAPI raises ValueError when repository is missing."""
        monkeypatch.setenv("GITHUB_TOKEN", "test-token")
        monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)

        with pytest.raises(ValueError, match="Repository is required"):
            GitHubAPI()

    def test_init_malformed_repository_raises_error(self):
        """GitHubAPI raises ValueError when repository is not owner/repo."""
        with patch("tagger.github_api.Github") as mock_github:
            with pytest.raises(ValueError, match="owner/repo"):
                GitHubAPI(token="test-token", repository="just-a-name")

            mock_github.assert_not_called()


class TestListRefsPage:
    """Tests for GitHubAPI.list_refs_page method."""

    def test_first_page_query_variables(self, mock_pygithub):
        """list_refs_page queries the prefix without a cursor on the first page."""
        mock_pygithub["requester"].graphql_query.return_value = ({}, _refs_response([]))

        api = GitHubAPI(token="test-token", repository="owner/repo")
        api.list_refs_page("refs/tags/")

        mock_pygithub["requester"].graphql_query.assert_called_once_with(
            REFS_QUERY,
            {
                "repoOwner": "owner",
                "repoName": "repo",
                "refPrefix": "refs/tags/",
                "pageSize": REFS_PAGE_SIZE,
                "pagination": None,
            },
        )

    def test_cursor_is_passed(self, mock_pygithub):
        """list_refs_page passes the cursor of the previous page."""
        mock_pygithub["requester"].graphql_query.return_value = ({}, _refs_response([]))

        api = GitHubAPI(token="test-token", repository="owner/repo")
        api.list_refs_page("refs/heads/", "Y3Vyc29yOjEwMA==")

        variables = mock_pygithub["requester"].graphql_query.call_args[0][1]
        assert variables["pagination"] == "Y3Vyc29yOjEwMA=="
        assert variables["refPrefix"] == "refs/heads/"

    def test_parses_page(self, mock_pygithub):
        """list_refs_page returns records and paging info."""
        mock_pygithub["requester"].graphql_query.return_value = (
            {},
            _refs_response(
                [
                    {"name": "v1.0.0", "target": {"oid": "commit-1"}},
                    {"name": "latest", "target": {"oid": "commit-2"}},
                ],
                end_cursor="abc",
                has_next_page=True,
            ),
        )

        api = GitHubAPI(token="test-token", repository="owner/repo")
        page = api.list_refs_page("refs/tags/")

        assert page == RefPage(
            refs=[RefRecord("v1.0.0", "commit-1"), RefRecord("latest", "commit-2")],
            end_cursor="abc",
            has_next_page=True,
        )

    def test_annotated_tag_is_dereferenced(self, mock_pygithub):
        """list_refs_page reports the commit an annotated tag points to."""
        mock_pygithub["requester"].graphql_query.return_value = (
            {},
            _refs_response([{"name": "v2.0.0", "target": {"oid": "tag-object-sha", "target": {"oid": "commit-sha"}}}]),
        )

        api = GitHubAPI(token="test-token", repository="owner/repo")
        page = api.list_refs_page("refs/tags/")

        assert page.refs == [RefRecord("v2.0.0", "commit-sha")]
        assert page.has_next_page is False

    def test_missing_repository_raises(self, mock_pygithub):
        """list_refs_page raises GithubException when the repository is null."""
        mock_pygithub["requester"].graphql_query.return_value = ({}, {"data": {"repository": None}})

        api = GitHubAPI(token="test-token", repository="owner/repo")

        with pytest.raises(GithubException):
            api.list_refs_page("refs/tags/")

    def test_query_failure_propagates(self, mock_pygithub):
        """list_refs_page does not swallow transport errors."""
        mock_pygithub["requester"].graphql_query.side_effect = GithubException(401, "Bad credentials", None)

        api = GitHubAPI(token="test-token", repository="owner/repo")

        with pytest.raises(GithubException):
            api.list_refs_page("refs/tags/")


class TestListMatchingRefs:
    """Tests for GitHubAPI.list_matching_refs method."""

    def test_returns_matching_refs(self, mock_pygithub):
        """list_matching_refs returns the refs starting with the name."""
        mock_refs = [MagicMock(ref="refs/tags/v1"), MagicMock(ref="refs/tags/v1.0.0")]
        mock_pygithub["repo"].get_git_matching_refs.return_value = iter(mock_refs)

        api = GitHubAPI(token="test-token", repository="owner/repo")
        result = api.list_matching_refs("tags/v1")

        assert result == mock_refs
        mock_pygithub["repo"].get_git_matching_refs.assert_called_once_with("tags/v1")

    def test_no_matches(self, mock_pygithub):
        """list_matching_refs returns an empty list when nothing matches."""
        mock_pygithub["repo"].get_git_matching_refs.return_value = []

        api = GitHubAPI(token="test-token", repository="owner/repo")

        assert api.list_matching_refs("tags/v9") == []


class TestUpdateRef:
    """Tests for GitHubAPI.update_ref method."""

    def test_update_ref_force_pushes(self, mock_pygithub):
        """update_ref force-pushes the ref to the new commit."""
        mock_ref = MagicMock()
        mock_pygithub["repo"].get_git_ref.return_value = mock_ref

        api = GitHubAPI(token="test-token", repository="owner/repo")
        result = api.update_ref("tags/v1", "new-commit-sha")

        mock_pygithub["repo"].get_git_ref.assert_called_once_with("tags/v1")
        mock_ref.edit.assert_called_once_with(sha="new-commit-sha", force=True)
        assert result is mock_ref

    def test_update_ref_nonexistent_ref(self, mock_pygithub):
        """update_ref raises GithubException for a nonexistent ref."""
        mock_pygithub["repo"].get_git_ref.side_effect = GithubException(404, "Not Found", None)

        api = GitHubAPI(token="test-token", repository="owner/repo")

        with pytest.raises(GithubException):
            api.update_ref("tags/nonexistent", "commit-sha")


class TestCreateRef:
    """Tests for GitHubAPI.create_ref method."""

    def test_create_ref(self, mock_pygithub):
        """create_ref creates a fully qualified ref."""
        mock_ref = MagicMock()
        mock_pygithub["repo"].create_git_ref.return_value = mock_ref

        api = GitHubAPI(token="test-token", repository="owner/repo")
        result = api.create_ref("refs/heads/v2", "commit-sha")

        mock_pygithub["repo"].create_git_ref.assert_called_once_with(ref="refs/heads/v2", sha="commit-sha")
        assert result is mock_ref

    def test_create_ref_api_failure(self, mock_pygithub):
        """create_ref raises GithubException on API failure."""
        mock_pygithub["repo"].create_git_ref.side_effect = GithubException(422, "Reference already exists", None)

        api = GitHubAPI(token="test-token", repository="owner/repo")

        with pytest.raises(GithubException):
            api.create_ref("refs/tags/v1", "commit-sha")

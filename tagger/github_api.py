# Copyright (c) 2026 Mark Ferrell. MIT License.
"""GitHub API wrapper for ref queries and mutations.

References:
    - GitHub REST API (git refs): https://docs.github.com/en/rest/git/refs
    - GitHub GraphQL API (Ref): https://docs.github.com/en/graphql/reference/objects#ref
    - PyGithub Documentation: https://pygithub.readthedocs.io/
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from github import Github
from github.GithubException import GithubException

if TYPE_CHECKING:
    from github.GitRef import GitRef

REFS_PAGE_SIZE = 100

# Annotated tags point at a tag object; the nested target is the commit.
REFS_QUERY = """
query ($repoOwner: String!, $repoName: String!, $refPrefix: String!, $pageSize: Int!, $pagination: String) {
  repository(owner: $repoOwner, name: $repoName) {
    refs(refPrefix: $refPrefix, first: $pageSize, after: $pagination) {
      nodes {
        name
        target {
          oid
          ... on Tag {
            target {
              oid
            }
          }
        }
      }
      pageInfo {
        endCursor
        hasNextPage
      }
    }
  }
}
"""


@dataclass(frozen=True)
class RefRecord:
    """A ref name and the commit it currently points to."""

    name: str
    commit_id: str


@dataclass
class RefPage:
    """One page of refs returned by the GraphQL refs connection."""

    refs: list[RefRecord] = field(default_factory=list)
    end_cursor: str | None = None
    has_next_page: bool = False


class GitHubAPI:
    """Wrapper around PyGithub for ref operations.

    Handles authentication via token input, defaulting to GITHUB_TOKEN
    environment variable if not provided.

    References:
        - Authentication: https://docs.github.com/en/rest/authentication
        - GITHUB_TOKEN: https://docs.github.com/en/actions/security-for-github-actions/security-guides/automatic-token-authentication
    """

    def __init__(self, token: str | None = None, repository: str | None = None) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token for authentication. Defaults to GITHUB_TOKEN env var.
            repository: Repository in 'owner/repo' format. Defaults to GITHUB_REPOSITORY env var.

        References:
            - Get a repository: https://docs.github.com/en/rest/repos/repos#get-a-repository
        """
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        self._repository = repository or os.environ.get("GITHUB_REPOSITORY", "")

        if not self._token:
            raise ValueError("GitHub token is required. Set GITHUB_TOKEN or pass token parameter.")
        if not self._repository:
            raise ValueError("Repository is required. Set GITHUB_REPOSITORY or pass repository parameter.")

        owner, _, name = self._repository.partition("/")
        if not owner or not name:
            raise ValueError(f"Repository must be in 'owner/repo' format, got '{self._repository}'.")
        self.owner = owner
        self.name = name

        self._github = Github(self._token)
        self._repo = self._github.get_repo(self._repository)

    def list_refs_page(self, ref_prefix: str, cursor: str | None = None) -> RefPage:
        """Fetch one page of refs under a namespace prefix.

        Args:
            ref_prefix: Fully qualified prefix ending in '/' (e.g., 'refs/tags/').
            cursor: End cursor of the previous page, or None for the first page.

        Returns:
            RefPage with the refs (names relative to the prefix) and paging info.

        Raises:
            GithubException: If the query fails or the repository is not found.

        References:
            - Repository.refs: https://docs.github.com/en/graphql/reference/objects#repository
        """
        variables: dict[str, Any] = {
            "repoOwner": self.owner,
            "repoName": self.name,
            "refPrefix": ref_prefix,
            "pageSize": REFS_PAGE_SIZE,
            "pagination": cursor,
        }
        _, data = self._github.requester.graphql_query(REFS_QUERY, variables)

        repository = (data.get("data") or {}).get("repository")
        if repository is None:
            raise GithubException(404, data, None, f"Repository '{self._repository}' not found")

        refs = repository["refs"]
        records = []
        for node in refs["nodes"]:
            target = node["target"]
            commit_id = (target.get("target") or target)["oid"]
            records.append(RefRecord(name=node["name"], commit_id=commit_id))

        page_info = refs["pageInfo"]
        return RefPage(
            refs=records,
            end_cursor=page_info.get("endCursor"),
            has_next_page=page_info.get("hasNextPage") is True,
        )

    def list_matching_refs(self, ref_name: str) -> list[GitRef]:
        """List refs whose names start with the given ref name.

        Args:
            ref_name: Namespace-relative ref name or prefix (e.g., 'tags/v1').

        Returns:
            List of GitRef objects with fully qualified names.

        References:
            - List matching references: https://docs.github.com/en/rest/git/refs#list-matching-references
        """
        return list(self._repo.get_git_matching_refs(ref_name))

    def update_ref(self, ref_name: str, commit_sha: str, force: bool = True) -> GitRef:
        """Point an existing ref at a new commit.

        Floating refs move non-linearly, so force defaults to True.

        Args:
            ref_name: Namespace-relative ref name (e.g., 'tags/v1').
            commit_sha: SHA of the new commit to point to.
            force: Allow a non fast-forward update.

        Returns:
            The updated GitRef.

        Raises:
            GithubException: If the ref does not exist or the update fails.

        References:
            - Update a reference: https://docs.github.com/en/rest/git/refs#update-a-reference
        """
        ref = self._repo.get_git_ref(ref_name)
        ref.edit(sha=commit_sha, force=force)
        return ref

    def create_ref(self, ref: str, commit_sha: str) -> GitRef:
        """Create a new ref pointing to a commit.

        Args:
            ref: Fully qualified ref name (e.g., 'refs/tags/v1').
            commit_sha: SHA of the commit to point to.

        Returns:
            The created GitRef.

        Raises:
            GithubException: If the ref already exists or creation fails.

        References:
            - Create a reference: https://docs.github.com/en/rest/git/refs#create-a-reference
        """
        return self._repo.create_git_ref(ref=ref, sha=commit_sha)

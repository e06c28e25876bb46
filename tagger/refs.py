# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Enumeration and upsert of versioned refs.

This module lists the refs under a namespace that name semantic versions,
one page at a time, and moves floating refs (e.g., 'tags/v1') by creating or
force-updating them.

References:
    - Git references: https://docs.github.com/en/rest/git/refs
    - GraphQL pagination: https://docs.github.com/en/graphql/guides/using-pagination-in-the-graphql-api
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tagger.versions import SemanticVersion, parse

if TYPE_CHECKING:
    from github.GitRef import GitRef

    from tagger.github_api import GitHubAPI

logger = logging.getLogger(__name__)


class PagerState(enum.Enum):
    """Pagination states of a RefPager."""

    FETCHING = "fetching"
    DONE = "done"


class RefPager:
    """Lazy, strictly sequential enumeration of versioned refs.

    Each page is requested only after the previous page's cursor is known.
    Refs whose names are not semantic versions are dropped. Pairs come out
    in the remote's order; callers needing a total order sort them.

    A pager is single use: iterate it once, or pull pages with next_batch().
    Use enumerate_refs() to start over with a fresh cursor.

    Examples:
        >>> for version, commit_id in RefPager(api, "tags"):
        ...     print(version, commit_id)
    """

    def __init__(self, api: GitHubAPI, namespace: str) -> None:
        """Initialize the pager.

        Args:
            api: GitHubAPI instance for fetching ref pages.
            namespace: Ref namespace to list, 'tags' or 'heads' (a trailing '/' is allowed).
        """
        self._api = api
        self.ref_prefix = f"refs/{namespace.strip('/')}/"
        self.cursor: str | None = None
        self.state = PagerState.FETCHING
        self.pages_fetched = 0

    def next_batch(self) -> list[tuple[SemanticVersion, str]]:
        """Fetch the next page and return its versioned refs.

        Returns:
            (version, commit_id) pairs from one page, possibly empty. Always
            empty once the pager is DONE.

        Raises:
            GithubException: If the page query fails.
        """
        if self.state is PagerState.DONE:
            return []

        page = self._api.list_refs_page(self.ref_prefix, self.cursor)
        self.pages_fetched += 1

        batch = []
        for record in page.refs:
            version = parse(record.name)
            if version is None:
                logger.debug("ignoring %s", record.name)
                continue
            logger.debug("checking %s", record.name)
            batch.append((version, record.commit_id))

        if page.has_next_page and page.end_cursor:
            self.cursor = page.end_cursor
        else:
            if page.has_next_page:
                logger.warning("Page %d of %s reported more pages without a cursor", self.pages_fetched, self.ref_prefix)
            self.cursor = None
            self.state = PagerState.DONE

        return batch

    def __iter__(self) -> Iterator[tuple[SemanticVersion, str]]:
        while self.state is PagerState.FETCHING:
            yield from self.next_batch()


def enumerate_refs(api: GitHubAPI, namespace: str) -> RefPager:
    """Start a fresh enumeration of the versioned refs under a namespace.

    Args:
        api: GitHubAPI instance for fetching ref pages.
        namespace: 'tags' or 'heads'.

    Returns:
        A new RefPager positioned before the first page.
    """
    return RefPager(api, namespace)


@dataclass
class LatestRefs:
    """Newest public versions found among a namespace's refs."""

    repo_latest: SemanticVersion | None = None
    major_latest: SemanticVersion | None = None
    major_commit_id: str | None = None


def find_latest_refs(api: GitHubAPI, namespace: str, major: int) -> LatestRefs:
    """Find the newest public version overall and within a major series.

    Pre-release versions never count as the latest. When two refs resolve
    to the same version, the first one seen wins.

    Args:
        api: GitHubAPI instance for fetching ref pages.
        namespace: 'tags' or 'heads'.
        major: Major version number of the series to track.

    Returns:
        LatestRefs with the newest versions found (None where none exist).

    Examples:
        >>> # With tags v1.0.0, v1.4.2, v2.0.0 and v2.1.0-rc.1
        >>> latest = find_latest_refs(api, "tags", 1)
        >>> str(latest.major_latest), str(latest.repo_latest)
        ('1.4.2', '2.0.0')
    """
    latest = LatestRefs()

    for version, commit_id in enumerate_refs(api, namespace):
        if version.is_prerelease:
            continue
        if latest.repo_latest is None or version > latest.repo_latest:
            latest.repo_latest = version
        if version.major == major and (latest.major_latest is None or version > latest.major_latest):
            latest.major_latest = version
            latest.major_commit_id = commit_id

    return latest


def upsert_ref(api: GitHubAPI, ref_name: str, commit_sha: str) -> GitRef:
    """Create a ref, or force-update it if it already exists.

    Args:
        api: GitHubAPI instance for ref operations.
        ref_name: Namespace-relative ref name, 'tags/...' or 'heads/...' (e.g., 'tags/v1').
        commit_sha: SHA of the commit the ref should point to.

    Returns:
        The created or updated GitRef.

    Raises:
        GithubException: If the lookup or the mutation fails.

    Examples:
        >>> upsert_ref(api, "tags/v1", "abc123")  # Creates refs/tags/v1
        >>> upsert_ref(api, "tags/v1", "def456")  # Moves it to def456
    """
    matching_refs = api.list_matching_refs(ref_name)
    matching_ref = next((ref for ref in matching_refs if ref.ref.endswith(ref_name)), None)

    if matching_ref is not None:
        logger.info("Updating ref: %s to: %s", ref_name, commit_sha)
        upstream_ref = api.update_ref(ref_name, commit_sha, force=True)
    else:
        logger.info("Creating ref: refs/%s for: %s", ref_name, commit_sha)
        upstream_ref = api.create_ref(f"refs/{ref_name}", commit_sha)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug('%s now points to: "%s"', json.dumps(upstream_ref.raw_data), commit_sha)

    return upstream_ref

# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Classification of the GitHub event that triggered the run.

All predicates are pure functions of an explicitly constructed EventContext,
so they can be exercised without any network access.

References:
    - Release event payload: https://docs.github.com/en/webhooks/webhook-events-and-payloads#release
    - Push event payload: https://docs.github.com/en/webhooks/webhook-events-and-payloads#push
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from tagger.versions import SemanticVersion, coerce, parse

logger = logging.getLogger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"
TAG_REF_PREFIX = "refs/tags/"


class MissingContextError(ValueError):
    """Raised when the event payload lacks a field required for its kind."""


@dataclass(frozen=True)
class EventContext:
    """Read-only view of the triggering event."""

    event_name: str
    sha: str = ""
    tag_name: str | None = None
    prerelease: bool = False
    ref: str | None = None
    created: bool = False

    @classmethod
    def from_payload(cls, event_name: str, payload: dict[str, Any], sha: str = "") -> EventContext:
        """Build a context from a webhook payload.

        Args:
            event_name: Value of GITHUB_EVENT_NAME (e.g., 'release', 'push').
            payload: Decoded JSON from GITHUB_EVENT_PATH.
            sha: Commit SHA of the triggering event (GITHUB_SHA).
        """
        release = payload.get("release") or {}
        return cls(
            event_name=event_name,
            sha=sha,
            tag_name=release.get("tag_name"),
            prerelease=release.get("prerelease") is True,
            ref=payload.get("ref"),
            created=payload.get("created") is True,
        )


def is_release(event: EventContext) -> bool:
    """Check if the event is a release."""
    return event.event_name == "release"


def is_prerelease(event: EventContext) -> bool:
    """Check if the release was marked as a pre-release.

    Pre-releases are still published with action 'published', so the
    action type alone is not enough to tell them apart.

    References:
        - https://github.com/orgs/community/discussions/26281
    """
    return event.prerelease is True


def is_public_release(event: EventContext) -> bool:
    """Check if the event is a release that is not a pre-release."""
    return is_release(event) and not is_prerelease(event)


def is_push(event: EventContext) -> bool:
    """Check if the event is a push."""
    return event.event_name == "push"


def is_new_ref_push(event: EventContext) -> bool:
    """Check if the push created a new ref."""
    return is_push(event) and event.created is True


def is_branch_push(event: EventContext) -> bool:
    """Check if the push created a new branch."""
    return is_new_ref_push(event) and (event.ref or "").startswith(BRANCH_REF_PREFIX)


def is_tag_push(event: EventContext) -> bool:
    """Check if the push created a new tag."""
    return is_new_ref_push(event) and (event.ref or "").startswith(TAG_REF_PREFIX)


def get_release_version(event: EventContext) -> SemanticVersion | None:
    """Resolve the version of a release from its tag name.

    Pre-release tags are coerced before parsing since their naming tends to
    be looser (e.g., 'v3.1-beta' resolves to 3.1.0). Public release tags
    must already be valid semantic versions.

    Args:
        event: A release event context.

    Returns:
        The release version, or None if the tag is not a semantic version.

    Raises:
        MissingContextError: If the release has no tag name.
    """
    if not event.tag_name:
        raise MissingContextError("Release event payload has no tag name")

    tag_name: str | None = event.tag_name
    if is_prerelease(event):
        tag_name = coerce(tag_name)
    return parse(tag_name)


def get_push_ref_version(event: EventContext, preferred_ref: str) -> SemanticVersion | None:
    """Resolve the version of a pushed ref within the preferred namespace.

    Args:
        event: A push event context.
        preferred_ref: The watched namespace, 'tags' or 'heads'.

    Returns:
        The version named by the ref, or None if the ref lies outside the
        namespace or is not a semantic version.

    Raises:
        MissingContextError: If the push has no ref.

    Examples:
        >>> event = EventContext(event_name="push", ref="refs/tags/v1.2.3", created=True)
        >>> str(get_push_ref_version(event, "tags"))
        '1.2.3'
    """
    if not event.ref:
        raise MissingContextError("Push event payload has no ref")

    ref_name = re.sub(f"^refs/{re.escape(preferred_ref)}/", "", event.ref)
    return parse(ref_name)


def get_publish_version(event: EventContext, preferred_ref: str) -> SemanticVersion | None:
    """Resolve the version published by the event, if any."""
    if is_release(event):
        return get_release_version(event)
    if is_push(event):
        return get_push_ref_version(event, preferred_ref)
    return None


def is_semver_release(event: EventContext, preferred_ref: str) -> bool:
    """Check if the event publishes a version that may move floating refs.

    That is a public release, a newly created tag when watching tags, or a
    newly created branch when watching branches, whose name resolves to a
    semantic version.

    Raises:
        MissingContextError: If the event lacks the field naming its version.
    """
    watched_push = (preferred_ref == "tags" and is_tag_push(event)) or (
        preferred_ref == "heads" and is_branch_push(event)
    )
    if not (is_public_release(event) or watched_push):
        return False
    return get_publish_version(event, preferred_ref) is not None

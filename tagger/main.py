# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Main entry point for the floating version tag action.

This module reads the triggering event, decides whether it publishes a new
semantic version, and moves the floating refs (e.g., 'v1', 'latest') to the
event's commit.

References:
    - GitHub Actions Environment Variables:
      https://docs.github.com/en/actions/writing-workflows/choosing-what-your-workflow-does/store-information-in-variables#default-environment-variables
    - GitHub Actions Outputs:
      https://docs.github.com/en/actions/writing-workflows/choosing-what-your-workflow-does/passing-information-between-jobs#setting-an-output-parameter
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any

from github.GithubException import GithubException

from tagger.events import (
    EventContext,
    MissingContextError,
    get_publish_version,
    is_new_ref_push,
    is_prerelease,
    is_public_release,
    is_release,
    is_semver_release,
)
from tagger.github_api import GitHubAPI
from tagger.refs import find_latest_refs, upsert_ref
from tagger.versions import SemanticVersion

logger = logging.getLogger(__name__)

LATEST_REF = "tags/latest"


@dataclass
class ActionInputs:
    """Parsed action inputs from environment variables."""

    token: str
    debug: bool
    dry_run: bool
    publish_latest_tag: bool = False
    prefer_branch_releases: bool = False

    @property
    def preferred_ref(self) -> str:
        """Ref namespace holding the versions, 'heads' or 'tags'."""
        return "heads" if self.prefer_branch_releases else "tags"


@dataclass
class ActionOutputs:
    """Action outputs to be written to GITHUB_OUTPUT."""

    tag: str = ""
    ref_name: str = ""
    latest: bool = False


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "false").strip().lower() == "true"


def parse_inputs(args: list[str] | None = None) -> ActionInputs:
    """Parse action inputs from CLI arguments or environment variables.

    CLI arguments take precedence over environment variables.
    When run as a GitHub Action, environment variables are used.
    When run from CLI, arguments can be provided directly.

    Args:
        args: Optional list of CLI arguments. If None, uses environment
              variables only (GitHub Actions mode). Pass sys.argv[1:] for
              CLI mode.

    Returns:
        ActionInputs with parsed values.
    """
    parser = argparse.ArgumentParser(
        description="Floating Version Tag Action - Keep vX and latest pointing at the newest release",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables (used as defaults when CLI args not provided):
  INPUT_TOKEN, GITHUB_TOKEN       GitHub token for authentication
  INPUT_DEBUG                     Enable debug logging (true/false)
  INPUT_DRY_RUN                   Dry-run mode, don't move refs (true/false)
  INPUT_PUBLISH_LATEST_TAG        Also move the 'latest' tag (true/false)
  INPUT_PREFER_BRANCH_RELEASES    Track vX branches instead of tags (true/false)

Examples:
  # Run with environment variables (GitHub Actions mode)
  python -m tagger.main

  # Run with CLI arguments (local testing)
  python -m tagger.main --token ghp_xxx --dry-run --debug

  # Maintain v1 branches and the latest tag
  python -m tagger.main --prefer-branch-releases --publish-latest-tag
        """,
    )

    parser.add_argument(
        "--token",
        default=os.environ.get("INPUT_TOKEN", os.environ.get("GITHUB_TOKEN", "")),
        help="GitHub token for authentication (default: from INPUT_TOKEN or GITHUB_TOKEN env)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=_env_flag("INPUT_DEBUG"),
        help="Enable debug logging",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=_env_flag("INPUT_DRY_RUN"),
        help="Dry-run mode - don't actually move refs",
    )
    parser.add_argument(
        "--publish-latest-tag",
        action="store_true",
        default=_env_flag("INPUT_PUBLISH_LATEST_TAG"),
        help="Also point the 'latest' tag at the newest release",
    )
    parser.add_argument(
        "--prefer-branch-releases",
        action="store_true",
        default=_env_flag("INPUT_PREFER_BRANCH_RELEASES"),
        help="Track versions and floating refs as branches (heads) instead of tags",
    )

    # Use empty list for GitHub Actions mode (env vars only), or provided args for CLI
    parsed = parser.parse_args(args if args is not None else [])

    return ActionInputs(
        token=parsed.token,
        debug=parsed.debug,
        dry_run=parsed.dry_run,
        publish_latest_tag=parsed.publish_latest_tag,
        prefer_branch_releases=parsed.prefer_branch_releases,
    )


def _load_event_payload(event_path: str) -> dict[str, Any]:
    if not event_path:
        logger.warning("GITHUB_EVENT_PATH not set, using an empty event payload")
        return {}

    try:
        with open(event_path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise MissingContextError(f"Cannot read event payload '{event_path}': {e}") from e

    if not isinstance(payload, dict):
        raise MissingContextError(f"Event payload '{event_path}' is not a JSON object")
    return payload


def parse_context() -> EventContext:
    """Parse the GitHub event context from environment variables.

    Returns:
        EventContext built from GITHUB_EVENT_NAME, GITHUB_SHA and the
        payload stored at GITHUB_EVENT_PATH.

    Raises:
        MissingContextError: If the payload file cannot be read.

    References:
        - https://docs.github.com/en/actions/writing-workflows/choosing-what-your-workflow-does/store-information-in-variables#default-environment-variables
    """
    payload = _load_event_payload(os.environ.get("GITHUB_EVENT_PATH", ""))
    return EventContext.from_payload(
        event_name=os.environ.get("GITHUB_EVENT_NAME", ""),
        payload=payload,
        sha=os.environ.get("GITHUB_SHA", ""),
    )


def set_outputs(outputs: ActionOutputs) -> None:
    """Write action outputs to GITHUB_OUTPUT file.

    Args:
        outputs: ActionOutputs to write.

    References:
        - https://docs.github.com/en/actions/writing-workflows/choosing-what-your-workflow-does/passing-information-between-jobs#setting-an-output-parameter
    """
    output_file = os.environ.get("GITHUB_OUTPUT", "")
    if not output_file:
        logger.warning("GITHUB_OUTPUT not set, outputs will not be written")
        return

    with open(output_file, "a") as f:
        f.write(f"tag={outputs.tag}\n")
        f.write(f"ref_name={outputs.ref_name}\n")
        f.write(f"latest={str(outputs.latest).lower()}\n")

    logger.info("Set outputs: tag=%s, ref_name=%s, latest=%s", outputs.tag, outputs.ref_name, outputs.latest)


def configure_logging(debug: bool) -> None:
    """Configure logging based on debug flag.

    Args:
        debug: If True, enable DEBUG level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def update_floating_refs(
    api: GitHubAPI,
    event: EventContext,
    inputs: ActionInputs,
    version: SemanticVersion,
) -> ActionOutputs:
    """Move the major floating ref, and optionally 'latest', to the event's commit.

    The major ref ({preferred}/vX) only moves when no newer public version
    exists in the same major series. The 'latest' tag only moves when
    enabled and no newer public version exists at all.

    Args:
        api: GitHubAPI instance.
        event: Triggering event context.
        inputs: Action inputs.
        version: Version published by the event.

    Returns:
        ActionOutputs describing the refs that were (or would be) moved.
    """
    outputs = ActionOutputs()
    preferred_ref = inputs.preferred_ref

    latest = find_latest_refs(api, preferred_ref, version.major)
    logger.debug(
        "Latest in v%d series: %s, latest overall: %s", version.major, latest.major_latest, latest.repo_latest
    )

    if latest.major_latest is not None and latest.major_latest > version:
        logger.info(
            "Nothing to do because %s is not the latest in the v%d series (latest is %s)",
            version,
            version.major,
            latest.major_latest,
        )
        return outputs

    ref_name = f"{preferred_ref}/v{version.major}"
    outputs.tag = f"v{version.major}"
    outputs.ref_name = ref_name

    targets = [ref_name]
    if inputs.publish_latest_tag:
        if latest.repo_latest is None or version >= latest.repo_latest:
            targets.append(LATEST_REF)
            outputs.latest = True
        else:
            logger.info("Not updating '%s' because %s is newer than %s", LATEST_REF, latest.repo_latest, version)

    for target in targets:
        if inputs.dry_run:
            logger.info("[DRY-RUN] Would point '%s' at %s", target, event.sha[:7])
        else:
            upsert_ref(api, target, event.sha)

    return outputs


def run(inputs: ActionInputs, event: EventContext, repository: str = "") -> ActionOutputs:
    """Run the action for one event.

    Required event fields are checked before any request is made to GitHub.

    Args:
        inputs: Action inputs.
        event: Triggering event context.
        repository: Repository in 'owner/repo' format.

    Returns:
        ActionOutputs for the run (empty when there was nothing to do).

    Raises:
        MissingContextError: If the event lacks a required field.
        ValueError: If the GitHub client cannot be configured.
        GithubException: If a GitHub request fails.
    """
    preferred_ref = inputs.preferred_ref
    version = get_publish_version(event, preferred_ref)

    if not is_semver_release(event, preferred_ref):
        if is_release(event) and is_prerelease(event):
            logger.info("Nothing to do because release '%s' (%s) is a pre-release", event.tag_name, version)
        elif version is None and (
            is_public_release(event)
            or (is_new_ref_push(event) and (event.ref or "").startswith(f"refs/{preferred_ref}/"))
        ):
            logger.info("Nothing to do because '%s' is not a semantic version", event.tag_name or event.ref)
        else:
            logger.info(
                "This action should only be used in a release context or when creating a new %s",
                "branch" if preferred_ref == "heads" else "tag",
            )
        return ActionOutputs()

    if not event.sha:
        raise MissingContextError("Commit SHA of the triggering event is missing. Set GITHUB_SHA.")

    logger.info("Processing %s event for version %s", event.event_name, version)

    api = GitHubAPI(token=inputs.token, repository=repository)
    return update_floating_refs(api, event, inputs, version)


def main() -> None:
    """Main entry point for the action."""
    inputs = parse_inputs()
    configure_logging(inputs.debug)

    if not inputs.token:
        logger.error("GitHub token is required. Set INPUT_TOKEN or GITHUB_TOKEN.")
        sys.exit(1)

    try:
        event = parse_context()
        logger.debug(
            "Event: %s, Ref: %s, Tag: %s, SHA: %s", event.event_name, event.ref, event.tag_name, event.sha[:7]
        )
        outputs = run(inputs, event, os.environ.get("GITHUB_REPOSITORY", ""))
    except MissingContextError as e:
        logger.error("Missing event context: %s", e)
        sys.exit(1)
    except ValueError as e:
        logger.error("Failed to initialize GitHub API: %s", e)
        sys.exit(1)
    except GithubException as e:
        logger.error("GitHub API request failed: %s", e)
        sys.exit(1)

    set_outputs(outputs)


if __name__ == "__main__":  # pragma: no cover
    main()

# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Floating Version Tag Action - Core modules."""

from tagger.github_api import GitHubAPI
from tagger.refs import enumerate_refs, upsert_ref
from tagger.versions import SemanticVersion, coerce, parse

__all__ = ["GitHubAPI", "SemanticVersion", "coerce", "enumerate_refs", "parse", "upsert_ref"]

"""Thin per-endpoint wrappers built on restcore.core."""

from . import events, github, okta

__all__ = ["events", "github", "okta"]

"""Exceptions raised across the captimeline pipeline."""

from __future__ import annotations


class CapTimelineError(RuntimeError):
    """Base class for fatal pipeline failures."""


class SourceError(CapTimelineError):
    """The CSV source could not be read or contained no rows."""


class LoadError(CapTimelineError):
    """A full load failed; wraps the underlying fatal cause."""

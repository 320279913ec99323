"""Exception types raised by the build engine."""

from __future__ import annotations


class BronzeError(Exception):
    """Base class for bronze errors."""


class SnapshotError(BronzeError):
    """A persisted snapshot does not have the expected shape."""


class ReconcileError(BronzeError):
    """A version was reconciled more than once in the same run."""


class DependencyFailedError(BronzeError):
    """An operation this one waits on did not succeed."""


class UnsupportedOptionError(BronzeError, ValueError):
    """An encode or resize option the image engine does not understand."""

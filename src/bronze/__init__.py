"""bronze: incremental image-variant builder."""

__version__ = "0.3.0"

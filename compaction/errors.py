"""Exceptions raised by the compaction engine."""


class CompactionError(Exception):
    """Base exception for the compaction engine."""
    pass


class ConfigurationError(CompactionError, ValueError):
    """Raised when an engine is configured with an unusable value."""
    pass

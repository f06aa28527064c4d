"""Exceptions raised by SentinelLLM."""


class SentinelError(Exception):
    """Base class for all SentinelLLM errors."""
    pass


class AnalysisFailure(SentinelError):
    """Raised when the analysis provider cannot produce a valid result."""
    pass


class PersistenceReadFailure(SentinelError):
    """Raised when the stored evaluation history cannot be read."""
    pass


class ConfigError(SentinelError):
    """Raised when the configuration file or values are invalid."""
    pass

"""
Exception hierarchy for preprocessing runs.

Configuration and parse errors abort before (or instead of) producing a
snapshot; record-level gaps are reported as warnings and never raised unless
the run's resolution policy asks for it.
"""


class UnifierError(Exception):
    """Base class for every error raised by the unifier."""


class ConfigurationError(UnifierError, ValueError):
    """Raised when rule, group or location configuration is invalid."""


class SourceParseError(UnifierError, ValueError):
    """Raised when a platform export cannot be read into its expected shape."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"{platform}: {message}")


class UnresolvedRecordError(UnifierError):
    """Raised under the ABORT resolution policy when a record cannot be resolved."""

    def __init__(self, platform: str, reason: str, detail: str):
        self.platform = platform
        self.reason = reason
        self.detail = detail
        super().__init__(f"{platform}: {reason} ({detail})")

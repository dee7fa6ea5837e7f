"""Custom exceptions for equityplan.

The computation engines never raise these; they are used at the input boundary
(grant files, command-line options) only.
"""


class EquityPlanError(Exception):
    """Base exception for equityplan input errors."""


class GrantFileError(EquityPlanError):
    """Raised when a grants file cannot be read or decoded."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Cannot load grants from {path}: {message}")


class InvalidOptionError(EquityPlanError):
    """Raised when a command-line option has an unusable value."""

    def __init__(self, option: str, message: str):
        self.option = option
        super().__init__(f"Invalid value for '{option}': {message}")

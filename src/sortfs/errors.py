"""sortfs exception hierarchy.

Library code raises these; the CLI turns them into messages and exit codes.
"""


class SortfsError(Exception):
    """Base exception for all sortfs errors."""


class IgnorePatternError(SortfsError):
    """An override pattern could not be parsed."""
    
    def __init__(self, pattern: str, reason: str = "") -> None:
        message = f"invalid pattern {pattern!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.pattern = pattern


class IgnoreFileError(SortfsError):
    """An ignore file required at startup could not be read or parsed."""
    
    def __init__(self, path: str, reason: str = "") -> None:
        message = f"cannot load ignore file {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path


class CanonicalizeError(SortfsError):
    """The target directory could not be turned into an absolute path."""


class OutputError(SortfsError):
    """Writing the listing failed."""

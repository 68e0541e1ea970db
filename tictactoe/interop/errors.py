"""
Errors raised at the handle boundary.
"""


class InvalidHandleError(ValueError):
    """Raised when a handle is unknown, already released, or null."""

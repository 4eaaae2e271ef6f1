"""
Domain error raised for business-rule violations.
"""


class DomainError(Exception):
    """A validation or business-rule failure with a human-readable message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

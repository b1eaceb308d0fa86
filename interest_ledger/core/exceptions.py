"""
Errors raised by the ledger service.
"""


class LedgerError(Exception):
    """Base class for service-level failures that are reported to the user."""


class UnauthenticatedError(LedgerError):
    """No identity was resolved for the caller."""

    def __init__(self, message: str = "unauthenticated"):
        super().__init__(message)


class ValidationError(LedgerError):
    """
    Input rejected before anything was persisted.

    ``issues`` holds one "field.path: message" entry per problem; the
    exception message joins them.
    """

    def __init__(self, message: str, issues=None):
        self.issues = list(issues or [])
        super().__init__(message)

"""Error handling utilities."""


class BrokerageError(Exception):
    """Base exception for the brokerage back office."""
    pass


class NotFoundError(BrokerageError):
    """Requested record does not exist."""
    pass


class SchemaAbsentError(BrokerageError):
    """Expected table, column or relationship is missing from the store."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class PermissionDeniedError(BrokerageError):
    """Actor role is not allowed to perform the operation."""
    pass


class SupabaseError(BrokerageError):
    """Supabase operation error."""
    pass

"""Exceptions raised by the reconciliation core."""


class ReconciliationError(Exception):
    """Base class for reconciliation core errors."""


class InvalidInput(ReconciliationError, ValueError):
    """A record is missing an identity field or carries an unusable date."""

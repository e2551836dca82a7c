from __future__ import annotations

from typing import Dict, Optional


class InvalidOperationError(ValueError):
    """
    Validation failure for an operation request.

    `errors` maps a field name to a user-facing message.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})


class OversellError(InvalidOperationError):
    """A sell larger than the position currently held for the asset."""


class OperationNotFoundError(LookupError):
    """Operation absent, or owned by another user."""

    def __init__(self, operation_id: str):
        super().__init__(f"Operation not found: {operation_id}")
        self.operation_id = operation_id

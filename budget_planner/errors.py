"""Exception types raised by the budget planner."""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for budget planner errors."""


class DuplicateNameError(BudgetError, ValueError):
    """Raised when adding a category, goal or label that already exists."""

    def __init__(self, kind: str, name: str, message: str | None = None):
        self.kind = kind
        self.name = name
        super().__init__(message or f"That {kind} already exists: {name}")


class NoPendingProposalError(BudgetError):
    """Raised when confirming or discarding with nothing staged."""


class AssistantError(BudgetError):
    """Raised when the budget coach cannot be reached or returns nothing usable."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class StorageError(BudgetError, OSError):
    """Raised when a budget document cannot be written."""


class EmailDeliveryError(BudgetError):
    """Raised when the e-mail API rejects or cannot receive a reminder."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

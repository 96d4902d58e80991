"""Exceptions raised by refx.

Only lifecycle misuse gets its own type. Errors raised by listener
callbacks, rebuild predicates and reducers propagate unchanged.
"""

from __future__ import annotations


class RefxError(Exception):
    """Base class for refx errors."""


class DisposedError(RefxError):
    """A notifier was used after it was disposed."""

    def __init__(self, label: str, operation: str) -> None:
        super().__init__(f"{label} is disposed; cannot {operation}")
        self.label = label
        self.operation = operation


class DuplicateInstantiationError(RefxError):
    """A second live notifier appeared for the same provider identity."""

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"duplicate instantiation of {label}: {reason}")
        self.label = label

"""
Exception taxonomy for the eTape calibration pipeline.

All errors derive from ValueError so callers that already guard pandas-style
validation with ``except ValueError`` keep working.
"""

from typing import Any, Optional


class CalibrationError(ValueError):
    """Base class for calibration pipeline errors."""


class MalformedInputError(CalibrationError):
    """Input source is unreadable or lacks required columns."""


class TypeCoercionError(CalibrationError):
    """A cell cannot be parsed into its declared semantic type."""

    def __init__(
        self,
        column: str,
        row: Any,
        value: Any,
        expected: str,
    ) -> None:
        self.column = column
        self.row = row
        self.value = value
        self.expected = expected
        super().__init__(
            f"Column '{column}', row {row}: cannot interpret {value!r} as {expected}"
        )


class ConfigurationError(CalibrationError):
    """Fixed configuration disagrees with the data or is degenerate."""


class ConvergenceError(CalibrationError):
    """Posterior sampling diagnostics indicate an unreliable fit."""

    def __init__(self, message: str, diagnostics: Optional[Any] = None) -> None:
        self.diagnostics = diagnostics
        super().__init__(message)

#!/usr/bin/env python3
"""
Error types for layered layout optimization.

Validity failures (UnreachableCharacter, ConstraintViolated) are returned by
the validity checker as values and only raised on request. Everything else
is fatal for the operation that raises it.
"""


class LayoutError(ValueError):
    """Structurally malformed layout (partial layer, misplaced behavior)."""


class ValidationFailure(ValueError):
    """Base class for reasons a layout is not valid."""


class UnreachableCharacter(ValidationFailure):
    """A required character cannot be produced by any key combo."""

    def __init__(self, char: str):
        self.char = char
        super().__init__(f"Character {char!r} is not reachable")


class ConstraintViolated(ValidationFailure):
    """A layout constraint predicate does not hold."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Constraint '{name}' violated")


class MalformedTable(ValueError):
    """External table data (frequencies, weights, keyboard) is invalid."""


class ConfigurationError(ValueError):
    """Configuration file content is invalid."""


class CalibrationError(ValueError):
    """Reference or starter scores cannot be used for normalization."""


class EmptySearchSpace(RuntimeError):
    """No valid candidate was found within max_retries proposals."""

    def __init__(self, attempts: int, last_failure=None):
        self.attempts = attempts
        self.last_failure = last_failure
        message = f"No valid mutation found after {attempts} attempts"
        if last_failure is not None:
            message += f" (last failure: {last_failure})"
        super().__init__(message)

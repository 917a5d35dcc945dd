"""Custom exception hierarchy for the RPG rules engine.

Every error raised by the engine inherits from RpgEngineError, so callers
can catch a single base class at the application boundary while still
receiving domain-specific context in ``details``.

Most of these errors are non-fatal inside a turn: the action pipeline turns
ValidationError, NotFoundError and CapacityExceeded into story-log messages,
and the narrator turns ExternalServiceError into a fallback narration.
PersistenceError is always surfaced to the caller.

Example:
    >>> from rpg_engine.core.exceptions import DiceRollError
    >>> raise DiceRollError("Malformed dice notation", expression="2x6")
"""

from __future__ import annotations

from typing import Any


class RpgEngineError(Exception):
    """Base exception for all rules engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Exceptions
# =============================================================================


class GameEngineError(RpgEngineError):
    """Base exception for rules processing errors."""


class DiceRollError(GameEngineError):
    """Raised when dice notation cannot be parsed or a roll is impossible."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class CombatError(GameEngineError):
    """Raised when a combat turn cannot be resolved.

    This covers unknown targets and acting in a finished encounter.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with combat context.

        Args:
            message: Human-readable error description.
            combatant_id: Identifier of the combatant involved.
            round_number: Current combat round when error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combatant_id:
            combined_details["combatant_id"] = combatant_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


class InvariantViolation(GameEngineError):
    """Raised when a value escapes the bounds the engine guarantees.

    Engine arithmetic clamps before constructing models, so seeing this
    error means a bug in the engine rather than bad input.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if value is not None:
            combined_details["value"] = value
        super().__init__(message, details=combined_details)


class CapacityExceeded(GameEngineError):
    """Raised when an inventory has no free slot for a new item."""

    def __init__(
        self,
        message: str,
        *,
        capacity: int | None = None,
        requested: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if capacity is not None:
            combined_details["capacity"] = capacity
        if requested is not None:
            combined_details["requested"] = requested
        super().__init__(message, details=combined_details)


# =============================================================================
# Lookup & Validation Exceptions
# =============================================================================


class ValidationError(RpgEngineError):
    """Raised when a proposed action or input fails validation.

    Inside the action pipeline this is recorded as a log message and the
    batch continues with the next action.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class NotFoundError(RpgEngineError):
    """Raised when a referenced save, item or monster template is missing."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize not-found error with lookup context.

        Args:
            message: Human-readable error description.
            kind: What was looked up (e.g., 'save', 'item', 'monster').
            key: The identifier or name that was not found.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if kind:
            combined_details["kind"] = kind
        if key:
            combined_details["key"] = key
        super().__init__(message, details=combined_details)


class ConfigurationError(RpgEngineError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


# =============================================================================
# External Collaborator Exceptions
# =============================================================================


class ExternalServiceError(RpgEngineError):
    """Raised when the narrative provider times out or fails.

    Never fatal to a turn: the narrator substitutes a local fallback
    response.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize external service error with provider context.

        Args:
            message: Human-readable error description.
            service: Name of the external service.
            model: Name of the AI model involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if service:
            combined_details["service"] = service
        if model:
            combined_details["model"] = model
        super().__init__(message, details=combined_details)


class PersistenceError(RpgEngineError):
    """Raised when a save cannot be written, read or deleted.

    The in-memory GameState is untouched, so the caller may retry.
    """

    def __init__(
        self,
        message: str,
        *,
        save_id: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize persistence error with storage context.

        Args:
            message: Human-readable error description.
            save_id: Identifier of the save involved.
            operation: Storage operation that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if save_id:
            combined_details["save_id"] = save_id
        if operation:
            combined_details["operation"] = operation
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "RpgEngineError",
    # Game engine exceptions
    "GameEngineError",
    "DiceRollError",
    "CombatError",
    "InvariantViolation",
    "CapacityExceeded",
    # Lookup & validation exceptions
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    # External collaborator exceptions
    "ExternalServiceError",
    "PersistenceError",
]

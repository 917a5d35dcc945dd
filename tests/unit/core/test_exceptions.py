"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from rpg_engine.core.exceptions import (
    CapacityExceeded,
    CombatError,
    ConfigurationError,
    DiceRollError,
    ExternalServiceError,
    GameEngineError,
    InvariantViolation,
    NotFoundError,
    PersistenceError,
    RpgEngineError,
    ValidationError,
)


class TestRpgEngineError:
    """Tests for the base RpgEngineError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = RpgEngineError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = RpgEngineError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert str(exc) == "Test error [key='value', count=42]"

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(RpgEngineError("Test", details={"x": 1}))
        assert "RpgEngineError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestGameEngineExceptions:
    """Tests for rules engine exceptions."""

    def test_dice_roll_error(self) -> None:
        """Test DiceRollError with expression."""
        exc = DiceRollError("Invalid dice", expression="1d0+5")
        assert exc.details["expression"] == "1d0+5"

    def test_combat_error(self) -> None:
        """Test CombatError with combat context."""
        exc = CombatError("Unknown target", combatant_id="goblin-1", round_number=3)
        assert exc.details["combatant_id"] == "goblin-1"
        assert exc.details["round_number"] == 3

    def test_invariant_violation(self) -> None:
        """Test InvariantViolation records the offending field."""
        exc = InvariantViolation("HP out of range", field_name="current_hit_points", value=-3)
        assert exc.details["field_name"] == "current_hit_points"
        assert exc.details["value"] == -3

    def test_capacity_exceeded(self) -> None:
        """Test CapacityExceeded records capacity and request."""
        exc = CapacityExceeded("Inventory full", capacity=30, requested=31)
        assert exc.details == {"capacity": 30, "requested": 31}

    @pytest.mark.parametrize(
        "exc_type", [DiceRollError, CombatError, InvariantViolation, CapacityExceeded]
    )
    def test_game_engine_inheritance(self, exc_type: type[GameEngineError]) -> None:
        """Test rules exceptions share the GameEngineError base."""
        exc = exc_type("Error")
        assert isinstance(exc, GameEngineError)
        assert isinstance(exc, RpgEngineError)


class TestBoundaryExceptions:
    """Tests for configuration, lookup, provider and persistence errors."""

    def test_configuration_error(self) -> None:
        """Test ConfigurationError with config key."""
        exc = ConfigurationError("Missing API key", config_key="api_key")
        assert exc.details["config_key"] == "api_key"

    def test_validation_error(self) -> None:
        """Test ValidationError with field info."""
        exc = ValidationError("Invalid value", field_name="amount", invalid_value=-5)
        assert exc.details["field_name"] == "amount"
        assert exc.details["invalid_value"] == -5

    def test_not_found_error(self) -> None:
        """Test NotFoundError with kind and key."""
        exc = NotFoundError("Save not found", kind="save", key="abc")
        assert exc.details == {"kind": "save", "key": "abc"}

    def test_external_service_error(self) -> None:
        """Test ExternalServiceError with service and model."""
        exc = ExternalServiceError("Timed out", service="narrative_provider", model="m")
        assert exc.details["service"] == "narrative_provider"
        assert exc.details["model"] == "m"

    def test_persistence_error(self) -> None:
        """Test PersistenceError with save id and operation."""
        exc = PersistenceError("Disk full", save_id="abc", operation="save")
        assert exc.details["save_id"] == "abc"
        assert exc.details["operation"] == "save"
        assert not isinstance(exc, GameEngineError)


class TestExceptionChaining:
    """Tests for exception chaining behavior."""

    def test_raise_from(self) -> None:
        """Test that exceptions can be properly chained."""
        original = OSError("Original error")

        with pytest.raises(PersistenceError) as exc_info:
            try:
                raise original
            except OSError as e:
                raise PersistenceError("Wrapped error") from e

        assert exc_info.value.__cause__ is original

"""Core module providing configuration, logging, rules tables and exceptions.

Exports:
    Exceptions:
        RpgEngineError: Base exception for all engine errors.
        ValidationError, NotFoundError, CapacityExceeded,
        ExternalServiceError, PersistenceError, InvariantViolation.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging, get_logger, bind_context, clear_context.
"""

from __future__ import annotations

from rpg_engine.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
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
from rpg_engine.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "RpgEngineError",
    "GameEngineError",
    "DiceRollError",
    "CombatError",
    "InvariantViolation",
    "CapacityExceeded",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "ExternalServiceError",
    "PersistenceError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]

"""
Stagehand - Core Module

Foundational pieces shared by every other package:
- Unified error handling

Usage:
    from core import InvalidTransitionError, LifeCycleError

    try:
        session.start()
    except InvalidTransitionError as e:
        logger.error("Session already started", stage=e.current_stage)
"""

from core.errors import (
    ErrorContext,
    ErrorSeverity,
    InvalidTransitionError,
    LifeCycleConfigError,
    LifeCycleError,
    SessionAlreadyBoundError,
    SessionNotBoundError,
)

__all__ = [
    "ErrorContext",
    "ErrorSeverity",
    "InvalidTransitionError",
    "LifeCycleConfigError",
    "LifeCycleError",
    "SessionAlreadyBoundError",
    "SessionNotBoundError",
]

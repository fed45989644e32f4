from __future__ import annotations


class TransitionGateError(RuntimeError):
    """Base error for transitiongate."""


class ConfigError(TransitionGateError):
    """Raised when the event-to-state configuration is missing or malformed."""


class InputError(TransitionGateError):
    """Raised when required action inputs or environment values are missing."""


class TrackerError(TransitionGateError):
    """Base error for failures reported by the issue tracker."""


class ItemNotFoundError(TrackerError):
    """Raised when the tracker has no issue for the requested key."""


class TransitionApplyError(TrackerError):
    """Raised when the tracker rejects a transition."""


class NoTransitionsError(TrackerError):
    """Raised when the tracker returns no transition list for an issue."""

"""
Exception hierarchy for the HandBrake interop layer.

Every error carries a technical message plus a context dict so callers can
log it or surface it in a UI without parsing strings.
"""

from typing import Any, Dict, Optional


class HandBrakeError(Exception):
    """Base exception for all hbq errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_code': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
        }


class InvalidTaskError(HandBrakeError):
    """A task value is not a member of the enumeration its table is keyed by."""

    def __init__(self, field_name: str, value: Any):
        super().__init__(
            f"Invalid value for {field_name}: {value!r}",
            context={'field': field_name, 'value': repr(value)},
        )


class TitleNotFoundError(HandBrakeError):
    """The job references a title that is not in the current scan."""

    def __init__(self, title_number: int, context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context['title'] = title_number
        super().__init__(
            f"Title {title_number} not found in the last scan. This is probably a bug.",
            context=context,
        )
        self.title_number = title_number


class EngineBusyError(HandBrakeError):
    """A scan or encode is already in progress on this instance."""

    def __init__(self, active_phase: str, requested: str):
        super().__init__(
            f"Cannot start {requested}: {active_phase} already in progress",
            context={'active': active_phase, 'requested': requested},
        )


class EngineClosedError(HandBrakeError):
    """The native handle has already been released."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot {operation}: the engine has been closed",
            context={'operation': operation},
        )


class EngineLoadError(HandBrakeError):
    """The native library could not be loaded or lacks a required symbol."""

    def __init__(self, message: str, library_path: Optional[str] = None):
        context = {'library_path': library_path} if library_path else {}
        super().__init__(message, context=context)

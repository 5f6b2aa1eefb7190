"""Exceptions raised by the race engine and its plumbing."""

from __future__ import annotations


class KartsimError(Exception):
    """Base exception for all kartsim errors."""


class RaceSetupError(KartsimError):
    """Raised when the race is driven in the wrong order."""


class RegistrationClosed(RaceSetupError):
    """Raised when a car registers after the race has started."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot register {name!r}: race already started")


class NotReady(RaceSetupError):
    """Raised when the race is run or exported in the wrong state."""


class ConfigError(KartsimError, ValueError):
    """Raised when a race configuration is invalid."""


class ReportWriteError(KartsimError):
    """Raised when the final report cannot be persisted."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write report to {path}: {reason}")

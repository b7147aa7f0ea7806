"""Exception types shared by the services and the API layer."""

from __future__ import annotations


class EcoRouteError(Exception):
    """Base class for errors raised by the routing engine."""


class NotFoundError(EcoRouteError, LookupError):
    """A route or truck id does not exist in the store."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind.capitalize()} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class ValidationFailure(EcoRouteError, ValueError):
    """Input was rejected before any simulation work started."""


class TransientIOError(EcoRouteError):
    """A store or network call failed or timed out; the caller may retry later."""


class StartupError(EcoRouteError):
    """The service cannot start (predictor training or storage connectivity failed)."""

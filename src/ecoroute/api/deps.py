"""Request-scoped helpers shared by the route modules."""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import HTTPException, Request, status

from ..errors import NotFoundError
from ..services.container import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def raise_http_error(exc: Exception, action: str) -> NoReturn:
    """Translate a service failure into the matching HTTP error."""
    if isinstance(exc, HTTPException):
        raise exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logging.exception(f"Error trying to {action}: {exc}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(exc)}",
    ) from exc

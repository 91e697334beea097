"""Error kinds raised by the services.

The HTTP layer maps each kind to a status code in ``app.main``; services
never raise ``HTTPException`` themselves.
"""
from __future__ import annotations


class FamilyGraphError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(FamilyGraphError):
    status_code = 404


class InvalidArgument(FamilyGraphError):
    status_code = 400


class Conflict(FamilyGraphError):
    status_code = 409


class PersistenceFailure(FamilyGraphError):
    # store failures are reported as bad requests
    status_code = 400


__all__ = ["FamilyGraphError", "NotFound", "InvalidArgument", "Conflict", "PersistenceFailure"]

# Overview: Error taxonomy shared by services and routes.

"""
Every failure a service can report maps to exactly one HTTP status.

Routes catch StorefrontError and render {"message": ...} with the carried
status code. Anything else is an internal error and is logged at the route
boundary.
"""

from __future__ import annotations

import re

from flask import jsonify


class StorefrontError(Exception):
    """Base class for expected, user-visible failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Forbidden(StorefrontError):
    """Authorization gate failure."""
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class Unauthorized(StorefrontError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(StorefrontError, ValueError):
    """400-level input problem."""
    status_code = 400


class InvalidReference(StorefrontError, ValueError):
    """A malformed identifier was supplied for a relational lookup."""
    status_code = 400


class NotFound(StorefrontError):
    """Well-formed identifier, no matching row."""
    status_code = 404


class Conflict(StorefrontError, ValueError):
    """409-level uniqueness violation (e.g., duplicate brand name)."""
    status_code = 409


_ID_RE = re.compile(r"^[1-9][0-9]{0,17}$")

# Largest value a signed 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1


def parse_id(raw, label: str) -> int:
    """
    Parse a path or payload identifier.

    Ids are positive integers. A value that cannot be one raises
    InvalidReference, which is distinct from "valid but not found".
    """
    if isinstance(raw, bool):
        raise InvalidReference(f"Invalid {label} ID")
    if isinstance(raw, int):
        if 0 < raw <= MAX_ID:
            return raw
        raise InvalidReference(f"Invalid {label} ID")
    if isinstance(raw, str) and _ID_RE.match(raw.strip()):
        return int(raw.strip())
    raise InvalidReference(f"Invalid {label} ID")


def error_response(exc: StorefrontError):
    return jsonify({"message": exc.message}), exc.status_code

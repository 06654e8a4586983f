#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Custom exceptions for the dial-plan editor library.

This module defines the exception hierarchy used throughout the library:
- DialplanError: Base exception for all dial-plan errors
- SchemaError: Malformed parameter or node-type schemas
- UnknownTypeError: Unregistered action, delay or node type
- GraphError: Invalid graph mutations
- ApiError: Non-success responses from the backend
- TransportError: Requests that never got a response
- ResponseError: Response bodies that do not decode into the expected record
- InvalidIdError: Record ids rejected before any request is sent
- ReadOnlyError: Mutations attempted on a limited-capability editor

The editor session catches DialplanError at the boundary of each user
action, so nothing below it is fatal to the process.
"""

from typing import Any, Optional


class DialplanError(Exception):
    """Base exception for all dial-plan errors."""

    pass


class SchemaError(DialplanError, ValueError):
    """Raised when a parameter definition or node-type schema is invalid."""

    pass


class UnknownTypeError(DialplanError, KeyError):
    """Raised when a type tag has no registered schema."""

    def __init__(self, kind: str, tag: Any):
        self.kind = kind
        self.tag = tag
        super().__init__(f"Unknown {kind} type: {tag!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class GraphError(DialplanError):
    """Raised when a graph mutation would break a structural invariant."""

    pass


class ApiError(DialplanError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, status: int, message: str, payload: Optional[Any] = None):
        self.status = status
        self.message = message
        self.payload = payload
        super().__init__(f"API error {status}: {message}")


class NotFoundError(ApiError):
    """Raised on 404 responses."""

    pass


class AuthenticationError(ApiError):
    """Raised on 401 responses."""

    pass


class TransportError(DialplanError):
    """Raised when a request fails without any response."""

    pass


class ReadOnlyError(DialplanError):
    """Raised when mutating an editor that lacks the generator capability."""

    pass


class ResponseError(DialplanError):
    """Raised when a response body is not valid JSON or not the expected record."""

    pass


class InvalidIdError(DialplanError, ValueError):
    """Raised when a record id is not a positive integer."""

    pass

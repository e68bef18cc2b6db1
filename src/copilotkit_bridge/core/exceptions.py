"""
Application exceptions for the CopilotKit bridge.

Every error carries an ErrorCode so the API layer can map it to an HTTP
status and a consistent error body.
"""

from __future__ import annotations

from typing import Any

from copilotkit_bridge.models.error_models import ErrorCode


class AppException(Exception):
    """Base application exception with error code support.

    Example:
        raise AppException(
            code=ErrorCode.MALFORMED_PAYLOAD,
            message="The request must include chat messages.",
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.cause = cause
        super().__init__(message)


class MalformedPayloadError(AppException):
    """Inbound payload cannot be served (e.g. no chat messages)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            code=ErrorCode.MALFORMED_PAYLOAD,
            message=message,
            details={"field": field} if field else None,
        )


class ToolNotFoundError(AppException):
    """Requested tool is not registered."""

    def __init__(self, name: str, message: str):
        super().__init__(code=ErrorCode.TOOL_NOT_FOUND, message=message, details={"tool": name})
        self.name = name


class ToolExecutionError(AppException):
    """A registered tool's executor raised."""

    def __init__(self, name: str, message: str, cause: Exception | None = None):
        super().__init__(
            code=ErrorCode.TOOL_EXECUTION_FAILED,
            message=message,
            details={"tool": name},
            cause=cause,
        )
        self.name = name


__all__ = [
    "AppException",
    "MalformedPayloadError",
    "ToolExecutionError",
    "ToolNotFoundError",
]

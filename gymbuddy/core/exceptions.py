"""
Custom exception classes for the GymBuddy application.
Provides structured error handling with machine-readable error codes.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes shared with the mobile client"""

    # Authentication errors (401)
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_NOT_AUTHENTICATED = "AUTH_NOT_AUTHENTICATED"

    # Authorization errors (403)
    AUTHZ_FORBIDDEN = "AUTHZ_FORBIDDEN"
    AUTHZ_WRITE_DENIED = "AUTHZ_WRITE_DENIED"

    # Resource errors (404, 409)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_EMPTY_MESSAGE = "VALIDATION_EMPTY_MESSAGE"
    VALIDATION_INVALID_IDENTITY = "VALIDATION_INVALID_IDENTITY"

    # Matching and chat errors (503, retryable)
    LIKE_NOT_RECORDED = "LIKE_NOT_RECORDED"
    MATCH_DETECTION_FAILED = "MATCH_DETECTION_FAILED"
    CHAT_BOOTSTRAP_FAILED = "CHAT_BOOTSTRAP_FAILED"
    MESSAGE_NOT_SENT = "MESSAGE_NOT_SENT"

    # Live subscriptions
    SUBSCRIPTION_TERMINATED = "SUBSCRIPTION_TERMINATED"

    # Server errors (500+)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"


class AppException(Exception):
    """
    Base exception class for application errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_ERROR,
        status_code: int = 500,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary"""
        response = {
            "detail": self.message,
            "code": self.code.value,
        }
        if self.field:
            response["field"] = self.field
        if self.metadata:
            response["metadata"] = self.metadata
        return response


# Authentication Errors (401)


class AuthenticationError(AppException):
    """Base authentication error"""

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.AUTH_NOT_AUTHENTICATED,
        field: str | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=401,
            field=field,
        )


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password"""

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(
            message=message,
            code=ErrorCode.AUTH_INVALID_CREDENTIALS,
        )


class TokenInvalidError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            code=ErrorCode.AUTH_TOKEN_INVALID,
        )


# Authorization Errors (403)


class AuthorizationError(AppException):
    """Base authorization error"""

    def __init__(
        self,
        message: str = "You are not allowed to do this",
        code: ErrorCode = ErrorCode.AUTHZ_FORBIDDEN,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            metadata=metadata,
        )


class WriteDenied(AuthorizationError):
    """Write rejected by the access policy. Never retried."""

    def __init__(self, message: str = "Write denied by access policy", path: str | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHZ_WRITE_DENIED,
            metadata={"path": path} if path else None,
        )


# Resource Errors (404, 409)


class NotFoundError(AppException):
    """Resource not found"""

    def __init__(
        self,
        message: str = "Requested resource was not found",
        resource: str | None = None,
    ):
        metadata = {"resource": resource} if resource else None
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            metadata=metadata,
        )


class AlreadyExistsError(AppException):
    """Resource already exists"""

    def __init__(
        self,
        message: str = "Resource already exists",
        field: str | None = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_ALREADY_EXISTS,
            status_code=409,
            field=field,
        )


# Validation Errors (422)


class ValidationError(AppException):
    """Validation error"""

    def __init__(
        self,
        message: str = "Please check the submitted data",
        field: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            field=field,
        )


class EmptyMessage(ValidationError):
    """Blank chat message, rejected before any write"""

    def __init__(self, message: str = "Message text is empty"):
        super().__init__(
            message=message,
            field="text",
            code=ErrorCode.VALIDATION_EMPTY_MESSAGE,
        )


class InvalidIdentity(ValidationError):
    """User id cannot be used to build a pair key"""

    def __init__(self, message: str = "Invalid user identity", field: str | None = None):
        super().__init__(
            message=message,
            field=field,
            code=ErrorCode.VALIDATION_INVALID_IDENTITY,
        )


# Retryable matching/chat errors (503)


class RetryableError(AppException):
    """Transient failure; the operation is safe to retry"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_UNAVAILABLE,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=503,
            metadata=metadata,
        )


class LikeNotRecorded(RetryableError):
    """The like edge could not be written"""

    def __init__(self, message: str = "Could not register your like. Try again"):
        super().__init__(message=message, code=ErrorCode.LIKE_NOT_RECORDED)


class DetectionFailed(RetryableError):
    """
    Match detection aborted before anything was written.
    Safe to rerun the whole detection sequence.
    """

    def __init__(self, message: str = "Could not check for a mutual like. Try again"):
        super().__init__(message=message, code=ErrorCode.MATCH_DETECTION_FAILED)


class ChannelBootstrapFailed(RetryableError):
    """The chat channel document could not be materialized"""

    def __init__(self, message: str = "Could not initialize chat", channel: str | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.CHAT_BOOTSTRAP_FAILED,
            metadata={"channel": channel} if channel else None,
        )


class MessageNotSent(RetryableError):
    """Sending failed; ``text`` holds the unsent message for the input box"""

    def __init__(self, text: str, message: str = "Could not send message. Try again"):
        self.text = text
        super().__init__(
            message=message,
            code=ErrorCode.MESSAGE_NOT_SENT,
            metadata={"text": text},
        )


# Live subscriptions


class SubscriptionError(AppException):
    """
    A live subscription died. Terminal: the stream never resumes silently,
    the subscriber has to resubscribe.
    """

    def __init__(self, message: str = "Live subscription terminated", query: str | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.SUBSCRIPTION_TERMINATED,
            status_code=500,
            metadata={"query": query} if query else None,
        )


# Server Errors (500)


class ServerError(AppException):
    """Internal server error"""

    def __init__(
        self,
        message: str = "Something went wrong",
        code: ErrorCode = ErrorCode.SERVER_ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=500,
        )

"""
Custom Exceptions

Centralized exception definitions for better error handling.
FastAPI automatically converts these to appropriate HTTP responses.

SECURITY: Every authorization failure surfaces as the same 403 body,
whether the resource is missing, no grant path exists, or the level is too
low. The internal reason is kept on the exception for logging only.
"""
from fastapi import HTTPException, status


class PermissionDenied(HTTPException):
    """
    Raised when the caller's resolved role level does not satisfy an
    operation's threshold, or no grant path exists at all.
    """

    def __init__(self, reason: str = "insufficient_level"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="permission_denied"
        )
        self.reason = reason


class NotAssociated(PermissionDenied):
    """
    Raised when a grant removal targets a user with no grant on the resource.

    Folded into the uniform permission_denied response.
    """

    def __init__(self):
        super().__init__(reason="not_associated")


class InvalidResourceScope(HTTPException):
    """
    Raised when a grant or note would be attached to more than one level of
    the hierarchy (or, for grants, to none).
    """

    def __init__(self, reason: str = "scope_not_exclusive"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bad_format"
        )
        self.reason = reason


class UserNotFoundError(HTTPException):
    """Raised when user cannot be found."""

    def __init__(self, user_id: int = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User not found: {user_id}" if user_id is not None else "User not found"
        )


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class RateLimitExceeded(HTTPException):
    """Raised when rate limit is exceeded."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)}
        )


class InvalidInputError(HTTPException):
    """Raised when input validation fails."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )

from fastapi import HTTPException, status
from typing import Dict, Any


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str, headers: Dict[str, Any] = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationException(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundException(APIException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictException(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DuplicateAccount(ConflictException):
    pass


class AlreadyFollowing(ConflictException):
    def __init__(self, detail: str = "You are already following this user"):
        super().__init__(detail)


class NotFollowing(ConflictException):
    def __init__(self, detail: str = "You are not following this user"):
        super().__init__(detail)


class AlreadyLiked(ConflictException):
    def __init__(self, detail: str = "You have already liked this post"):
        super().__init__(detail)


class NotLiked(ConflictException):
    def __init__(self, detail: str = "You have not liked this post"):
        super().__init__(detail)


class UnauthorizedException(APIException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class TokenExpired(UnauthorizedException):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class TokenMalformed(UnauthorizedException):
    def __init__(self, detail: str = "Invalid authentication token"):
        super().__init__(detail)


class ForbiddenException(APIException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class StorageUnavailable(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class IdentifierConflict(Exception):
    """Two registrations raced for the same user_id; allocation must be retried."""

    def __init__(self, user_id: int):
        super().__init__(f"user_id {user_id} already taken")
        self.user_id = user_id

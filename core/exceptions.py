from typing import Any, Optional

from fastapi import status


class RestaurantException(Exception):
    """Error de dominio con su código HTTP asociado."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationException(RestaurantException):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedException(RestaurantException):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(RestaurantException):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(RestaurantException):
    status_code = status.HTTP_409_CONFLICT

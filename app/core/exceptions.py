"""
Domain errors raised by the services and rendered by the API as ``{"message": ...}``.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """A plan, user or investment does not exist"""
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AppError):
    """Bad field values, insufficient funds, duplicate names"""
    status_code = status.HTTP_400_BAD_REQUEST


class DurationFormatError(ValidationError):
    """Duration string is not of the form '<integer> <unit>'"""

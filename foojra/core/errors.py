"""
Foojra API — Domain errors

Services raise these at the point of detection; the exception handler in
foojra.main turns them into `{"detail": <message>}` responses.
"""
from fastapi import status


class FoojraError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed."
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(FoojraError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class UnauthorizedError(FoojraError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized."


class ValidationError(FoojraError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class ConflictError(FoojraError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists."


class StaleDataError(FoojraError):
    """Raised when an optimistic lock conflict survives every retry:
    the row's version_id kept changing between our read and update.
    """
    status_code = status.HTTP_409_CONFLICT
    default_message = "The order was modified concurrently. Please retry."
    headers = {"Retry-After": "1"}

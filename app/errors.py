from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)


class ParkingError(Exception):
    """Base class for domain errors; carries the HTTP status it maps to."""

    status_code = HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ParkingError):
    status_code = HTTP_404_NOT_FOUND


class ConflictError(ParkingError):
    status_code = HTTP_409_CONFLICT


class ValidationError(ParkingError):
    status_code = HTTP_400_BAD_REQUEST

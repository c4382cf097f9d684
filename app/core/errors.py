from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class InvalidArgument(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid argument"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class UnsupportedMediaType(ServiceError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    default_message = "Unsupported file type"


class Internal(ServiceError):
    pass


def internal_error(message: str, exc: Exception, debug: bool = False) -> Internal:
    """Wrap a store failure; the underlying text only crosses the boundary in development."""
    if debug:
        return Internal(f"{message}: {exc}")
    return Internal(message)

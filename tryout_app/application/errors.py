class TryoutPlatformError(Exception):
    """Base class for failures a lifecycle operation reports back to its caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(TryoutPlatformError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(TryoutPlatformError):
    status_code = 403


class NotFound(TryoutPlatformError):
    status_code = 404


class ValidationError(TryoutPlatformError):
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class StorageError(TryoutPlatformError):
    status_code = 500

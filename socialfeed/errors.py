class ApiError(Exception):
    status_code = 500


class ValidationError(ApiError, ValueError):
    status_code = 400


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class StorageIOError(ApiError, IOError):
    """Storage write or delete gave up after exhausting its retries."""

    status_code = 503

    def __init__(self, message, last_error=None):
        super().__init__(message)
        self.last_error = last_error

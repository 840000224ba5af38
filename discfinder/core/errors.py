"""Domain exceptions; main.py turns them into JSON error responses."""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class ConflictError(ServiceError):
    """Wrong order/disc state, already issued codes, illegal transition."""

    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class InternalError(ServiceError):
    status_code = 500


class UpstreamError(ServiceError):
    status_code = 502


class ServiceUnavailableError(ServiceError):
    status_code = 503

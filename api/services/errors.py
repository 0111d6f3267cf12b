"""Service-layer error taxonomy, mapped to HTTP status codes in main.py."""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed or missing request fields."""
    status_code = 400


class AuthorizationError(ServiceError):
    """Bad cron secret or unknown admin id."""
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class PersistenceError(ServiceError):
    """A store read or write failed."""
    status_code = 500


class DependencyError(ServiceError):
    """A secondary effect (audit entry, bulk delivery flip) failed.

    Services log and swallow it; the primary write stands.
    """
    status_code = 500

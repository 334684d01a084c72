"""Service layer — business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class ConfigurationError(ServiceError):
    """Malformed rule payload or missing connection parameters (-> HTTP 422)."""


class ValidationError(ServiceError):
    """Input validation error (-> HTTP 422)."""


class AuthenticationError(ServiceError):
    """Missing credentials on an inbound request (-> HTTP 401)."""


class SyncAlreadyInProgressError(ServiceError):
    """A sync is already running; try again later (-> HTTP 409)."""


class StoreError(ServiceError):
    """Local persistence failure (-> HTTP 500)."""

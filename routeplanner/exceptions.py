"""
Custom exceptions for the route planner
"""
from typing import Optional


class RoutingError(Exception):
    """Base exception for the route planner"""
    pass


class ConfigurationError(RoutingError):
    """Raised when required configuration or reference data is missing"""
    pass


class DegenerateInputError(RoutingError):
    """Raised when an arc is requested between coincident points in strict mode"""
    pass


class ProviderError(RoutingError):
    """Raised when a remote routing provider cannot produce a route"""

    code = "SERVICE_UNAVAILABLE"
    retryable = True

    def __init__(self, message: str, provider: Optional[str] = None, status: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.status = status


class NoRoutesFound(ProviderError):
    code = "NO_ROUTES_FOUND"


class ServiceUnavailable(ProviderError):
    code = "SERVICE_UNAVAILABLE"


class InvalidRequest(ProviderError):
    code = "INVALID_REQUEST"
    retryable = False


class MalformedPayload(ProviderError):
    code = "MALFORMED_PAYLOAD"


class MissingCredential(ConfigurationError, ProviderError):
    """Raised when a provider is called without its API key"""

    code = "MISSING_CREDENTIAL"
    retryable = False


class RequestCancelled(ProviderError):
    """Raised when an in-flight attempt is cancelled or times out"""

    code = "CANCELLED"
    retryable = False


_MESSAGES = {
    "NO_ROUTES_FOUND": "No route found between these locations",
    "SERVICE_UNAVAILABLE": "Routing service temporarily unavailable",
    "INVALID_REQUEST": "The route request was invalid, please check the locations",
    "MALFORMED_PAYLOAD": "Routing service returned an unexpected response",
    "CANCELLED": "Route request was cancelled",
    "MISSING_CREDENTIAL": "Routing provider is not configured",
}


def describe_error(error: Exception) -> str:
    """User-facing message for a routing failure."""
    code = getattr(error, "code", None)
    if code in _MESSAGES:
        return _MESSAGES[code]
    return str(error) or "Unknown routing error"

from .security import (
    create_access_token,
    verify_token
)

from .exceptions import (
    SkinSenseException,
    AuthorizationError,
    ResourceNotFoundError,
    IntegrityRepairError,
    RoutineSynthesisError,
    InsufficientCatalog,
    TruncatedResponse,
    ContentBlocked,
    MalformedResponse,
    ProviderUnavailable,
    NoStepsResolved,
    not_found,
    bad_request,
    unauthorized,
    forbidden,
    internal_error,
    synthesis_error_response
)

__all__ = [
    # Security
    "create_access_token",
    "verify_token",
    # Exceptions
    "SkinSenseException",
    "AuthorizationError",
    "ResourceNotFoundError",
    "IntegrityRepairError",
    "RoutineSynthesisError",
    "InsufficientCatalog",
    "TruncatedResponse",
    "ContentBlocked",
    "MalformedResponse",
    "ProviderUnavailable",
    "NoStepsResolved",
    "not_found",
    "bad_request",
    "unauthorized",
    "forbidden",
    "internal_error",
    "synthesis_error_response"
]

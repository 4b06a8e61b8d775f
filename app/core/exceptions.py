from typing import Optional

from fastapi import HTTPException, status

class SkinSenseException(Exception):
    """Base exception for SkinSense API"""
    pass

class AuthorizationError(SkinSenseException):
    """Raised when user lacks permissions"""
    pass

class ResourceNotFoundError(SkinSenseException):
    """Raised when requested resource doesn't exist"""
    pass

class IntegrityRepairError(SkinSenseException):
    """Raised when routines referencing a deleted product could not be repaired"""
    pass


class RoutineSynthesisError(SkinSenseException):
    """Base class for failures while turning an AI response into a routine"""
    pass

class InsufficientCatalog(RoutineSynthesisError):
    """Fewer active products than a routine needs"""

    def __init__(self, product_count: int, minimum: int):
        super().__init__(f"Need at least {minimum} active products, found {product_count}")
        self.product_count = product_count
        self.minimum = minimum

class TruncatedResponse(RoutineSynthesisError):
    """The AI response was cut off before the JSON payload completed"""
    pass

class ContentBlocked(RoutineSynthesisError):
    """The AI provider refused to answer because of its safety filters"""
    pass

class MalformedResponse(RoutineSynthesisError):
    """The AI response is not valid JSON or does not follow the routine schema"""

    def __init__(self, message: str, snippet: str = ""):
        super().__init__(message)
        self.snippet = snippet

class ProviderUnavailable(RoutineSynthesisError):
    """The AI provider could not be reached or rejected the request"""

    def __init__(self, message: str, kind: str = "transport", status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind  # "auth", "rate_limit", "transport", "api"
        self.status_code = status_code

class NoStepsResolved(RoutineSynthesisError):
    """None of the suggested steps matched a product in the catalog"""
    pass


# Common HTTP exceptions
def not_found(detail: str = "Resource not found"):
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail
    )

def bad_request(detail: str = "Bad request"):
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail
    )

def unauthorized(detail: str = "Unauthorized"):
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )

def forbidden(detail: str = "Forbidden"):
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail
    )

def internal_error(detail: str = "Internal server error"):
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail
    )

def synthesis_error_response(exc: RoutineSynthesisError) -> HTTPException:
    """Map a routine synthesis failure onto the HTTP status the client sees"""
    if isinstance(exc, ProviderUnavailable):
        if exc.kind == "rate_limit":
            return HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded. Please try again later."
            )
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc)
        )
    if isinstance(exc, ContentBlocked):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc)
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"AI generated invalid response format: {exc}"
    )

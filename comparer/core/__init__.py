"""
Profile Comparer Core Module

Contains the shared data models and the error taxonomy.
"""

from .models import (
    GenerationMode,
    GenerationParams,
    GenerationRequest,
    LanguageShare,
    Profile,
    ProfilePair,
    RepoSummary,
)

from .errors import (
    # Messages
    INSUFFICIENT_QUOTA_MESSAGE,
    COMPARISON_FAILED_MESSAGE,
    ROAST_FAILED_MESSAGE,
    STREAM_ERROR_MESSAGE,

    # Error types
    ErrorKind,
    ErrorDetails,
    ComparerException,

    # Request errors
    InvalidRequestError,
    ServiceUnavailableError,

    # Aggregation errors
    ProfileNotFoundError,
    GitHubRateLimitedError,
    GitHubUnauthorizedError,
    ProfileFetchError,

    # Generation errors
    InsufficientQuotaError,
    UnauthorizedError,
    RateLimitedError,
    UpstreamFailureError,
    TransportFailureError,

    # Handlers
    handle_openrouter_response,
    handle_transport_error,
    handle_github_error,
)

__all__ = [
    # Models
    "GenerationMode",
    "GenerationParams",
    "GenerationRequest",
    "LanguageShare",
    "Profile",
    "ProfilePair",
    "RepoSummary",

    # Messages
    "INSUFFICIENT_QUOTA_MESSAGE",
    "COMPARISON_FAILED_MESSAGE",
    "ROAST_FAILED_MESSAGE",
    "STREAM_ERROR_MESSAGE",

    # Errors
    "ErrorKind",
    "ErrorDetails",
    "ComparerException",
    "InvalidRequestError",
    "ServiceUnavailableError",
    "ProfileNotFoundError",
    "GitHubRateLimitedError",
    "GitHubUnauthorizedError",
    "ProfileFetchError",
    "InsufficientQuotaError",
    "UnauthorizedError",
    "RateLimitedError",
    "UpstreamFailureError",
    "TransportFailureError",
    "handle_openrouter_response",
    "handle_transport_error",
    "handle_github_error",
]

"""
Profile Comparer - Error Definitions

Error taxonomy shared by the profile aggregation and the streaming relay.

- Aggregation errors are raised before any streaming starts and are
  returned to the caller as a single JSON failure.
- Generation errors are raised by the upstream adapter and converted by the
  relay into exactly one terminal error event.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx


# User-facing messages sent over the event stream
INSUFFICIENT_QUOTA_MESSAGE = (
    "Insufficient API credits. Please add credits to your OpenRouter account."
)
COMPARISON_FAILED_MESSAGE = "Failed to generate AI comparison. Please try again."
ROAST_FAILED_MESSAGE = "Failed to generate roast. Please try again."
STREAM_ERROR_MESSAGE = "Stream error occurred"


class ErrorKind(str, Enum):
    """Error classification."""
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_QUOTA = "insufficient_quota"
    TRANSPORT_FAILURE = "transport_failure"
    UPSTREAM_FAILURE = "upstream_failure"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


@dataclass
class ErrorDetails:
    """Full error information for API responses."""
    code: str
    message: str
    kind: ErrorKind

    request_id: str = ""
    param: Optional[str] = None

    # Recovery fields
    retry_after: Optional[int] = None
    reset_time: Optional[str] = None

    # Debug fields
    details: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "kind": self.kind.value,
        }

        if self.request_id:
            result["request_id"] = self.request_id
        if self.param:
            result["param"] = self.param
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        if self.reset_time:
            result["resetTime"] = self.reset_time
        if self.details:
            result["details"] = self.details
        if self.extra:
            result.update(self.extra)

        return result


class ComparerException(Exception):
    """Base exception for all profile comparer errors."""

    def __init__(self, error: ErrorDetails, status_code: int = 500):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


# ============================================================
# Request Validation
# ============================================================

class InvalidRequestError(ComparerException):
    """Request validation failed."""

    def __init__(self, message: str, param: str = "", request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="invalid_request",
                message=message,
                kind=ErrorKind.INVALID_REQUEST,
                param=param or None,
                request_id=request_id,
            ),
            status_code=400
        )


class ServiceUnavailableError(ComparerException):
    """A collaborator was not initialized."""

    def __init__(self, message: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="service_unavailable",
                message=message,
                kind=ErrorKind.UNKNOWN,
                request_id=request_id,
                retry_after=5,
            ),
            status_code=503
        )


# ============================================================
# Profile Aggregation Errors (GitHub)
# ============================================================

class ProfileNotFoundError(ComparerException):
    """The requested GitHub user does not exist."""

    def __init__(self, username: str, request_id: str = ""):
        self.username = username
        super().__init__(
            ErrorDetails(
                code="profile_not_found",
                message=f'User "{username}" not found on GitHub',
                kind=ErrorKind.NOT_FOUND,
                request_id=request_id,
                extra={"username": username},
            ),
            status_code=404
        )


class GitHubRateLimitedError(ComparerException):
    """GitHub API rate limit exceeded."""

    def __init__(
        self,
        reset_time: Optional[str] = None,
        retry_after: Optional[int] = None,
        request_id: str = ""
    ):
        super().__init__(
            ErrorDetails(
                code="github_rate_limited",
                message="GitHub API rate limit exceeded. Please try again later.",
                kind=ErrorKind.RATE_LIMITED,
                request_id=request_id,
                retry_after=retry_after,
                reset_time=reset_time,
            ),
            status_code=403
        )


class GitHubUnauthorizedError(ComparerException):
    """The configured GitHub token was rejected."""

    def __init__(self, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="github_unauthorized",
                message="Invalid GitHub token. Please check your configuration.",
                kind=ErrorKind.UNAUTHORIZED,
                request_id=request_id,
            ),
            status_code=401
        )


class ProfileFetchError(ComparerException):
    """Any other failure while fetching a profile."""

    def __init__(self, username: str, message: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="profile_fetch_failed",
                message=f'Failed to fetch data for "{username}": {message}',
                kind=ErrorKind.UNKNOWN,
                request_id=request_id,
                details=message,
                extra={"username": username},
            ),
            status_code=500
        )


# ============================================================
# Generation Errors (OpenRouter)
# ============================================================

class InsufficientQuotaError(ComparerException):
    """Billing or credit fault reported by the generation provider."""

    def __init__(self, details: str = "", request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="insufficient_quota",
                message=INSUFFICIENT_QUOTA_MESSAGE,
                kind=ErrorKind.INSUFFICIENT_QUOTA,
                request_id=request_id,
                details=details or None,
            ),
            status_code=402
        )


class UnauthorizedError(ComparerException):
    """The generation provider rejected our credentials."""

    def __init__(self, details: str = "", request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="provider_unauthorized",
                message="OpenRouter authentication failed",
                kind=ErrorKind.UNAUTHORIZED,
                request_id=request_id,
                details=details or None,
            ),
            status_code=502
        )


class RateLimitedError(ComparerException):
    """The generation provider is throttling us."""

    def __init__(self, retry_after: Optional[int] = None, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="provider_rate_limited",
                message="OpenRouter rate limit exceeded",
                kind=ErrorKind.RATE_LIMITED,
                request_id=request_id,
                retry_after=retry_after,
            ),
            status_code=429
        )


class UpstreamFailureError(ComparerException):
    """The generation provider returned a non-success status."""

    def __init__(self, upstream_status: int, details: str = "", request_id: str = ""):
        self.upstream_status = upstream_status
        super().__init__(
            ErrorDetails(
                code=f"upstream_{upstream_status}",
                message=f"OpenRouter returned error {upstream_status}",
                kind=ErrorKind.UPSTREAM_FAILURE,
                request_id=request_id,
                details=details or None,
            ),
            status_code=502
        )


class TransportFailureError(ComparerException):
    """Network, timeout or protocol failure talking to an upstream."""

    def __init__(self, message: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="transport_failure",
                message=message,
                kind=ErrorKind.TRANSPORT_FAILURE,
                request_id=request_id,
            ),
            status_code=502
        )


# ============================================================
# Provider-specific error handlers
# ============================================================

def _parse_error_body(body: Any) -> Dict[str, Any]:
    """Decode an upstream error body into a dict, tolerating garbage."""
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            body = json.loads(body) if body.strip() else {}
        except json.JSONDecodeError:
            return {"message": body}
    return body if isinstance(body, dict) else {}


def _parse_retry_after(headers: Mapping[str, str]) -> Optional[int]:
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def is_quota_fault(status_code: int, body: Dict[str, Any]) -> bool:
    """
    Check whether an OpenRouter response is a billing/credit fault.

    OpenRouter reports missing credits as HTTP 402 and repeats the code
    inside the body as ``{"error": {"code": 402, ...}}``.
    """
    if status_code == 402:
        return True
    error_info = body.get("error")
    if isinstance(error_info, dict):
        code = error_info.get("code")
        return str(code) in ("402", "insufficient_quota")
    return False


def handle_openrouter_response(
    status_code: int,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
    request_id: str = ""
) -> ComparerException:
    """
    Convert a non-success OpenRouter response to a canonical exception.

    OpenRouter error format:
    {
        "error": {
            "code": 402,
            "message": "Insufficient credits ..."
        }
    }
    """
    headers = headers or {}
    data = _parse_error_body(body)
    error_info = data.get("error") if isinstance(data.get("error"), dict) else {}
    message = error_info.get("message") or data.get("message") or ""

    if is_quota_fault(status_code, data):
        return InsufficientQuotaError(message, request_id)

    if status_code in (401, 403):
        return UnauthorizedError(message, request_id)

    if status_code == 429:
        return RateLimitedError(_parse_retry_after(headers), request_id)

    return UpstreamFailureError(status_code, message, request_id)


def handle_transport_error(error: Exception, request_id: str = "") -> ComparerException:
    """Convert an httpx transport exception to a TransportFailureError."""
    if isinstance(error, ComparerException):
        return error

    if isinstance(error, httpx.TimeoutException):
        return TransportFailureError(f"Upstream timed out: {error!r}", request_id)

    if isinstance(error, httpx.ConnectError):
        return TransportFailureError(f"Could not connect to upstream: {error}", request_id)

    return TransportFailureError(f"Upstream transport failed: {error!r}", request_id)


def handle_github_error(
    error: Exception,
    username: str,
    request_id: str = ""
) -> ComparerException:
    """
    Convert a GitHub HTTP failure to a canonical aggregation exception.

    403 responses are GitHub's rate-limit signal; the reset epoch comes from
    the ``x-ratelimit-reset`` header.
    """
    if isinstance(error, ComparerException):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        headers = error.response.headers

        if status_code == 404:
            return ProfileNotFoundError(username, request_id)

        if status_code == 403:
            reset_time = None
            reset_epoch = headers.get("x-ratelimit-reset")
            if reset_epoch:
                try:
                    reset_time = datetime.fromtimestamp(
                        int(reset_epoch), tz=timezone.utc
                    ).isoformat().replace("+00:00", "Z")
                except ValueError:
                    pass
            return GitHubRateLimitedError(
                reset_time=reset_time,
                retry_after=_parse_retry_after(headers),
                request_id=request_id,
            )

        if status_code == 401:
            return GitHubUnauthorizedError(request_id)

    return ProfileFetchError(username, str(error) or type(error).__name__, request_id)

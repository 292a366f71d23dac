"""
Profile Comparer - Error System Tests

Verifies:
- Canonical errors carry the right kind, code and status
- OpenRouter responses map to canonical errors (402 is a quota fault)
- httpx transport failures map to TransportFailureError
- GitHub HTTP failures map to aggregation errors
"""

import httpx
import pytest

from comparer.core.errors import (
    INSUFFICIENT_QUOTA_MESSAGE,
    ComparerException,
    ErrorDetails,
    ErrorKind,
    GitHubRateLimitedError,
    GitHubUnauthorizedError,
    InsufficientQuotaError,
    InvalidRequestError,
    ProfileFetchError,
    ProfileNotFoundError,
    RateLimitedError,
    TransportFailureError,
    UnauthorizedError,
    UpstreamFailureError,
    handle_github_error,
    handle_openrouter_response,
    handle_transport_error,
    is_quota_fault,
)
from comparer.core.models import GenerationMode


def _status_error(status_code: int, headers=None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.github.com/graphql")
    response = httpx.Response(status_code, headers=headers or {}, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


# ============================================================
# Error Details
# ============================================================

class TestErrorDetails:
    """Test the serialized error shape."""

    def test_to_dict_minimal(self):
        """Only the message, code and kind are always present."""
        details = ErrorDetails(code="x", message="boom", kind=ErrorKind.UNKNOWN)
        assert details.to_dict() == {"error": "boom", "code": "x", "kind": "unknown"}

    def test_to_dict_includes_recovery_fields(self):
        """Reset time is serialized camelCase for the browser."""
        error = GitHubRateLimitedError(reset_time="2024-01-01T00:00:00Z", retry_after=30)
        data = error.error.to_dict()

        assert data["resetTime"] == "2024-01-01T00:00:00Z"
        assert data["retry_after"] == 30
        assert data["kind"] == "rate_limited"

    def test_exception_exposes_kind(self):
        error = InvalidRequestError("bad", param="roastType")
        assert isinstance(error, ComparerException)
        assert error.kind is ErrorKind.INVALID_REQUEST
        assert error.status_code == 400
        assert error.error.param == "roastType"


# ============================================================
# OpenRouter Mapping
# ============================================================

class TestOpenRouterMapping:
    """Test provider status mapping."""

    def test_402_is_insufficient_quota(self):
        error = handle_openrouter_response(402, b'{"error": {"code": 402, "message": "no credits"}}')
        assert isinstance(error, InsufficientQuotaError)
        assert error.error.message == INSUFFICIENT_QUOTA_MESSAGE
        assert error.error.details == "no credits"

    def test_quota_code_in_body_wins_over_status(self):
        """A quota code inside a non-402 body is still a quota fault."""
        error = handle_openrouter_response(400, {"error": {"code": "insufficient_quota"}})
        assert isinstance(error, InsufficientQuotaError)

    def test_401_and_403_are_unauthorized(self):
        assert isinstance(handle_openrouter_response(401, ""), UnauthorizedError)
        assert isinstance(handle_openrouter_response(403, ""), UnauthorizedError)

    def test_429_honours_retry_after(self):
        error = handle_openrouter_response(429, "", headers={"retry-after": "12"})
        assert isinstance(error, RateLimitedError)
        assert error.error.retry_after == 12

    def test_other_status_is_upstream_failure(self):
        error = handle_openrouter_response(500, "not json at all")
        assert isinstance(error, UpstreamFailureError)
        assert error.upstream_status == 500
        assert error.error.code == "upstream_500"
        assert error.error.details == "not json at all"

    def test_is_quota_fault(self):
        assert is_quota_fault(402, {})
        assert is_quota_fault(200, {"error": {"code": 402}})
        assert not is_quota_fault(500, {"error": {"code": 500}})
        assert not is_quota_fault(500, {"error": "string"})


# ============================================================
# Transport Mapping
# ============================================================

class TestTransportMapping:
    """Test httpx exception mapping."""

    def test_timeout(self):
        error = handle_transport_error(httpx.ReadTimeout("slow"))
        assert isinstance(error, TransportFailureError)
        assert error.kind is ErrorKind.TRANSPORT_FAILURE
        assert "timed out" in error.error.message

    def test_connect_error(self):
        error = handle_transport_error(httpx.ConnectError("refused"))
        assert "Could not connect" in error.error.message

    def test_canonical_error_passes_through(self):
        original = InsufficientQuotaError()
        assert handle_transport_error(original) is original


# ============================================================
# GitHub Mapping
# ============================================================

class TestGitHubMapping:
    """Test GitHub HTTP failure mapping."""

    def test_404_is_not_found(self):
        error = handle_github_error(_status_error(404), "ghost")
        assert isinstance(error, ProfileNotFoundError)
        assert error.status_code == 404
        assert error.error.message == 'User "ghost" not found on GitHub'

    def test_403_is_rate_limited_with_reset_time(self):
        error = handle_github_error(
            _status_error(403, {"x-ratelimit-reset": "1700000000"}),
            "alice",
        )
        assert isinstance(error, GitHubRateLimitedError)
        assert error.status_code == 403
        assert error.error.reset_time == "2023-11-14T22:13:20Z"

    def test_403_without_reset_header(self):
        error = handle_github_error(_status_error(403), "alice")
        assert isinstance(error, GitHubRateLimitedError)
        assert error.error.reset_time is None

    def test_401_is_unauthorized(self):
        error = handle_github_error(_status_error(401), "alice")
        assert isinstance(error, GitHubUnauthorizedError)
        assert error.status_code == 401

    def test_anything_else_is_fetch_error(self):
        error = handle_github_error(httpx.ConnectError("down"), "alice")
        assert isinstance(error, ProfileFetchError)
        assert error.status_code == 500
        assert error.error.details == "down"


# ============================================================
# Generation Modes
# ============================================================

class TestGenerationMode:
    """Test roast type resolution."""

    @pytest.mark.parametrize("roast_type", ["user1", "user2", "both"])
    def test_valid_roast_types(self, roast_type):
        mode = GenerationMode.from_roast_type(roast_type)
        assert mode.value == roast_type
        assert mode.is_roast

    @pytest.mark.parametrize("roast_type", ["invalid", "neutral", "", None])
    def test_invalid_roast_types(self, roast_type):
        with pytest.raises(InvalidRequestError) as exc_info:
            GenerationMode.from_roast_type(roast_type)
        assert exc_info.value.error.message == 'roastType must be "user1", "user2", or "both"'

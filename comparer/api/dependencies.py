"""
Profile Comparer - API Dependencies

Shared dependencies for FastAPI routes.

The collaborators are created by the server lifespan and registered here;
tests override them through ``app.dependency_overrides``.
"""

from typing import Optional

from ..core.errors import ServiceUnavailableError
from ..profiles.github import GitHubProfileClient
from ..streaming.upstream import UpstreamStreamAdapter


_profile_client: Optional[GitHubProfileClient] = None
_upstream_adapter: Optional[UpstreamStreamAdapter] = None


def set_services(
    profile_client: Optional[GitHubProfileClient],
    upstream_adapter: Optional[UpstreamStreamAdapter],
):
    """Register the collaborators. Called by the server lifespan."""
    global _profile_client, _upstream_adapter
    _profile_client = profile_client
    _upstream_adapter = upstream_adapter


def get_profile_client() -> GitHubProfileClient:
    if _profile_client is None:
        raise ServiceUnavailableError("Profile client not initialized. Server may be starting up.")
    return _profile_client


def get_upstream_adapter() -> UpstreamStreamAdapter:
    if _upstream_adapter is None:
        raise ServiceUnavailableError("Generation adapter not initialized. Server may be starting up.")
    return _upstream_adapter

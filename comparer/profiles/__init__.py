"""
Profile Comparer Profiles Module

GitHub profile aggregation.
"""

from .github import GitHubProfileClient, aggregate_profile

__all__ = [
    "GitHubProfileClient",
    "aggregate_profile",
]

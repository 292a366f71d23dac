"""
Profile Comparer - GitHub Profile Client

Fetches a user's profile, repositories and contributions in one GraphQL
round trip and aggregates them into a Profile.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config import GitHubConfig
from ..core.errors import (
    ComparerException,
    ProfileFetchError,
    ProfileNotFoundError,
    handle_github_error,
)
from ..core.models import LanguageShare, Profile, ProfilePair, RepoSummary
from ..observability.logging import TimedOperation, get_logger
from ..observability.metrics import get_metrics
from ..observability.tracing import trace_upstream_call

logger = get_logger(__name__)

TOP_LANGUAGES = 10
TOP_REPOS = 10

USER_QUERY = """
query getUserData($username: String!) {
  user(login: $username) {
    login
    name
    bio
    avatarUrl
    location
    company
    websiteUrl
    followers {
      totalCount
    }
    following {
      totalCount
    }
    createdAt
    updatedAt
    repositories(
      first: 50
      orderBy: {field: STARGAZERS, direction: DESC}
      ownerAffiliations: OWNER
    ) {
      totalCount
      nodes {
        name
        description
        stargazerCount
        forkCount
        watchers {
          totalCount
        }
        primaryLanguage {
          name
        }
        languages(first: 10) {
          edges {
            size
            node {
              name
            }
          }
        }
        updatedAt
      }
    }
    contributionsCollection(from: "2020-01-01T00:00:00Z") {
      totalCommitContributions
      totalRepositoryContributions
      restrictedContributionsCount
    }
  }
}
"""


def _count(node: Optional[Dict[str, Any]]) -> int:
    return int((node or {}).get("totalCount") or 0)


def aggregate_profile(user: Dict[str, Any]) -> Profile:
    """Build a Profile from the GraphQL ``user`` node."""
    repositories = user.get("repositories") or {}
    nodes: List[Dict[str, Any]] = repositories.get("nodes") or []

    languages: Dict[str, int] = {}
    total_stars = total_forks = total_watchers = 0

    for repo in nodes:
        total_stars += int(repo.get("stargazerCount") or 0)
        total_forks += int(repo.get("forkCount") or 0)
        total_watchers += _count(repo.get("watchers"))

        for edge in (repo.get("languages") or {}).get("edges") or []:
            name = edge["node"]["name"]
            languages[name] = languages.get(name, 0) + int(edge.get("size") or 0)

    # Stable sort: ties keep first-seen order
    top_languages = [
        LanguageShare(language=name, bytes=size)
        for name, size in sorted(languages.items(), key=lambda item: item[1], reverse=True)
    ][:TOP_LANGUAGES]

    repos = [
        RepoSummary(
            name=repo["name"],
            description=repo.get("description"),
            stars=int(repo.get("stargazerCount") or 0),
            forks=int(repo.get("forkCount") or 0),
            language=(repo.get("primaryLanguage") or {}).get("name") or "N/A",
            updated=repo.get("updatedAt"),
        )
        for repo in nodes[:TOP_REPOS]
    ]

    contributions = user.get("contributionsCollection") or {}

    return Profile(
        username=user["login"],
        name=user.get("name") or user["login"],
        bio=user.get("bio") or "No bio available",
        avatar=user.get("avatarUrl"),
        location=user.get("location") or "Not specified",
        company=user.get("company") or "Not specified",
        blog=user.get("websiteUrl") or "",
        followers=_count(user.get("followers")),
        following=_count(user.get("following")),
        public_repos=int(repositories.get("totalCount") or 0),
        total_commits=(
            int(contributions.get("totalCommitContributions") or 0)
            + int(contributions.get("restrictedContributionsCount") or 0)
        ),
        total_stars=total_stars,
        total_forks=total_forks,
        total_watchers=total_watchers,
        account_created=user.get("createdAt"),
        last_updated=user.get("updatedAt"),
        languages=languages,
        top_languages=top_languages,
        repos=repos,
    )


class GitHubProfileClient:
    """
    GitHub GraphQL collaborator.

    Owns its httpx client unless one is passed in.
    """

    def __init__(self, config: GitHubConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=config.timeout)

    async def fetch_profile(self, username: str, request_id: str = "") -> Profile:
        """
        Fetch and aggregate one profile.

        Raises:
            ProfileNotFoundError, GitHubRateLimitedError,
            GitHubUnauthorizedError, ProfileFetchError
        """
        metrics = get_metrics()

        try:
            with trace_upstream_call("github", "fetch_profile", {"github.username": username}):
                async with TimedOperation("github_fetch", logger, extra={"username": username}):
                    response = await self.client.post(
                        self.config.graphql_url,
                        json={"query": USER_QUERY, "variables": {"username": username}},
                        headers={
                            "Authorization": f"bearer {self.config.token}",
                            "Content-Type": "application/json",
                        },
                    )
                    response.raise_for_status()
                    profile = self._parse(username, response.json(), request_id)

        except ComparerException as e:
            metrics.record_profile_fetch(e.kind.value)
            raise

        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            error = handle_github_error(e, username, request_id)
            metrics.record_profile_fetch(error.kind.value)
            logger.warning(
                "GitHub fetch failed",
                username=username,
                error_code=error.error.code,
                status_code=error.status_code,
            )
            raise error from e

        metrics.record_profile_fetch("ok")
        return profile

    def _parse(self, username: str, body: Dict[str, Any], request_id: str) -> Profile:
        errors = body.get("errors")
        if errors:
            first = errors[0] or {}
            if first.get("type") == "NOT_FOUND":
                raise ProfileNotFoundError(username, request_id)
            raise ProfileFetchError(
                username,
                first.get("message") or "Failed to fetch GitHub data",
                request_id,
            )

        user = (body.get("data") or {}).get("user")
        if not user:
            raise ProfileNotFoundError(username, request_id)

        return aggregate_profile(user)

    async def fetch_profile_pair(
        self,
        username1: str,
        username2: str,
        request_id: str = "",
    ) -> ProfilePair:
        """Fetch both profiles concurrently; the first failure wins."""
        results: Tuple[Profile, Profile] = await asyncio.gather(
            self.fetch_profile(username1, request_id),
            self.fetch_profile(username2, request_id),
        )
        return ProfilePair(profile1=results[0], profile2=results[1])

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

"""
Profile Comparer - Pytest Configuration

Configures:
- Profile and provider fixtures backed by httpx.MockTransport
- A recording sleep for deterministic pacing tests
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest

from comparer.config import GitHubConfig, UpstreamConfig
from comparer.core.models import LanguageShare, Profile, RepoSummary
from comparer.profiles.github import GitHubProfileClient
from comparer.streaming.upstream import UpstreamStreamAdapter


# ============================================================
# Profiles
# ============================================================

def make_profile(username: str, **overrides: Any) -> Profile:
    """Build a small but complete profile."""
    fields: Dict[str, Any] = dict(
        username=username,
        name=username.title(),
        followers=10,
        following=2,
        public_repos=5,
        total_commits=120,
        total_stars=42,
        total_forks=7,
        total_watchers=3,
        languages={"Python": 3000, "Go": 1000},
        top_languages=[LanguageShare("Python", 3000), LanguageShare("Go", 1000)],
        repos=[RepoSummary(name=f"{username}-repo", stars=42, forks=7, language="Python")],
    )
    fields.update(overrides)
    return Profile(**fields)


@pytest.fixture
def profile1() -> Profile:
    return make_profile("alice")


@pytest.fixture
def profile2() -> Profile:
    return make_profile("bob", followers=99, total_stars=500, top_languages=[])


# ============================================================
# Provider stream helpers
# ============================================================

def delta_line(content: str) -> str:
    """One OpenRouter streaming line carrying a content delta."""
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": content}}]})


def sse_body(lines: Iterable[str]) -> bytes:
    """Join provider lines into a response body."""
    return "".join(f"{line}\n\n" for line in lines).encode("utf-8")


async def async_lines(lines: Iterable[str]):
    for line in lines:
        yield line


class RecordingLines:
    """Async line iterator that records how often it was closed."""

    def __init__(self, lines: Iterable[str], fail_with: Optional[BaseException] = None):
        self._lines = list(lines)
        self._fail_with = fail_with
        self.close_count = 0
        self.consumed = 0

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        if self._lines:
            self.consumed += 1
            return self._lines.pop(0)
        if self._fail_with is not None:
            raise self._fail_with
        raise StopAsyncIteration

    async def aclose(self):
        self.close_count += 1


def make_upstream_adapter(
    handler: Callable[[httpx.Request], httpx.Response],
    **config: Any,
) -> UpstreamStreamAdapter:
    """Adapter whose HTTP calls are answered by ``handler``."""
    upstream_config = UpstreamConfig(api_key="sk-or-test", **config)
    client = httpx.AsyncClient(
        base_url=upstream_config.base_url,
        transport=httpx.MockTransport(handler),
    )
    return UpstreamStreamAdapter(upstream_config, client=client)


def github_user_node(login: str, **overrides: Any) -> Dict[str, Any]:
    """A GraphQL ``user`` node with two repositories."""
    node: Dict[str, Any] = {
        "login": login,
        "name": login.title(),
        "bio": None,
        "avatarUrl": f"https://avatars.example/{login}",
        "location": "Berlin",
        "company": None,
        "websiteUrl": None,
        "followers": {"totalCount": 12},
        "following": {"totalCount": 3},
        "createdAt": "2015-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
        "repositories": {
            "totalCount": 2,
            "nodes": [
                {
                    "name": "big",
                    "description": "The popular one",
                    "stargazerCount": 100,
                    "forkCount": 10,
                    "watchers": {"totalCount": 5},
                    "primaryLanguage": {"name": "Python"},
                    "languages": {"edges": [
                        {"size": 5000, "node": {"name": "Python"}},
                        {"size": 500, "node": {"name": "Shell"}},
                    ]},
                    "updatedAt": "2024-01-01T00:00:00Z",
                },
                {
                    "name": "small",
                    "description": None,
                    "stargazerCount": 1,
                    "forkCount": 0,
                    "watchers": {"totalCount": 1},
                    "primaryLanguage": None,
                    "languages": {"edges": [
                        {"size": 2000, "node": {"name": "Go"}},
                        {"size": 500, "node": {"name": "Python"}},
                    ]},
                    "updatedAt": "2023-06-01T00:00:00Z",
                },
            ],
        },
        "contributionsCollection": {
            "totalCommitContributions": 300,
            "totalRepositoryContributions": 4,
            "restrictedContributionsCount": 20,
        },
    }
    node.update(overrides)
    return node


def github_handler(users: Dict[str, Optional[Dict[str, Any]]]) -> Callable[[httpx.Request], httpx.Response]:
    """GraphQL endpoint answering from ``users``; unknown logins are NOT_FOUND."""

    def handler(request: httpx.Request) -> httpx.Response:
        username = json.loads(request.content)["variables"]["username"]
        if username not in users:
            return httpx.Response(200, json={
                "data": {"user": None},
                "errors": [{"type": "NOT_FOUND", "message": f"Could not resolve to a User with the login of '{username}'."}],
            })
        return httpx.Response(200, json={"data": {"user": users[username]}})

    return handler


def make_profile_client(handler: Callable[[httpx.Request], httpx.Response]) -> GitHubProfileClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubProfileClient(GitHubConfig(token="ghp_test"), client=client)


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests seen by a mock provider, for assertions."""
    return []


# ============================================================
# Pacing
# ============================================================

class RecordingSleep:
    """Sleep replacement that records delays and only yields to the loop."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# ============================================================
# Logging Configuration
# ============================================================

@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    yield

"""
Profile Comparer - Core Data Models

Value objects shared by the aggregation, prompt and streaming layers.

Profiles travel over the wire in the camelCase shape the browser client
already understands (``publicRepos``, ``topLanguages`` ...), so every model
here converts to and from that shape explicitly.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidRequestError


class GenerationMode(str, Enum):
    """What the generation is asked to do with the two profiles."""
    NEUTRAL = "neutral"
    ROAST_USER1 = "user1"
    ROAST_USER2 = "user2"
    ROAST_BOTH = "both"

    @property
    def is_roast(self) -> bool:
        return self is not GenerationMode.NEUTRAL

    @classmethod
    def roast_types(cls) -> List[str]:
        return [m.value for m in cls if m.is_roast]

    @classmethod
    def from_roast_type(cls, roast_type: Optional[str]) -> "GenerationMode":
        """Resolve a roast type from a request body, rejecting anything else."""
        for mode in cls:
            if mode.is_roast and mode.value == roast_type:
                return mode
        raise InvalidRequestError(
            'roastType must be "user1", "user2", or "both"',
            param="roastType",
        )


@dataclass(frozen=True)
class LanguageShare:
    """Bytes of code written in one language across a user's repositories."""
    language: str
    bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language, "bytes": self.bytes}


@dataclass(frozen=True)
class RepoSummary:
    """A single repository as shown on the profile card."""
    name: str
    description: Optional[str] = None
    stars: int = 0
    forks: int = 0
    language: str = "N/A"
    updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "stars": self.stars,
            "forks": self.forks,
            "language": self.language,
            "updated": self.updated,
        }


@dataclass(frozen=True)
class Profile:
    """Aggregated GitHub profile plus derived metrics."""
    username: str
    name: str = ""
    bio: str = "No bio available"
    avatar: Optional[str] = None
    location: str = "Not specified"
    company: str = "Not specified"
    blog: str = ""
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    total_commits: int = 0
    total_stars: int = 0
    total_forks: int = 0
    total_watchers: int = 0
    account_created: Optional[str] = None
    last_updated: Optional[str] = None
    languages: Dict[str, int] = field(default_factory=dict)
    top_languages: List[LanguageShare] = field(default_factory=list)
    repos: List[RepoSummary] = field(default_factory=list)

    def top_language_names(self, limit: int = 5) -> List[str]:
        return [share.language for share in self.top_languages[:limit]]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "username": self.username,
            "name": self.name or self.username,
            "bio": self.bio,
            "avatar": self.avatar,
            "location": self.location,
            "company": self.company,
            "blog": self.blog,
            "followers": self.followers,
            "following": self.following,
            "publicRepos": self.public_repos,
            "totalCommits": self.total_commits,
            "totalStars": self.total_stars,
            "totalForks": self.total_forks,
            "totalWatchers": self.total_watchers,
            "accountCreated": self.account_created,
            "lastUpdated": self.last_updated,
            "languages": dict(self.languages),
            "topLanguages": [share.to_dict() for share in self.top_languages],
            "repos": [repo.to_dict() for repo in self.repos],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """Build a profile from the camelCase wire shape."""
        return cls(
            username=data["username"],
            name=data.get("name") or data["username"],
            bio=data.get("bio") or "No bio available",
            avatar=data.get("avatar"),
            location=data.get("location") or "Not specified",
            company=data.get("company") or "Not specified",
            blog=data.get("blog") or "",
            followers=int(data.get("followers") or 0),
            following=int(data.get("following") or 0),
            public_repos=int(data.get("publicRepos") or 0),
            total_commits=int(data.get("totalCommits") or 0),
            total_stars=int(data.get("totalStars") or 0),
            total_forks=int(data.get("totalForks") or 0),
            total_watchers=int(data.get("totalWatchers") or 0),
            account_created=data.get("accountCreated"),
            last_updated=data.get("lastUpdated"),
            languages=dict(data.get("languages") or {}),
            top_languages=[
                LanguageShare(language=item["language"], bytes=int(item.get("bytes", 0)))
                for item in data.get("topLanguages") or []
            ],
            repos=[
                RepoSummary(
                    name=item["name"],
                    description=item.get("description"),
                    stars=int(item.get("stars") or 0),
                    forks=int(item.get("forks") or 0),
                    language=item.get("language") or "N/A",
                    updated=item.get("updated"),
                )
                for item in data.get("repos") or []
            ],
        )


@dataclass(frozen=True)
class ProfilePair:
    """The two profiles of one comparison."""
    profile1: Profile
    profile2: Profile

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "user1": self.profile1.to_dict(),
            "user2": self.profile2.to_dict(),
        }


@dataclass(frozen=True)
class GenerationParams:
    """Sampling parameters sent to the generation provider."""
    temperature: float
    max_tokens: int
    stream: bool = True


@dataclass(frozen=True)
class GenerationRequest:
    """
    Context for one streamed generation.

    Immutable once constructed; only used to build the upstream prompt.
    """
    profile1: Profile
    profile2: Profile
    mode: GenerationMode = GenerationMode.NEUTRAL
    request_id: str = field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")

"""
Profile Comparer - API Request Models

Pydantic models for the HTTP request bodies.

Required fields are declared Optional and checked in the route handlers, so
that a missing field gets the same 400 message whichever one is missing.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.models import Profile


class ProfileModel(BaseModel):
    """A profile as returned by /api/compare and sent back by clients."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    username: str
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None
    followers: Optional[int] = 0
    following: Optional[int] = 0
    public_repos: Optional[int] = 0
    total_commits: Optional[int] = 0
    total_stars: Optional[int] = 0
    total_forks: Optional[int] = 0
    total_watchers: Optional[int] = 0
    account_created: Optional[str] = None
    last_updated: Optional[str] = None
    languages: Dict[str, int] = Field(default_factory=dict)
    top_languages: List[Dict[str, Any]] = Field(default_factory=list)
    repos: List[Dict[str, Any]] = Field(default_factory=list)

    def to_profile(self) -> Profile:
        return Profile.from_dict(self.model_dump(by_alias=True))


class CompareRequest(BaseModel):
    """POST /api/compare"""
    username1: Optional[str] = None
    username2: Optional[str] = None


class CompareStreamRequest(BaseModel):
    """POST /api/compare/stream"""
    user1: Optional[ProfileModel] = None
    user2: Optional[ProfileModel] = None


class RoastStreamRequest(BaseModel):
    """POST /api/roast/stream"""

    model_config = ConfigDict(populate_by_name=True)

    user1: Optional[ProfileModel] = None
    user2: Optional[ProfileModel] = None
    roast_type: Optional[str] = Field(default=None, alias="roastType")


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "GitHub Comparer API is running"

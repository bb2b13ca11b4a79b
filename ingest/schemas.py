"""Shared data models for the lightning talks service."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field


@dataclass
class TalkPayload:
    """Fields recovered from the opaque payload attached to a talk."""

    title: Optional[str] = None
    description: Optional[str] = None
    speaker: Optional[str] = None
    bio: Optional[str] = None


@dataclass
class EventMetadata:
    """Extended event metadata carried inside the event description."""

    description: str = ""
    event_date: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    contact: Optional[str] = None
    banner_image: Optional[str] = None


@dataclass
class UserProfile:
    """Client-local speaker profile."""

    name: str = ""
    bio: str = ""


class Talk(BaseModel):
    id: str
    title: str = "Unknown Talk"
    description: str = ""
    speaker: str = "Anonymous"
    bio: Optional[str] = None
    votes: int = Field(default=0, ge=0)
    voter_addresses: List[str] = Field(default_factory=list)
    wallet_address: Optional[str] = None
    is_author: bool = False
    upvoted_by_me: bool = False
    created_at: str
    answer: Optional[str] = None
    # derived for the current viewer
    has_voted: bool = False
    is_my_talk: bool = False

    @property
    def accepted(self) -> bool:
        return bool(self.answer)


class Event(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    owner_address: Optional[str] = None
    is_creator: bool = False
    event_date: Optional[str] = None
    date: str
    location: Optional[str] = None
    website: Optional[str] = None
    contact: Optional[str] = None
    banner_image: Optional[str] = None
    enabled: bool = True
    announced: bool = False
    talks: List[Talk] = Field(default_factory=list)


class TalkSuggestion(BaseModel):
    title: str
    description: str
    speaker: str = ""
    bio: str = ""

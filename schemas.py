"""
Database Schemas

MongoDB collection schemas as Pydantic models. Handlers build one of these
from the submitted form before anything is written, so defaults and field
constraints live here rather than in the database.

Model name is converted to lowercase for the collection name:
- Prompt -> "prompt" collection
- Blog -> "blog" collection
- Collection -> "collection" collection
"""

from datetime import datetime, timezone
from typing import Any, List, Literal

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Prompt(BaseModel):
    """
    Prompts collection schema
    Collection name: "prompt"
    """
    title: str = Field(..., description="Prompt title")
    description: str = Field(..., description="Short description")
    promptText: str = Field(..., description="The prompt itself")
    negativePrompt: str = Field("", description="Negative prompt, if any")
    aiModel: str = Field(..., description="Model the prompt was written for")
    industry: str = Field(..., description="Industry filter")
    topic: str = Field(..., description="Topic filter")
    mediaType: Literal["image", "video"] = Field("image", description="Kind of example media")
    isTrending: bool = Field(False, description="Shown in the trending list")
    isPromptOfDay: bool = Field(False, description="At most one prompt carries this flag")
    copyCount: int = Field(0, ge=0, description="Times the prompt was copied")
    mediaUrl: str = Field(..., description="Public URL of the example media")
    createdAt: datetime = Field(default_factory=_now)


class Blog(BaseModel):
    """
    Blogs collection schema
    Collection name: "blog"
    """
    title: str = Field(..., description="Blog title")
    slug: str = Field(..., min_length=1, description="URL slug, unique")
    excerpt: str = Field(..., description="Short excerpt for preview")
    content: str = Field(..., description="Full blog content")
    coverImage: str = Field(..., description="Cover image URL")
    author: str = Field("Admin", description="Display name of the author")
    category: str = Field(..., description="Blog category")
    tags: List[str] = Field(default_factory=list, description="Tags, in order")
    isPublished: bool = Field(False, description="Visible in the public list")
    views: int = Field(0, ge=0)
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)


class Collection(BaseModel):
    """
    Curated collections of prompts
    Collection name: "collection"

    `prompts` holds ObjectId references; deleting a prompt does not touch
    the collections that point at it.
    """
    title: str = Field(..., min_length=3, max_length=100, description="Collection title")
    slug: str = Field(..., min_length=1, description="URL slug, unique")
    description: str = Field(..., min_length=10, max_length=1000)
    coverImage: str = Field(..., description="Cover image URL")
    prompts: List[Any] = Field(default_factory=list, description="Prompt ObjectIds, in order")
    category: str = Field(..., description="Collection category")
    isPublished: bool = Field(False)
    views: int = Field(0, ge=0)
    downloads: int = Field(0, ge=0)
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

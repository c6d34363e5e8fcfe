from enum import Enum
from typing import List, Optional

from pydantic import validator

from .base import ApiModel, blank_to_none


class VoteType(str, Enum):
    UP = "up"
    DOWN = "down"


class PostCreate(ApiModel):
    title: str
    content: str
    category_id: Optional[int] = None
    tags: List[str] = []

    @validator("title", "content")
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @validator("category_id", pre=True)
    def blank_category(cls, v):
        return blank_to_none(v)

    @validator("tags")
    def normalize_tags(cls, v):
        seen = set()
        tags = []
        for tag in v:
            name = tag.strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                tags.append(name)
        return tags


class ReplyCreate(ApiModel):
    content: str

    @validator("content")
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("Reply cannot be empty")
        return v.strip()


class VoteCreate(ApiModel):
    vote_type: VoteType

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import validator

from .base import ApiModel, blank_to_none


class RecurringPattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class StudyGroupCreate(ApiModel):
    name: str
    description: Optional[str] = None
    course_id: Optional[int] = None
    max_members: int = 6
    schedule: Optional[str] = None
    location: Optional[str] = None
    meeting_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None

    @validator("name")
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @validator("course_id", "meeting_date", "end_date", "recurring_pattern", "schedule", pre=True)
    def blank_optional(cls, v):
        return blank_to_none(v)

    @validator("max_members")
    def validate_max_members(cls, v):
        if v < 2:
            raise ValueError("A study group needs room for at least 2 members")
        return v


class StudyGroupUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    course_id: Optional[int] = None

    @validator("course_id", pre=True)
    def blank_course(cls, v):
        return blank_to_none(v)

    @validator("name")
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v


class StudySessionCreate(ApiModel):
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None

    @validator("title")
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @validator("end_date", pre=True)
    def blank_end(cls, v):
        return blank_to_none(v)

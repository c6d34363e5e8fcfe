from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import validator

from .base import ApiModel, blank_to_none


class EventType(str, Enum):
    DEADLINE = "deadline"
    STUDY_GROUP = "study_group"
    ASSIGNMENT = "assignment"
    EXAM = "exam"
    MEETING = "meeting"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CalendarEventCreate(ApiModel):
    title: str
    description: Optional[str] = None
    type: EventType
    start_date: datetime
    end_date: Optional[datetime] = None
    all_day: bool = False
    location: Optional[str] = None
    course_id: Optional[int] = None
    study_group_id: Optional[int] = None
    priority: Priority = Priority.MEDIUM
    reminder_minutes: Optional[int] = 60

    @validator("title")
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @validator("end_date", "course_id", "study_group_id", pre=True)
    def blank_optional(cls, v):
        return blank_to_none(v)


class CalendarEventUpdate(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[EventType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = None
    course_id: Optional[int] = None
    study_group_id: Optional[int] = None
    priority: Optional[Priority] = None
    reminder_minutes: Optional[int] = None
    is_completed: Optional[bool] = None

    @validator("end_date", "course_id", "study_group_id", pre=True)
    def blank_optional(cls, v):
        return blank_to_none(v)


class EventCompletion(ApiModel):
    completed: bool = True

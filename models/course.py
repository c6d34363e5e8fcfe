from pydantic import validator
from typing import Optional

from .base import ApiModel

class CourseCreate(ApiModel):
    code: str
    name: str
    description: Optional[str] = None
    instructor: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None
    semester: Optional[str] = None

    @validator("code", "name")
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

from typing import List, Optional

from pydantic import model_validator, validator

from .base import ApiModel


class ConversationCreate(ApiModel):
    participant_ids: List[int]

    @validator("participant_ids")
    def validate_participants(cls, v):
        if not v:
            raise ValueError("At least one participant is required")
        return v


class ConversationUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ConversationMemberAdd(ApiModel):
    user_id: int


class MessageCreate(ApiModel):
    conversation_id: int
    content: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None

    @model_validator(mode="after")
    def require_content_or_file(self):
        if not (self.content and self.content.strip()) and not self.file_url:
            raise ValueError("Either content or fileUrl must be provided")
        return self

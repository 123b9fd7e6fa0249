from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models.group import GroupType


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    group_type: GroupType = GroupType.PUBLIC

    # runs before the length constraints, so a blank name fails min_length
    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class GroupPublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    group_type: GroupType
    created_at: datetime

    class Config:
        from_attributes = True

from datetime import datetime

from pydantic import BaseModel

from app.models.membership import MemberRole


class MemberAdd(BaseModel):
    user_id: int


class MemberRoleUpdate(BaseModel):
    role: MemberRole


class MemberPublic(BaseModel):
    group_id: int
    user_id: int
    role: MemberRole
    joined_at: datetime

    class Config:
        from_attributes = True

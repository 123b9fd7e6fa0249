from datetime import datetime

from pydantic import BaseModel

from app.models.join_request import JoinRequestStatus


class JoinRequestPublic(BaseModel):
    id: int
    group_id: int
    user_id: int
    request_date: datetime
    status: JoinRequestStatus

    class Config:
        from_attributes = True

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.group_service import GroupMembershipService
from app.services.sql_stores import SqlUnitOfWork

__all__ = ["get_db", "get_group_service"]


def get_group_service(db: Session = Depends(get_db)) -> GroupMembershipService:
    return GroupMembershipService(SqlUnitOfWork(db))

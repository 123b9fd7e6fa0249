import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class GroupType(str, enum.Enum):
    PUBLIC = "PUBLIC"    # join by request + admin approval
    PRIVATE = "PRIVATE"  # admins add members directly


class GroupChat(Base):
    __tablename__ = "group_chats"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    group_type: Mapped[GroupType] = mapped_column(
        Enum(GroupType, name="group_type"), default=GroupType.PUBLIC, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

"""SQLAlchemy-backed stores and the unit of work that binds them to one Session."""

import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConflictError
from app.models.group import GroupChat
from app.models.join_request import GroupJoinRequest, JoinRequestStatus
from app.models.membership import GroupMember
from app.models.user import User

logger = logging.getLogger(__name__)


@contextmanager
def _write_conflict(db: Session, message: str):
    # A concurrent writer won the race: unique constraint/index, or a
    # versioned row that changed since it was read.
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        logger.info("integrity conflict: %s", exc.orig)
        raise ConflictError(message) from exc
    except StaleDataError as exc:
        db.rollback()
        logger.info("stale write: %s", exc)
        raise ConflictError("Record was modified concurrently; reload and retry") from exc


class SqlUserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        return self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def create(self, email: str, hashed_password: str) -> User:
        user = User(email=email, hashed_password=hashed_password)
        self.db.add(user)
        with _write_conflict(self.db, "Email already registered"):
            self.db.flush()
        return user


class SqlGroupStore:
    def __init__(self, db: Session):
        self.db = db

    def save(self, group: GroupChat) -> GroupChat:
        self.db.add(group)
        self.db.flush()
        return group

    def get(self, group_id: int) -> GroupChat | None:
        return self.db.get(GroupChat, group_id)

    def search(self, name: str | None = None) -> list[GroupChat]:
        stmt = select(GroupChat)
        if name and name.strip():
            stmt = stmt.where(GroupChat.name.ilike(f"%{name.strip()}%"))
        stmt = stmt.order_by(GroupChat.name.asc(), GroupChat.id.asc())
        return list(self.db.execute(stmt).scalars().all())


class SqlMembershipStore:
    def __init__(self, db: Session):
        self.db = db

    def save(self, member: GroupMember) -> GroupMember:
        self.db.add(member)
        with _write_conflict(self.db, "User is already a member of the group"):
            self.db.flush()
        return member

    def delete(self, member: GroupMember) -> None:
        self.db.delete(member)
        self.db.flush()

    def find_by_group_and_user(self, group_id: int, user_id: int) -> GroupMember | None:
        return self.db.execute(
            select(GroupMember).where(
                GroupMember.group_id == group_id,
                GroupMember.user_id == user_id,
            )
        ).scalar_one_or_none()

    def find_by_group(self, group_id: int) -> list[GroupMember]:
        return list(
            self.db.execute(
                select(GroupMember)
                .where(GroupMember.group_id == group_id)
                .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
            ).scalars().all()
        )


class SqlJoinRequestStore:
    def __init__(self, db: Session):
        self.db = db

    def save(self, request: GroupJoinRequest) -> GroupJoinRequest:
        self.db.add(request)
        with _write_conflict(self.db, "Join request already sent"):
            self.db.flush()
        return request

    def get(self, request_id: int) -> GroupJoinRequest | None:
        # row lock where the backend has one; the version column covers the rest
        return self.db.get(GroupJoinRequest, request_id, with_for_update=True)

    def find_pending(self, group_id: int, user_id: int) -> GroupJoinRequest | None:
        return self.db.execute(
            select(GroupJoinRequest).where(
                GroupJoinRequest.group_id == group_id,
                GroupJoinRequest.user_id == user_id,
                GroupJoinRequest.status == JoinRequestStatus.PENDING,
            )
        ).scalar_one_or_none()

    def find_by_group(
        self, group_id: int, status: JoinRequestStatus | None = None,
    ) -> list[GroupJoinRequest]:
        stmt = select(GroupJoinRequest).where(GroupJoinRequest.group_id == group_id)
        if status is not None:
            stmt = stmt.where(GroupJoinRequest.status == status)
        stmt = stmt.order_by(GroupJoinRequest.request_date.asc(), GroupJoinRequest.id.asc())
        return list(self.db.execute(stmt).scalars().all())


class SqlUnitOfWork:
    """Unit of work over a request-scoped Session.

    The Session itself is owned by whoever created it (``get_db``); this
    object only decides commit vs rollback.
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = SqlUserDirectory(db)
        self.groups = SqlGroupStore(db)
        self.memberships = SqlMembershipStore(db)
        self.join_requests = SqlJoinRequestStore(db)

    def __enter__(self) -> "SqlUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()

    def commit(self) -> None:
        with _write_conflict(self.db, "Conflicting concurrent update"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

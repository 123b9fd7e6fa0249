"""Persistence contracts the membership service depends on.

Protocols rather than base classes: any object with these methods can back
the service (SQLAlchemy in production, fakes in tests).
"""

from typing import Protocol

from app.models.group import GroupChat
from app.models.join_request import GroupJoinRequest, JoinRequestStatus
from app.models.membership import GroupMember
from app.models.user import User


class UserDirectory(Protocol):
    def get(self, user_id: int) -> User | None: ...


class GroupStore(Protocol):
    def save(self, group: GroupChat) -> GroupChat: ...
    def get(self, group_id: int) -> GroupChat | None: ...
    def search(self, name: str | None = None) -> list[GroupChat]: ...


class MembershipStore(Protocol):
    def save(self, member: GroupMember) -> GroupMember: ...
    def delete(self, member: GroupMember) -> None: ...
    def find_by_group_and_user(self, group_id: int, user_id: int) -> GroupMember | None: ...
    def find_by_group(self, group_id: int) -> list[GroupMember]: ...


class JoinRequestStore(Protocol):
    def save(self, request: GroupJoinRequest) -> GroupJoinRequest: ...
    def get(self, request_id: int) -> GroupJoinRequest | None: ...
    def find_pending(self, group_id: int, user_id: int) -> GroupJoinRequest | None: ...
    def find_by_group(
        self, group_id: int, status: JoinRequestStatus | None = None,
    ) -> list[GroupJoinRequest]: ...


class UnitOfWork(Protocol):
    """Transaction scope shared by the four stores.

    Writes made through the stores become durable only on ``commit()``;
    leaving the ``with`` block on an exception discards all of them.
    """
    users: UserDirectory
    groups: GroupStore
    memberships: MembershipStore
    join_requests: JoinRequestStore

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

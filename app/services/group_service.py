"""Group membership rules.

Every operation follows the same shape: resolve the actor and the targets
(NotFoundError if any is missing), check the actor's membership against the
permission table, apply the change inside the unit of work, commit.
Nothing is committed unless every step succeeded.
"""

import logging
from datetime import datetime

from app.core.errors import ConflictError, InvalidOperationError, NotFoundError
from app.models.group import GroupChat, GroupType
from app.models.join_request import GroupJoinRequest, JoinRequestStatus
from app.models.membership import GroupMember, MemberRole
from app.models.user import User
from app.services import join_requests
from app.services.permissions import GroupAction, ensure_allowed
from app.services.stores import UnitOfWork

logger = logging.getLogger(__name__)


class GroupMembershipService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # --- lookups ------------------------------------------------------------

    def _require_user(self, user_id: int) -> User:
        user = self.uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def _require_group(self, group_id: int) -> GroupChat:
        group = self.uow.groups.get(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)
        return group

    def _require_membership(self, group: GroupChat, user_id: int) -> GroupMember:
        member = self.uow.memberships.find_by_group_and_user(group.id, user_id)
        if member is None:
            raise NotFoundError(
                "Membership", message=f"User {user_id} is not a member of group {group.id}"
            )
        return member

    def _actor_membership(self, group: GroupChat, actor_id: int) -> GroupMember | None:
        self._require_user(actor_id)
        return self.uow.memberships.find_by_group_and_user(group.id, actor_id)

    def _require_join_request(self, group: GroupChat, request_id: int) -> GroupJoinRequest:
        request = self.uow.join_requests.get(request_id)
        if request is None or request.group_id != group.id:
            raise NotFoundError("Join request", request_id)
        return request

    # --- group lifecycle ----------------------------------------------------

    def create_group(
        self,
        owner_id: int,
        name: str,
        description: str | None,
        group_type: GroupType,
    ) -> GroupChat:
        """Create a group; the creator becomes owner and ADMIN in one transaction."""
        with self.uow:
            owner = self._require_user(owner_id)
            now = datetime.utcnow()
            group = self.uow.groups.save(
                GroupChat(
                    name=name,
                    description=description,
                    owner_id=owner.id,
                    group_type=group_type,
                    created_at=now,
                )
            )
            self.uow.memberships.save(
                GroupMember(
                    group_id=group.id,
                    user_id=owner.id,
                    role=MemberRole.ADMIN,
                    joined_at=now,
                )
            )
            self.uow.commit()
        logger.info(
            "group created", extra={"group_id": group.id, "user_id": owner_id}
        )
        return group

    def get_group(self, group_id: int) -> GroupChat:
        with self.uow:
            return self._require_group(group_id)

    def search_groups(self, name: str | None = None) -> list[GroupChat]:
        with self.uow:
            return self.uow.groups.search(name)

    # --- join requests (public groups) ---------------------------------------

    def request_to_join_group(self, user_id: int, group_id: int) -> GroupJoinRequest:
        with self.uow:
            user = self._require_user(user_id)
            group = self._require_group(group_id)
            if group.group_type != GroupType.PUBLIC:
                raise InvalidOperationError(
                    "This group is private. Only admins can add members."
                )
            if self.uow.memberships.find_by_group_and_user(group.id, user.id) is not None:
                raise ConflictError("User is already a member of the group")
            if self.uow.join_requests.find_pending(group.id, user.id) is not None:
                raise ConflictError("Join request already sent")

            request = self.uow.join_requests.save(
                GroupJoinRequest(
                    group_id=group.id,
                    user_id=user.id,
                    request_date=datetime.utcnow(),
                    status=JoinRequestStatus.PENDING,
                )
            )
            self.uow.commit()
        logger.info(
            "join request created",
            extra={"group_id": group_id, "user_id": user_id, "request_id": request.id},
        )
        return request

    def approve_join_request(self, group_id: int, admin_id: int, request_id: int) -> GroupMember:
        """Approve a PENDING request and add the requester as MEMBER, atomically."""
        with self.uow:
            group = self._require_group(group_id)
            actor = self._actor_membership(group, admin_id)
            ensure_allowed(actor, GroupAction.APPROVE_JOIN_REQUEST)

            request = self._require_join_request(group, request_id)
            join_requests.approve(request)
            if self.uow.memberships.find_by_group_and_user(group.id, request.user_id) is not None:
                raise ConflictError("User is already a member of the group")

            self.uow.join_requests.save(request)
            member = self.uow.memberships.save(
                GroupMember(
                    group_id=group.id,
                    user_id=request.user_id,
                    role=MemberRole.MEMBER,
                    joined_at=datetime.utcnow(),
                )
            )
            self.uow.commit()
        logger.info(
            "join request approved",
            extra={
                "group_id": group_id,
                "actor_id": admin_id,
                "user_id": member.user_id,
                "request_id": request_id,
            },
        )
        return member

    def reject_join_request(
        self, group_id: int, admin_id: int, request_id: int,
    ) -> GroupJoinRequest:
        with self.uow:
            group = self._require_group(group_id)
            actor = self._actor_membership(group, admin_id)
            ensure_allowed(actor, GroupAction.REJECT_JOIN_REQUEST)

            request = self._require_join_request(group, request_id)
            join_requests.reject(request)
            self.uow.join_requests.save(request)
            self.uow.commit()
        logger.info(
            "join request rejected",
            extra={"group_id": group_id, "actor_id": admin_id, "request_id": request_id},
        )
        return request

    def list_join_requests(
        self,
        group_id: int,
        admin_id: int,
        status: JoinRequestStatus | None = JoinRequestStatus.PENDING,
    ) -> list[GroupJoinRequest]:
        with self.uow:
            group = self._require_group(group_id)
            actor = self._actor_membership(group, admin_id)
            ensure_allowed(actor, GroupAction.LIST_JOIN_REQUESTS)
            return self.uow.join_requests.find_by_group(group.id, status)

    # --- private groups -----------------------------------------------------

    def add_member_to_private_group(self, group_id: int, admin_id: int, user_id: int) -> GroupMember:
        with self.uow:
            group = self._require_group(group_id)
            if group.group_type != GroupType.PRIVATE:
                raise InvalidOperationError("This method is for private groups only.")
            actor = self._actor_membership(group, admin_id)
            ensure_allowed(actor, GroupAction.ADD_MEMBER)

            user = self._require_user(user_id)
            if self.uow.memberships.find_by_group_and_user(group.id, user.id) is not None:
                raise ConflictError("User is already a member of the group")

            member = self.uow.memberships.save(
                GroupMember(
                    group_id=group.id,
                    user_id=user.id,
                    role=MemberRole.MEMBER,
                    joined_at=datetime.utcnow(),
                )
            )
            self.uow.commit()
        logger.info(
            "member added",
            extra={"group_id": group_id, "actor_id": admin_id, "user_id": user_id},
        )
        return member

    # --- roles --------------------------------------------------------------

    def update_member_role(
        self, group_id: int, admin_id: int, user_id: int, new_role: MemberRole,
    ) -> GroupMember:
        """Promote or demote a member.

        Admins may demote other admins or themselves; only the owner's own
        ADMIN row is protected.
        """
        with self.uow:
            group = self._require_group(group_id)
            actor = self._actor_membership(group, admin_id)
            ensure_allowed(actor, GroupAction.UPDATE_MEMBER_ROLE)

            self._require_user(user_id)
            member = self._require_membership(group, user_id)
            if user_id == group.owner_id and new_role != MemberRole.ADMIN:
                raise InvalidOperationError("The group owner must remain an admin.")

            member.role = new_role
            self.uow.memberships.save(member)
            self.uow.commit()
        logger.info(
            "member role updated to %s",
            new_role.value,
            extra={"group_id": group_id, "actor_id": admin_id, "user_id": user_id},
        )
        return member

    # --- removal ------------------------------------------------------------

    def remove_member(self, group_id: int, remover_id: int, user_id: int) -> None:
        """Remove a membership: anyone may remove themself, admins anyone."""
        with self.uow:
            group = self._require_group(group_id)
            actor = self._actor_membership(group, remover_id)
            if remover_id != user_id:
                ensure_allowed(actor, GroupAction.REMOVE_OTHER_MEMBER)
            self._require_user(user_id)

            member = self._require_membership(group, user_id)
            if user_id == group.owner_id:
                raise InvalidOperationError(
                    "The group owner cannot be removed. Transfer ownership or delete the group."
                )
            self.uow.memberships.delete(member)
            self.uow.commit()
        logger.info(
            "member removed",
            extra={"group_id": group_id, "actor_id": remover_id, "user_id": user_id},
        )

    def leave_group(self, group_id: int, user_id: int) -> GroupChat:
        with self.uow:
            group = self._require_group(group_id)
            self._require_user(user_id)
            if group.owner_id == user_id:
                raise InvalidOperationError(
                    "Group owner cannot leave the group. Transfer ownership or delete the group."
                )
            member = self._require_membership(group, user_id)
            self.uow.memberships.delete(member)
            self.uow.commit()
        logger.info("member left", extra={"group_id": group_id, "user_id": user_id})
        return group

    # --- queries ------------------------------------------------------------

    def get_group_members(self, group_id: int) -> list[GroupMember]:
        with self.uow:
            group = self._require_group(group_id)
            return self.uow.memberships.find_by_group(group.id)

from typing import Optional

import anyio
from fastapi import APIRouter, Depends

from app.api.deps import get_group_service
from app.core.auth import get_current_user
from app.models.join_request import JoinRequestStatus
from app.models.user import User
from app.schemas.group import GroupCreate, GroupPublic
from app.schemas.join_request import JoinRequestPublic
from app.schemas.membership import MemberAdd, MemberPublic, MemberRoleUpdate
from app.services.group_service import GroupMembershipService

# SSE
from app.realtime.sse import broadcast


router = APIRouter(prefix="/groups", tags=["groups"])


def _notify(event_type: str, **payload) -> None:
    # sync endpoints run in a worker thread; hop back to the event loop
    anyio.from_thread.run(broadcast, event_type, payload)


@router.post("", response_model=GroupPublic, status_code=201)
def create_group(
    payload: GroupCreate,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    group = service.create_group(
        current_user.id,
        payload.name,
        payload.description,
        payload.group_type,
    )
    _notify("GROUP_CREATED", group_id=group.id, user_id=current_user.id)
    return group


@router.get("", response_model=list[GroupPublic])
def search_groups(
    name: Optional[str] = None,
    service: GroupMembershipService = Depends(get_group_service),
):
    return service.search_groups(name)


@router.get("/{group_id}", response_model=GroupPublic)
def get_group(group_id: int, service: GroupMembershipService = Depends(get_group_service)):
    return service.get_group(group_id)


@router.get("/{group_id}/members", response_model=list[MemberPublic])
def list_members(
    group_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_group_members(group_id)


# --- join requests ----------------------------------------------------------

@router.post("/{group_id}/join-requests", response_model=JoinRequestPublic, status_code=201)
def request_to_join(
    group_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    request = service.request_to_join_group(current_user.id, group_id)
    _notify("JOIN_REQUESTED", group_id=group_id, user_id=current_user.id, request_id=request.id)
    return request


@router.get("/{group_id}/join-requests", response_model=list[JoinRequestPublic])
def list_join_requests(
    group_id: int,
    status: Optional[JoinRequestStatus] = JoinRequestStatus.PENDING,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    return service.list_join_requests(group_id, current_user.id, status)


@router.post("/{group_id}/join-requests/{request_id}/approve", response_model=MemberPublic)
def approve_join_request(
    group_id: int,
    request_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    member = service.approve_join_request(group_id, current_user.id, request_id)
    _notify(
        "JOIN_REQUEST_APPROVED",
        group_id=group_id,
        user_id=member.user_id,
        request_id=request_id,
    )
    return member


@router.post("/{group_id}/join-requests/{request_id}/reject", response_model=JoinRequestPublic)
def reject_join_request(
    group_id: int,
    request_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    request = service.reject_join_request(group_id, current_user.id, request_id)
    _notify(
        "JOIN_REQUEST_REJECTED",
        group_id=group_id,
        user_id=request.user_id,
        request_id=request_id,
    )
    return request


# --- members ----------------------------------------------------------------

@router.post("/{group_id}/members", response_model=MemberPublic, status_code=201)
def add_member(
    group_id: int,
    payload: MemberAdd,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    member = service.add_member_to_private_group(group_id, current_user.id, payload.user_id)
    _notify("MEMBER_ADDED", group_id=group_id, user_id=member.user_id)
    return member


@router.put("/{group_id}/members/{user_id}/role", response_model=MemberPublic)
def update_member_role(
    group_id: int,
    user_id: int,
    payload: MemberRoleUpdate,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    member = service.update_member_role(group_id, current_user.id, user_id, payload.role)
    _notify("MEMBER_ROLE_UPDATED", group_id=group_id, user_id=user_id, role=member.role.value)
    return member


@router.delete("/{group_id}/members/{user_id}", status_code=204)
def remove_member(
    group_id: int,
    user_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    service.remove_member(group_id, current_user.id, user_id)
    _notify("MEMBER_REMOVED", group_id=group_id, user_id=user_id)


@router.post("/{group_id}/leave", response_model=GroupPublic)
def leave_group(
    group_id: int,
    service: GroupMembershipService = Depends(get_group_service),
    current_user: User = Depends(get_current_user),
):
    group = service.leave_group(group_id, current_user.id)
    _notify("MEMBER_LEFT", group_id=group_id, user_id=current_user.id)
    return group

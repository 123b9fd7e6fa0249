from app.core.errors import ConflictError
from app.models.join_request import GroupJoinRequest, JoinRequestStatus

TRANSITIONS: dict[JoinRequestStatus, frozenset[JoinRequestStatus]] = {
    JoinRequestStatus.PENDING: frozenset({JoinRequestStatus.APPROVED, JoinRequestStatus.REJECTED}),
    JoinRequestStatus.APPROVED: frozenset(),
    JoinRequestStatus.REJECTED: frozenset(),
}


def can_transition(current: JoinRequestStatus, target: JoinRequestStatus) -> bool:
    return target in TRANSITIONS[current]


def transition(request: GroupJoinRequest, target: JoinRequestStatus) -> GroupJoinRequest:
    """Move ``request`` to ``target`` or raise ConflictError.

    Processed requests are immutable, so approving or rejecting anything
    that is not PENDING fails.
    """
    if request.status.is_terminal:
        raise ConflictError(
            f"Join request {request.id} is already processed ({request.status.value})"
        )
    if not can_transition(request.status, target):
        raise ConflictError(
            f"Join request {request.id} cannot move from {request.status.value} to {target.value}"
        )
    request.status = target
    return request


def approve(request: GroupJoinRequest) -> GroupJoinRequest:
    return transition(request, JoinRequestStatus.APPROVED)


def reject(request: GroupJoinRequest) -> GroupJoinRequest:
    return transition(request, JoinRequestStatus.REJECTED)

"""Database-level guards: what stops two concurrent writers that both
passed the service's read-then-write checks (unique indexes, versioned
join requests)."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from app.core.database import Base
from app.core.errors import ConflictError
from app.models.group import GroupType
from app.models.join_request import GroupJoinRequest, JoinRequestStatus
from app.models.membership import GroupMember, MemberRole
from app.models.user import User
from app.services import join_requests
from app.services.group_service import GroupMembershipService
from app.services.sql_stores import SqlUnitOfWork, SqlUserDirectory


def test_second_pending_request_for_same_pair_conflicts(db, public_group, make_user):
    user = make_user()
    uow = SqlUnitOfWork(db)

    with uow:
        uow.join_requests.save(
            GroupJoinRequest(group_id=public_group.id, user_id=user.id, status=JoinRequestStatus.PENDING)
        )
        uow.commit()

    with pytest.raises(ConflictError):
        with uow:
            uow.join_requests.save(
                GroupJoinRequest(group_id=public_group.id, user_id=user.id, status=JoinRequestStatus.PENDING)
            )
            uow.commit()

    rows = db.execute(select(GroupJoinRequest)).scalars().all()
    assert len(rows) == 1


def test_processed_requests_do_not_block_a_new_pending_one(db, public_group, make_user):
    user = make_user()
    uow = SqlUnitOfWork(db)
    with uow:
        for status in (JoinRequestStatus.REJECTED, JoinRequestStatus.REJECTED, JoinRequestStatus.PENDING):
            uow.join_requests.save(
                GroupJoinRequest(group_id=public_group.id, user_id=user.id, status=status)
            )
        uow.commit()

    assert uow.join_requests.find_pending(public_group.id, user.id) is not None
    assert len(uow.join_requests.find_by_group(public_group.id, JoinRequestStatus.REJECTED)) == 2


def test_duplicate_membership_conflicts(db, private_group):
    uow = SqlUnitOfWork(db)
    with pytest.raises(ConflictError):
        with uow:
            uow.memberships.save(
                GroupMember(group_id=private_group.id, user_id=private_group.owner_id, role=MemberRole.MEMBER)
            )
            uow.commit()

    owner_rows = uow.memberships.find_by_group(private_group.id)
    assert [(m.user_id, m.role) for m in owner_rows] == [(private_group.owner_id, MemberRole.ADMIN)]


def test_leaving_uow_without_commit_on_error_discards_writes(db, private_group, make_user):
    user = make_user()
    uow = SqlUnitOfWork(db)
    with pytest.raises(ValueError):
        with uow:
            uow.memberships.save(GroupMember(group_id=private_group.id, user_id=user.id, role=MemberRole.MEMBER))
            raise ValueError("abort")

    assert uow.memberships.find_by_group_and_user(private_group.id, user.id) is None


@pytest.fixture
def file_sessions(tmp_path):
    """Independent sessions on a file database, like two API workers."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    sessions = []

    def _open():
        session = factory()
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()
    engine.dispose()


def test_concurrent_approve_and_reject_only_one_wins(file_sessions):
    setup = file_sessions()
    owner = User(email="owner@example.com", hashed_password="x")
    applicant = User(email="applicant@example.com", hashed_password="x")
    setup.add_all([owner, applicant])
    setup.commit()
    service = GroupMembershipService(SqlUnitOfWork(setup))
    group = service.create_group(owner.id, "Runners", None, GroupType.PUBLIC)
    request_id = service.request_to_join_group(applicant.id, group.id).id
    group_id, applicant_id = group.id, applicant.id

    rejecting = SqlUnitOfWork(file_sessions())
    approving = SqlUnitOfWork(file_sessions())
    stale = rejecting.join_requests.get(request_id)
    fresh = approving.join_requests.get(request_id)
    assert stale.status == fresh.status == JoinRequestStatus.PENDING

    with approving:
        join_requests.approve(fresh)
        approving.join_requests.save(fresh)
        approving.memberships.save(
            GroupMember(group_id=group_id, user_id=applicant_id, role=MemberRole.MEMBER)
        )
        approving.commit()

    with pytest.raises(ConflictError):
        with rejecting:
            join_requests.reject(stale)
            rejecting.join_requests.save(stale)
            rejecting.commit()

    check = SqlUnitOfWork(file_sessions())
    assert check.join_requests.get(request_id).status == JoinRequestStatus.APPROVED
    assert check.memberships.find_by_group_and_user(group_id, applicant_id) is not None


def test_processing_bumps_the_version(db, public_group, make_user):
    user = make_user()
    uow = SqlUnitOfWork(db)
    with uow:
        request = uow.join_requests.save(
            GroupJoinRequest(group_id=public_group.id, user_id=user.id, status=JoinRequestStatus.PENDING)
        )
        uow.commit()
    assert request.version == 1

    with uow:
        join_requests.reject(request)
        uow.join_requests.save(request)
        uow.commit()
    assert request.version == 2


def test_registering_a_taken_email_conflicts(db, make_user):
    taken = make_user("taken@example.com")
    directory = SqlUserDirectory(db)

    with pytest.raises(ConflictError, match="Email already registered"):
        directory.create("taken@example.com", "another-hash")
    assert directory.find_by_email("taken@example.com").id == taken.id

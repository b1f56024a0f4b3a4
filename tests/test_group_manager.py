import logging
import re

import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import (
    AlreadyMemberError,
    CascadeDeleteError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from models.group import GroupModel
from models.group_file import GroupFileModel
from models.group_invitation import GroupInvitationModel
from models.group_membership import GroupMembershipModel
from models.group_resource import GroupResourceModel
from utils.group_manager import ROLE_ADMIN, ROLE_MEMBER, GroupManager, generate_invite_code


def test_generate_invite_code_format():
    for _ in range(50):
        assert re.fullmatch(r'[A-Z0-9]{6}', generate_invite_code())


def test_create_group_makes_owner_admin(groups, make_student):
    owner = make_student()
    group = groups.create_group(owner.id, '  Algorithms  ', 'Weekly practice')

    assert group.name == 'Algorithms'
    assert group.description == 'Weekly practice'
    assert group.created_by == owner.id
    assert re.fullmatch(r'[A-Z0-9]{6}', group.invite_code)
    assert [(m.student_id, m.role) for m in group.memberships] == [(owner.id, ROLE_ADMIN)]


def test_create_group_requires_name(groups, make_student):
    owner = make_student()
    with pytest.raises(ValidationError, match='Group name is required.'):
        groups.create_group(owner.id, '   ')


def test_create_group_retries_on_code_collision(db_session, blob_store, make_student):
    owner = make_student()
    codes = iter(['AAAAAA', 'AAAAAA', 'BBBBBB'])
    manager = GroupManager(db_session, blob_store, code_generator=lambda: next(codes))

    first = manager.create_group(owner.id, 'First')
    second = manager.create_group(owner.id, 'Second')

    assert first.invite_code == 'AAAAAA'
    assert second.invite_code == 'BBBBBB'


def test_create_group_gives_up_after_repeated_collisions(db_session, blob_store, make_student):
    owner = make_student()
    manager = GroupManager(db_session, blob_store, code_generator=lambda: 'SAME00')
    manager.create_group(owner.id, 'First')

    with pytest.raises(StorageError):
        manager.create_group(owner.id, 'Second')


def test_join_by_code_is_case_insensitive(groups, make_student):
    owner, joiner = make_student(), make_student()
    group = groups.create_group(owner.id, 'Physics')

    joined = groups.join_by_code(joiner.id, group.invite_code.lower())

    assert joined.id == group.id
    roles = {m.student_id: m.role for m in joined.memberships}
    assert roles == {owner.id: ROLE_ADMIN, joiner.id: ROLE_MEMBER}


def test_join_by_code_unknown_code(groups, make_student):
    with pytest.raises(NotFoundError, match='Invalid invite code.'):
        groups.join_by_code(make_student().id, 'ZZZZZZ')


def test_join_twice_is_rejected_and_membership_stays_unique(groups, db_session, make_student):
    owner, joiner = make_student(), make_student()
    group = groups.create_group(owner.id, 'Chemistry')
    groups.join_by_code(joiner.id, group.invite_code)

    with pytest.raises(AlreadyMemberError, match='already a member of "Chemistry"'):
        groups.join_by_code(joiner.id, group.invite_code)

    count = (
        db_session.query(GroupMembershipModel)
        .filter_by(group_id=group.id, student_id=joiner.id)
        .count()
    )
    assert count == 1


def test_add_member_reports_existing_membership(groups, make_student):
    owner, other = make_student(), make_student()
    group = groups.create_group(owner.id, 'Biology')

    assert groups.add_member(group.id, other.id) is True
    assert groups.add_member(group.id, other.id) is False


def test_get_group_requires_membership(groups, make_student):
    owner, outsider = make_student(), make_student()
    group = groups.create_group(owner.id, 'History')

    assert groups.get_group(group.id, owner.id).id == group.id
    with pytest.raises(ForbiddenError, match='Not a member'):
        groups.get_group(group.id, outsider.id)
    with pytest.raises(NotFoundError):
        groups.get_group('0' * 24, owner.id)


def test_list_and_count_groups(groups, make_student):
    owner, other = make_student(), make_student()
    a = groups.create_group(owner.id, 'A')
    b = groups.create_group(owner.id, 'B')
    groups.create_group(other.id, 'C')
    groups.join_by_code(other.id, a.invite_code)

    assert {g.id for g in groups.list_groups_for_student(owner.id)} == {a.id, b.id}
    assert groups.count_groups_for_student(owner.id) == 2
    assert groups.count_groups_for_student(other.id) == 2


def test_leave_group_keeps_group_even_without_admin(groups, make_student):
    owner, member = make_student(), make_student()
    group = groups.create_group(owner.id, 'Maths')
    groups.join_by_code(member.id, group.invite_code)

    groups.leave_group(group.id, owner.id)

    remaining = groups.get_group(group.id, member.id)
    assert [m.student_id for m in remaining.memberships] == [member.id]


def test_leave_group_when_not_a_member(groups, make_student):
    owner, outsider = make_student(), make_student()
    group = groups.create_group(owner.id, 'Art')

    with pytest.raises(NotFoundError, match='not a member'):
        groups.leave_group(group.id, outsider.id)


def test_delete_group_requires_admin(groups, make_student):
    owner, member = make_student(), make_student()
    group = groups.create_group(owner.id, 'Music')
    groups.join_by_code(member.id, group.invite_code)

    with pytest.raises(ForbiddenError, match='Only the group admin can delete'):
        groups.delete_group(group.id, member.id)


def test_delete_group_cascades(
    groups, invitations, shares, group_files, blob_store, db_session, make_student
):
    owner, member, invitee = make_student(), make_student(), make_student()
    group = groups.create_group(owner.id, 'Cascade')
    groups.join_by_code(member.id, group.invite_code)
    invitations.invite(group.id, owner.id, invitee.email)
    shares.share(group.id, member.id, 'note', 'a' * 24)
    first = group_files.upload(group.id, owner.id, b'one', 'one.txt', 'text/plain')
    second = group_files.upload(group.id, member.id, b'two', 'two.txt', 'text/plain')

    group_id, blob_ids = group.id, [first.file_id, second.file_id]

    report = groups.delete_group(group_id, owner.id)

    assert report.files_removed == 2
    assert report.blobs_unreleased == 0
    assert report.resources_removed == 1
    assert report.invitations_removed == 1
    assert report.memberships_removed == 2
    assert not any(blob_store.exists(blob_id) for blob_id in blob_ids)
    for model in (GroupFileModel, GroupResourceModel, GroupInvitationModel, GroupMembershipModel):
        assert db_session.query(model).filter_by(group_id=group_id).count() == 0
    with pytest.raises(NotFoundError):
        groups.get_group(group_id, owner.id)


def test_delete_group_tolerates_missing_blobs(
    groups, group_files, blob_store, db_session, make_student
):
    owner = make_student()
    group = groups.create_group(owner.id, 'Lost bytes')
    uploaded = group_files.upload(group.id, owner.id, b'data', 'data.bin', None)
    blob_store.delete(uploaded.file_id)
    group_id = group.id

    report = groups.delete_group(group_id, owner.id)

    assert report.files_removed == 1
    assert report.blobs_unreleased == 1
    assert db_session.query(GroupFileModel).filter_by(group_id=group_id).count() == 0


def _fail_on_commit(db_session, monkeypatch, failing_call):
    """Make the ``failing_call``-th commit from now raise"""
    real_commit = db_session.commit
    calls = []

    def commit():
        calls.append(1)
        if len(calls) == failing_call:
            raise SQLAlchemyError('disk I/O error')
        real_commit()

    monkeypatch.setattr(db_session, 'commit', commit)


def test_delete_group_stops_at_failing_stage(
    groups, invitations, shares, group_files, db_session, make_student, monkeypatch
):
    owner, invitee = make_student(), make_student()
    group = groups.create_group(owner.id, 'Half gone')
    invitations.invite(group.id, owner.id, invitee.email)
    shares.share(group.id, owner.id, 'project', 'a' * 24)
    group_files.upload(group.id, owner.id, b'one', 'one.txt', 'text/plain')
    group_id = group.id

    # files and resources commit, invitations is the third commit
    _fail_on_commit(db_session, monkeypatch, 3)
    with pytest.raises(CascadeDeleteError) as excinfo:
        groups.delete_group(group_id, owner.id)

    assert excinfo.value.group_id == group_id
    assert excinfo.value.completed == ['files', 'resources']
    assert excinfo.value.failed == 'invitations'
    assert excinfo.value.status_code == 500
    assert db_session.query(GroupFileModel).filter_by(group_id=group_id).count() == 0
    assert db_session.query(GroupResourceModel).filter_by(group_id=group_id).count() == 0
    assert db_session.query(GroupInvitationModel).filter_by(group_id=group_id).count() == 1
    assert db_session.query(GroupMembershipModel).filter_by(group_id=group_id).count() == 1
    assert db_session.query(GroupModel).filter_by(id=group_id).count() == 1


def test_delete_group_failure_is_logged_once(
    groups, db_session, make_student, monkeypatch, caplog
):
    owner = make_student()
    group = groups.create_group(owner.id, 'Logged')
    group_id = group.id

    _fail_on_commit(db_session, monkeypatch, 1)
    with caplog.at_level(logging.ERROR):
        with pytest.raises(CascadeDeleteError):
            groups.delete_group(group_id, owner.id)

    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert errors[0].name == 'utils.group_manager'
    assert "stage 'files'" in errors[0].getMessage()

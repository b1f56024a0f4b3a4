import secrets

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import DuplicateShareError, ForbiddenError, NotFoundError, ValidationError
from models.group_resource import GroupResourceModel
from schemas.resource import NoteCreateRequest
from utils.note_manager import NoteManager


@pytest.fixture
def note_manager(db_session, attachments):
    return NoteManager(db_session, attachments)


def test_share_note_and_list_with_payload(groups, shares, note_manager, make_student):
    owner = make_student()
    group = groups.create_group(owner.id, 'Readers')
    note = note_manager.create_note(owner.id, NoteCreateRequest(title='Graphs', content='BFS'))

    share = shares.share(group.id, owner.id, 'note', note.id)

    assert share.resource_type == 'note'
    assert share.shared_by == owner.id
    listed = shares.list_for_group(group.id, owner.id)
    assert len(listed) == 1
    listed_share, resource = listed[0]
    assert listed_share.id == share.id
    assert resource['title'] == 'Graphs'
    assert resource['content'] == 'BFS'


def test_share_same_resource_twice(groups, shares, make_student):
    owner = make_student()
    group = groups.create_group(owner.id, 'Dupes')
    shares.share(group.id, owner.id, 'project', 'b' * 24)

    with pytest.raises(DuplicateShareError, match='Already shared to this group.'):
        shares.share(group.id, owner.id, 'project', 'b' * 24)


def test_same_resource_can_go_to_different_groups(groups, shares, make_student):
    owner = make_student()
    first = groups.create_group(owner.id, 'One')
    second = groups.create_group(owner.id, 'Two')

    shares.share(first.id, owner.id, 'note', 'c' * 24)
    shares.share(second.id, owner.id, 'note', 'c' * 24)

    assert len(shares.list_for_group(first.id, owner.id)) == 1
    assert len(shares.list_for_group(second.id, owner.id)) == 1


def test_share_requires_membership_before_type_check(groups, shares, make_student):
    owner, outsider = make_student(), make_student()
    group = groups.create_group(owner.id, 'Private')

    with pytest.raises(ForbiddenError):
        shares.share(group.id, outsider.id, 'video', 'd' * 24)
    with pytest.raises(ValidationError, match='resource_type must be note or project.'):
        shares.share(group.id, owner.id, 'video', 'd' * 24)
    with pytest.raises(NotFoundError):
        shares.share('f' * 24, owner.id, 'note', 'd' * 24)


def test_list_for_group_tolerates_missing_resource(groups, shares, make_student):
    owner = make_student()
    group = groups.create_group(owner.id, 'Ghosts')
    shares.share(group.id, owner.id, 'project', 'e' * 24)

    [(share, resource)] = shares.list_for_group(group.id, owner.id)

    assert share.resource_id == 'e' * 24
    assert resource is None


def test_list_for_group_requires_membership(groups, shares, make_student):
    owner, outsider = make_student(), make_student()
    group = groups.create_group(owner.id, 'Closed')

    with pytest.raises(ForbiddenError):
        shares.list_for_group(group.id, outsider.id)


def test_share_triple_is_unique_in_storage(groups, db_session, make_student):
    owner = make_student()
    group = groups.create_group(owner.id, 'Constraint')

    def row():
        return GroupResourceModel(
            id=secrets.token_hex(12),
            group_id=group.id,
            resource_type='note',
            resource_id='a' * 24,
            shared_by=owner.id,
            shared_at='2024-01-01T00:00:00+00:00',
        )

    db_session.add(row())
    db_session.commit()
    db_session.add(row())
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_concurrent_share_maps_constraint_violation(
    groups, shares, db_session, make_student, monkeypatch
):
    owner = make_student()
    group = groups.create_group(owner.id, 'Race')
    shares.share(group.id, owner.id, 'note', 'a' * 24)
    monkeypatch.setattr(shares, '_find_share', lambda *args: None)

    with pytest.raises(DuplicateShareError, match='Already shared to this group.'):
        shares.share(group.id, owner.id, 'note', 'a' * 24)

    assert db_session.query(GroupResourceModel).filter_by(group_id=group.id).count() == 1


def test_shared_payload_includes_attachments(
    groups, shares, note_manager, attachments, make_student
):
    owner = make_student()
    group = groups.create_group(owner.id, 'With files')
    note = note_manager.create_note(owner.id, NoteCreateRequest(title='Trees'))
    attachment = attachments.add('note', note.id, owner.id, b'diagram', 'tree.png', 'image/png')
    shares.share(group.id, owner.id, 'note', note.id)

    [(_, resource)] = shares.list_for_group(group.id, owner.id)

    assert [a['file_id'] for a in resource['attachments']] == [attachment.file_id]
    assert resource['attachments'][0]['original_name'] == 'tree.png'

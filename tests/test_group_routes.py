"""End-to-end group flows over HTTP."""
import logging
import re

import pytest

from core.exceptions import CascadeDeleteError
from utils.group_manager import GroupManager


@pytest.fixture
def study(client, register):
    """Admin A with group "Study" and a second student B"""
    a, a_headers = register('Alice')
    b, b_headers = register('Bob')
    response = client.post('/api/groups', json={'name': 'Study'}, headers=a_headers)
    assert response.status_code == 201
    return response.json(), (a, a_headers), (b, b_headers)


def _invite_and_accept(client, group, a_headers, b, b_headers):
    invited = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': b['email']}, headers=a_headers
    )
    assert invited.status_code == 201
    response = client.patch(
        f"/api/groups/invitations/{invited.json()['id']}/respond",
        json={'status': 'accepted'},
        headers=b_headers,
    )
    assert response.status_code == 200
    return invited.json()


def test_create_group_response(study):
    group, (a, _), _ = study

    assert re.fullmatch(r'[A-Z0-9]{6}', group['invite_code'])
    assert group['created_by']['id'] == a['id']
    assert group['role'] == 'admin'
    assert [(m['student_id'], m['role']) for m in group['members']] == [(a['id'], 'admin')]


def test_create_group_requires_name(client, register):
    _, headers = register()

    response = client.post('/api/groups', json={'name': ' '}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {'error': 'Group name is required.'}


def test_scenario_invite_and_accept(client, study):
    group, (a, a_headers), (b, b_headers) = study

    invited = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': b['email']}, headers=a_headers
    )
    assert invited.status_code == 201
    invitation = invited.json()
    assert invitation['status'] == 'pending'
    assert invitation['group']['name'] == 'Study'

    pending = client.get('/api/groups/invitations', headers=b_headers).json()
    assert [i['id'] for i in pending] == [invitation['id']]

    accepted = client.patch(
        f"/api/groups/invitations/{invitation['id']}/respond",
        json={'status': 'accepted'},
        headers=b_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json() == {'message': 'Invitation accepted.', 'status': 'accepted'}

    detail = client.get(f"/api/groups/{group['id']}", headers=b_headers).json()
    assert {m['student_id']: m['role'] for m in detail['members']}[b['id']] == 'member'
    assert detail['role'] == 'member'

    again = client.patch(
        f"/api/groups/invitations/{invitation['id']}/respond",
        json={'status': 'accepted'},
        headers=b_headers,
    )
    assert again.status_code == 404

    history = client.get(f"/api/groups/{group['id']}/invitations", headers=a_headers)
    assert [i['status'] for i in history.json()] == ['accepted']
    forbidden = client.get(f"/api/groups/{group['id']}/invitations", headers=b_headers)
    assert forbidden.status_code == 403


def test_respond_with_invalid_status(client, study):
    group, (_, a_headers), (b, b_headers) = study
    invited = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': b['email']}, headers=a_headers
    ).json()

    response = client.patch(
        f"/api/groups/invitations/{invited['id']}/respond",
        json={'status': 'maybe'},
        headers=b_headers,
    )

    assert response.status_code == 400
    assert response.json() == {'error': 'Status must be accepted or rejected.'}


def test_invite_errors(client, study):
    group, (a, a_headers), (b, b_headers) = study

    self_invite = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': a['email']}, headers=a_headers
    )
    assert self_invite.status_code == 400
    assert self_invite.json() == {'error': 'You cannot invite yourself.'}

    unknown = client.post(
        f"/api/groups/{group['id']}/invite",
        json={'email': 'ghost@example.com'},
        headers=a_headers,
    )
    assert unknown.status_code == 404

    not_admin = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': a['email']}, headers=b_headers
    )
    assert not_admin.status_code == 403

    client.post(f"/api/groups/{group['id']}/invite", json={'email': b['email']}, headers=a_headers)
    duplicate = client.post(
        f"/api/groups/{group['id']}/invite", json={'email': b['email']}, headers=a_headers
    )
    assert duplicate.status_code == 400
    assert duplicate.json() == {'error': 'A pending invitation already exists for Bob.'}


def test_scenario_join_when_already_member(client, study):
    group, (_, a_headers), (b, b_headers) = study
    _invite_and_accept(client, group, a_headers, b, b_headers)

    response = client.post(
        '/api/groups/join', json={'invite_code': group['invite_code']}, headers=b_headers
    )

    assert response.status_code == 400
    assert response.json() == {'error': 'You are already a member of "Study".'}


def test_join_by_code(client, study, register):
    group, _, _ = study
    _, c_headers = register('Carol')

    response = client.post(
        '/api/groups/join', json={'invite_code': group['invite_code'].lower()}, headers=c_headers
    )
    assert response.status_code == 200
    assert response.json()['role'] == 'member'

    bad = client.post('/api/groups/join', json={'invite_code': 'NOPE00'}, headers=c_headers)
    assert bad.status_code == 404
    assert bad.json() == {'error': 'Invalid invite code.'}

    assert client.get('/api/groups/stats/dashboard', headers=c_headers).json() == {'count': 1}
    assert [g['id'] for g in client.get('/api/groups', headers=c_headers).json()] == [group['id']]


def test_scenario_share_note_twice(client, study):
    group, (_, a_headers), _ = study
    note = client.post('/api/notes', json={'title': 'N'}, headers=a_headers).json()
    payload = {'resource_type': 'note', 'resource_id': note['id']}

    first = client.post(f"/api/groups/{group['id']}/share", json=payload, headers=a_headers)
    assert first.status_code == 201

    second = client.post(f"/api/groups/{group['id']}/share", json=payload, headers=a_headers)
    assert second.status_code == 400
    assert second.json() == {'error': 'Already shared to this group.'}

    resources = client.get(f"/api/groups/{group['id']}/resources", headers=a_headers).json()
    assert len(resources) == 1
    assert resources[0]['resource']['title'] == 'N'


def test_scenario_group_file_uploader_only_delete(client, app, study):
    group, (_, a_headers), (b, b_headers) = study
    _invite_and_accept(client, group, a_headers, b, b_headers)

    uploaded = client.post(
        f"/api/groups/{group['id']}/files",
        files={'file': ('notes week 1.txt', b'hello', 'text/plain')},
        headers=b_headers,
    )
    assert uploaded.status_code == 201
    group_file = uploaded.json()
    assert group_file['uploaded_by']['id'] == b['id']
    assert group_file['original_name'] == 'notes week 1.txt'
    assert app.state.blob_store.exists(group_file['file_id'])

    url = f"/api/groups/{group['id']}/files/{group_file['id']}"
    assert client.delete(url, headers=a_headers).status_code == 403

    deleted = client.delete(url, headers=b_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {'message': 'File deleted.'}
    assert not app.state.blob_store.exists(group_file['file_id'])
    assert client.get(f"/api/groups/{group['id']}/files", headers=a_headers).json() == []


def test_upload_without_file(client, study):
    group, (_, a_headers), _ = study

    response = client.post(f"/api/groups/{group['id']}/files", headers=a_headers)

    assert response.status_code == 400
    assert response.json() == {'error': 'No file provided.'}


def test_scenario_delete_group_cascades(client, app, study, register):
    group, (_, a_headers), (b, b_headers) = study
    _invite_and_accept(client, group, a_headers, b, b_headers)
    c, _ = register('Carol')
    client.post(f"/api/groups/{group['id']}/invite", json={'email': c['email']}, headers=a_headers)
    client.post(
        f"/api/groups/{group['id']}/share",
        json={'resource_type': 'project', 'resource_id': 'a' * 24},
        headers=b_headers,
    )
    group_file = client.post(
        f"/api/groups/{group['id']}/files",
        files={'file': ('data.csv', b'a,b\n1,2\n', 'text/csv')},
        headers=b_headers,
    ).json()

    assert client.delete(f"/api/groups/{group['id']}", headers=b_headers).status_code == 403

    response = client.delete(f"/api/groups/{group['id']}", headers=a_headers)

    assert response.status_code == 200
    assert response.json() == {
        'message': 'Group deleted.',
        'files_removed': 1,
        'blobs_unreleased': 0,
        'resources_removed': 1,
        'invitations_removed': 2,
        'memberships_removed': 2,
    }
    assert not app.state.blob_store.exists(group_file['file_id'])
    for headers in (a_headers, b_headers):
        gone = client.get(f"/api/groups/{group['id']}", headers=headers)
        assert gone.status_code == 404
        assert gone.json() == {'error': 'Group not found.'}


def test_leave_group(client, study):
    group, (_, a_headers), (b, b_headers) = study
    _invite_and_accept(client, group, a_headers, b, b_headers)

    response = client.delete(f"/api/groups/{group['id']}/leave", headers=b_headers)
    assert response.status_code == 200
    assert response.json() == {'message': 'You have left the group.'}

    assert client.get(f"/api/groups/{group['id']}", headers=b_headers).status_code == 403
    again = client.delete(f"/api/groups/{group['id']}/leave", headers=b_headers)
    assert again.status_code == 404


def test_request_validation_error_shape(client, register):
    _, headers = register()

    response = client.post('/api/groups/join', json={}, headers=headers)

    assert response.status_code == 400
    assert set(response.json()) == {'error'}


def test_partial_delete_is_a_500_without_a_second_log(client, study, monkeypatch, caplog):
    group, (_, a_headers), _ = study

    def failing_delete(self, group_id, requester_id):
        raise CascadeDeleteError(group_id, ['files'], 'resources')

    monkeypatch.setattr(GroupManager, 'delete_group', failing_delete)
    with caplog.at_level(logging.ERROR):
        response = client.delete(f"/api/groups/{group['id']}", headers=a_headers)

    assert response.status_code == 500
    assert 'partially completed' in response.json()['error']
    assert [r for r in caplog.records if r.name == 'app'] == []

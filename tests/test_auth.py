from datetime import timedelta

from api.routes.auth import create_access_token


def test_register_returns_token_and_public_student(client):
    response = client.post(
        '/api/auth/register',
        json={'name': 'Ada', 'email': 'Ada@Example.com', 'password': 'secret'},
    )

    assert response.status_code == 201
    data = response.json()
    assert data['token']
    assert data['student']['email'] == 'ada@example.com'
    assert 'password_hash' not in data['student']


def test_register_duplicate_email(client):
    payload = {'name': 'Ada', 'email': 'ada@example.com', 'password': 'secret'}
    client.post('/api/auth/register', json=payload)

    response = client.post('/api/auth/register', json=payload)

    assert response.status_code == 400
    assert response.json() == {'error': 'Email is already registered.'}


def test_register_requires_all_fields(client):
    response = client.post('/api/auth/register', json={'name': 'Ada', 'email': '', 'password': 'x'})

    assert response.status_code == 400
    assert response.json() == {'error': 'All fields are required.'}


def test_login_success_and_failure(client):
    client.post(
        '/api/auth/register',
        json={'name': 'Grace', 'email': 'grace@example.com', 'password': 'cobol'},
    )

    ok = client.post('/api/auth/login', json={'email': 'GRACE@example.com', 'password': 'cobol'})
    assert ok.status_code == 200
    assert ok.json()['student']['name'] == 'Grace'

    wrong = client.post('/api/auth/login', json={'email': 'grace@example.com', 'password': 'nope'})
    assert wrong.status_code == 400
    assert wrong.json() == {'error': 'Invalid email or password.'}

    unknown = client.post('/api/auth/login', json={'email': 'who@example.com', 'password': 'x'})
    assert unknown.status_code == 400


def test_me(client, register):
    student, headers = register('Linus')

    response = client.get('/api/auth/me', headers=headers)

    assert response.status_code == 200
    assert response.json() == {'id': student['id'], 'name': 'Linus', 'email': student['email']}


def test_token_via_query_parameter(client, register):
    student, headers = register()
    token = headers['Authorization'].split(' ', 1)[1]

    response = client.get('/api/auth/me', params={'token': token})

    assert response.status_code == 200
    assert response.json()['id'] == student['id']


def test_missing_and_invalid_tokens(client):
    missing = client.get('/api/groups')
    assert missing.status_code == 401
    assert missing.json() == {'error': 'Access denied. No token provided.'}

    invalid = client.get('/api/groups', headers={'Authorization': 'Bearer not-a-jwt'})
    assert invalid.status_code == 401
    assert invalid.json() == {'error': 'Invalid or expired token.'}


def test_expired_token(client, register):
    student, _ = register()
    token = create_access_token({'sub': student['id']}, expires_delta=timedelta(minutes=-1))

    response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401


def test_token_for_unknown_student(client):
    token = create_access_token({'sub': '0' * 24})

    response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Student not found.'}


def test_health_and_unknown_route(client):
    assert client.get('/api/health').json() == {'status': 'ok'}

    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.json() == {'error': 'Not Found'}

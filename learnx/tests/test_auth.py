PASSWORD = 'secret123'


def test_root_and_api_info(client):
    assert client.get('/').status_code == 200

    response = client.get('/api')
    assert response.status_code == 200
    assert response.json['endpoints']['courses'] == '/api/courses'


def test_health_reports_database(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.json['database'] == 'Connected'
    assert response.json['environment'] == 'testing'


def test_register_assigns_sequential_user_ids(client):
    first = client.post('/api/auth/register', json={
        'name': 'Ada Lovelace', 'email': 'Ada@Example.com', 'password': PASSWORD
    })
    second = client.post('/api/auth/register', json={
        'name': 'Alan Turing', 'email': 'alan@example.com', 'password': PASSWORD, 'role': 'instructor'
    })

    assert first.status_code == 201
    assert first.json['user']['userId'] == 1001
    assert first.json['user']['email'] == 'ada@example.com'
    assert first.json['user']['role'] == 'student'
    assert second.json['user']['userId'] == 1002
    assert second.json['user']['role'] == 'instructor'


def test_register_logs_the_user_in(client):
    client.post('/api/auth/register', json={
        'name': 'Grace Hopper', 'email': 'grace@example.com', 'password': PASSWORD
    })

    response = client.get('/api/auth/me')
    assert response.status_code == 200
    assert response.json['user']['name'] == 'Grace Hopper'


def test_register_rejects_admin_role(client):
    response = client.post('/api/auth/register', json={
        'name': 'Mallory', 'email': 'mallory@example.com', 'password': PASSWORD, 'role': 'admin'
    })

    assert response.status_code == 400
    assert response.json['code'] == 'VALIDATION_ERROR'


def test_register_validation(client, make_user):
    make_user(email='taken@example.com')

    duplicate = client.post('/api/auth/register', json={
        'name': 'Someone', 'email': 'taken@example.com', 'password': PASSWORD
    })
    short_password = client.post('/api/auth/register', json={
        'name': 'Someone', 'email': 'new@example.com', 'password': '123'
    })
    bad_email = client.post('/api/auth/register', json={
        'name': 'Someone', 'email': 'not-an-email', 'password': PASSWORD
    })

    assert duplicate.status_code == 400
    assert duplicate.json['message'] == 'Email already registered'
    assert short_password.status_code == 400
    assert bad_email.status_code == 400


def test_login_and_logout(client, make_user, login):
    student = make_user()

    response = login(student)
    assert response.json['user']['userId'] == student.user_id
    assert client.get('/api/auth/me').status_code == 200

    assert client.post('/api/auth/logout').status_code == 200
    response = client.get('/api/auth/me')
    assert response.status_code == 401
    assert response.json['code'] == 'UNAUTHORIZED'


def test_login_wrong_password(client, make_user):
    student = make_user()

    response = client.post('/api/auth/login', json={'email': student.email, 'password': 'wrong-one'})

    assert response.status_code == 401
    assert response.json['code'] == 'INVALID_CREDENTIALS'


def test_users_listing_is_admin_only(client, make_user, login):
    admin = make_user(role='admin')
    student = make_user()

    login(student)
    assert client.get('/api/users/').status_code == 403
    assert client.get(f'/api/users/{student.user_id}').status_code == 200
    assert client.get(f'/api/users/{admin.user_id}').status_code == 403

    login(admin)
    response = client.get('/api/users/?role=student')
    assert response.status_code == 200
    assert [user['userId'] for user in response.json['users']] == [student.user_id]


def test_register_rejects_wrongly_typed_fields(client):
    base = {'name': 'Ada Lovelace', 'email': 'ada@example.com', 'password': PASSWORD}

    for payload in (
        {**base, 'email': 5},
        {**base, 'name': ['Ada']},
        {**base, 'password': 12345678},
        {**base, 'profile': 'x'},
        {**base, 'profile': {'location': 'London'}},
        {**base, 'profile': {'bio': 7}},
    ):
        response = client.post('/api/auth/register', json=payload)
        assert response.status_code == 400, payload
        assert response.json['code'] == 'VALIDATION_ERROR'

    assert client.post('/api/auth/register', json=base).status_code == 201


def test_login_rejects_wrongly_typed_fields(client, make_user):
    student = make_user()

    numeric_email = client.post('/api/auth/login', json={'email': 5, 'password': PASSWORD})
    numeric_password = client.post('/api/auth/login', json={'email': student.email, 'password': 123456})
    list_body = client.post('/api/auth/login', json=[student.email, PASSWORD])

    assert numeric_email.status_code == 400
    assert numeric_password.status_code == 400
    assert list_body.status_code == 400

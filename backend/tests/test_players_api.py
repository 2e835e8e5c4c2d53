def _register(client, username='lihua', email='lihua@example.com', password='password123'):
    return client.post('/api/players/register', json={
        'username': username, 'email': email, 'password': password,
    })


def test_register_player(client):
    res = _register(client)
    assert res.status_code == 201
    data = res.get_json()
    assert data['username'] == 'lihua'
    assert data['role'] == 'PLAYER'
    assert data['active'] is True
    assert 'password_hash' not in data


def test_duplicate_username_is_case_insensitive(client):
    assert _register(client).status_code == 201
    res = _register(client, username='LiHua', email='other@example.com')
    assert res.status_code == 409
    body = res.get_json()
    assert body['status'] == 409
    assert body['error'] == 'Duplicate Player'
    assert body['details'] == {'field': 'username', 'value': 'LiHua'}
    assert body['path'] == '/api/players/register'
    assert 'timestamp' in body


def test_duplicate_email(client):
    assert _register(client).status_code == 201
    res = _register(client, username='lihua2', email='LIHUA@example.com')
    assert res.status_code == 409
    assert res.get_json()['details']['field'] == 'email'


def test_register_validation_errors(client):
    assert _register(client, password='short').status_code == 400
    assert _register(client, email='not-an-email').status_code == 400
    assert _register(client, username='ab').status_code == 400
    res = client.post('/api/players/register', json={'username': 'lihua'})
    assert res.status_code == 400
    assert set(res.get_json()['details']) == {'email', 'password'}


def test_login_me_logout(client):
    _register(client)
    assert client.get('/api/players/me').status_code == 401

    res = client.post('/api/players/login', json={'username': 'lihua', 'password': 'password123'})
    assert res.status_code == 200
    assert res.get_json()['player']['last_login_at'] is not None
    assert client.get('/api/players/me').get_json()['username'] == 'lihua'

    assert client.post('/api/players/logout').status_code == 200
    assert client.get('/api/players/me').status_code == 401


def test_login_by_email_and_bad_password(client):
    _register(client)
    res = client.post('/api/players/login', json={'username': 'lihua@example.com', 'password': 'password123'})
    assert res.status_code == 200
    res = client.post('/api/players/login', json={'username': 'lihua', 'password': 'wrong-password'})
    assert res.status_code == 401


def test_deactivated_player_cannot_login(client):
    player_id = _register(client).get_json()['id']
    res = client.post(f'/api/players/{player_id}/deactivate')
    assert res.get_json()['active'] is False
    res = client.post('/api/players/login', json={'username': 'lihua', 'password': 'password123'})
    assert res.status_code == 401
    assert res.get_json()['message'] == 'Account is deactivated'

    client.post(f'/api/players/{player_id}/reactivate')
    res = client.post('/api/players/login', json={'username': 'lihua', 'password': 'password123'})
    assert res.status_code == 200


def test_get_unknown_player_is_404(client):
    res = client.get('/api/players/999')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Player Not Found'


def test_update_email_role_and_password(client):
    player_id = _register(client).get_json()['id']
    _register(client, username='wangfang', email='wangfang@example.com')

    res = client.patch(f'/api/players/{player_id}', json={'email': 'wangfang@example.com'})
    assert res.status_code == 409
    res = client.patch(f'/api/players/{player_id}', json={'email': 'new@example.com'})
    assert res.get_json()['email'] == 'new@example.com'

    res = client.patch(f'/api/players/{player_id}/role', json={'role': 'moderator'})
    assert res.get_json()['role'] == 'MODERATOR'
    assert client.patch(f'/api/players/{player_id}/role', json={'role': 'king'}).status_code == 400

    res = client.post(f'/api/players/{player_id}/password',
                      json={'current_password': 'nope-nope', 'new_password': 'another-pass'})
    assert res.status_code == 401
    res = client.post(f'/api/players/{player_id}/password',
                      json={'current_password': 'password123', 'new_password': 'another-pass'})
    assert res.status_code == 200
    res = client.post('/api/players/login', json={'username': 'lihua', 'password': 'another-pass'})
    assert res.status_code == 200


def test_list_and_search_players(client):
    _register(client)
    _register(client, username='wangfang', email='wangfang@example.com')
    names = [p['username'] for p in client.get('/api/players/').get_json()]
    assert names == ['lihua', 'wangfang']
    names = [p['username'] for p in client.get('/api/players/?q=wang').get_json()]
    assert names == ['wangfang']
    assert client.get('/api/players/counts').get_json() == {'total': 2, 'active': 2, 'inactive': 0}


def test_statistics_for_new_player(client):
    player_id = _register(client).get_json()['id']
    stats = client.get(f'/api/players/{player_id}/statistics').get_json()
    assert stats['total_games'] == 0
    assert stats['total_score'] == 0
    assert stats['overall_accuracy'] == 0.0
    assert stats['best_rank'] is None

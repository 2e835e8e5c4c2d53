from collections import Counter

from conftest import session_answer


def _start(client, player='xiaoming', difficulty='EASY'):
    return client.post(f'/api/games/idiom/start?player_id={player}', json={'difficulty': difficulty})


def test_start_returns_scrambled_idiom(client):
    res = _start(client)
    assert res.status_code == 201
    data = res.get_json()
    answer = session_answer(data['session_id'])
    assert Counter(data['scrambled']) == Counter(answer)
    assert data['token_count'] == len(answer)
    assert data['time_limit'] == 180
    assert data['difficulty'] == 'EASY'
    assert data['definition']


def test_start_auto_creates_player_by_username(client):
    _start(client, player='newcomer')
    res = client.get('/api/leaderboards/player/newcomer')
    assert res.status_code == 200
    assert res.get_json() == []


def test_start_requires_valid_difficulty(client):
    res = _start(client, difficulty='LEGENDARY')
    assert res.status_code == 400
    assert 'difficulty' in res.get_json()['details']
    res = client.post('/api/games/idiom/start?player_id=xiaoming', json={})
    assert res.status_code == 400


def test_correct_submission_scores_and_ranks(client):
    session_id = _start(client).get_json()['session_id']
    answer = session_answer(session_id)

    res = client.post('/api/games/idiom/submit?player_id=xiaoming',
                      json={'answer': answer, 'time_taken': 1, 'hints_used': 0})
    assert res.status_code == 200
    data = res.get_json()
    assert data['correct'] is True
    assert data['correct_answer'] == answer
    # 179s left of 180 -> bonus 49
    assert data['breakdown'] == {
        'base_points': 100, 'time_bonus': 49, 'difficulty_multiplier': 1.0,
        'hint_penalty': 0, 'total_score': 149,
    }
    assert data['score'] == 149
    assert data['rank'] == 1
    assert '第一次胜利' in data['new_achievements']
    assert '速度之王' in data['new_achievements']
    assert '完美主义者' in data['new_achievements']

    top = client.get('/api/leaderboards/top?game_type=IDIOM&difficulty=EASY').get_json()
    assert top[0]['username'] == 'xiaoming'
    assert top[0]['total_score'] == 149


def test_incorrect_submission_scores_zero_and_skips_leaderboard(client):
    session_id = _start(client).get_json()['session_id']
    answer = session_answer(session_id)
    wrong = answer[::-1] if answer[::-1] != answer else answer[1:] + answer[0]

    data = client.post('/api/games/idiom/submit?player_id=xiaoming',
                       json={'answer': wrong, 'time_taken': 20}).get_json()
    assert data['correct'] is False
    assert data['score'] == 0
    assert data['rank'] is None
    assert data['new_achievements'] == []
    assert client.get('/api/leaderboards/player/xiaoming').get_json() == []

    history = client.get('/api/games/idiom/history/xiaoming').get_json()
    assert len(history) == 1
    assert history[0]['completed'] is False


def test_submit_without_active_session_is_404(client):
    client.post('/api/players/register', json={
        'username': 'xiaoming', 'email': 'xm@example.com', 'password': 'password123'})
    res = client.post('/api/games/idiom/submit?player_id=xiaoming', json={'answer': '一心一意', 'time_taken': 5})
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Game Session Not Found'


def test_submit_validation(client):
    _start(client)
    assert client.post('/api/games/idiom/submit?player_id=xiaoming',
                       json={'answer': '', 'time_taken': 5}).status_code == 400
    assert client.post('/api/games/idiom/submit?player_id=xiaoming',
                       json={'answer': '一心一意', 'time_taken': 0}).status_code == 400
    assert client.post('/api/games/idiom/submit?player_id=xiaoming',
                       json={'answer': '一心一意', 'time_taken': 5, 'hints_used': -1}).status_code == 400
    res = client.post('/api/games/idiom/submit?player_id=xiaoming',
                      json={'answer': '一心一意', 'time_taken': 5, 'hints_used': 4})
    assert res.status_code == 400
    assert res.get_json()['details'] == {'max_hints': 3, 'current_hints': 4}


def test_hints_escalate_and_are_capped(client):
    session_id = _start(client).get_json()['session_id']
    answer = session_answer(session_id)

    first = client.post('/api/games/idiom/hint/1?player_id=xiaoming').get_json()
    assert first['penalty'] == 10
    assert first['hints_remaining'] == 2
    second = client.post('/api/games/idiom/hint/2?player_id=xiaoming').get_json()
    assert answer[0] in second['content']
    third = client.post('/api/games/idiom/hint/3?player_id=xiaoming').get_json()
    assert third['hints_used'] == 3

    res = client.post('/api/games/idiom/hint/1?player_id=xiaoming')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Max Hints Exceeded'

    assert client.post('/api/games/idiom/hint/4?player_id=xiaoming').status_code == 400

    # recorded hints count even if the client reports none
    data = client.post('/api/games/idiom/submit?player_id=xiaoming',
                       json={'answer': answer, 'time_taken': 1, 'hints_used': 0}).get_json()
    assert data['hints_used'] == 3
    assert data['breakdown']['hint_penalty'] == 60
    assert data['score'] == 89


def test_starting_again_abandons_previous_session(client):
    first = _start(client).get_json()['session_id']
    _start(client, difficulty='HARD')
    sessions = client.get('/api/players/1/sessions').get_json()
    status = {s['id']: s['status'] for s in sessions}
    assert status[first] == 'ABANDONED'
    assert list(status.values()).count('ACTIVE') == 1


def test_abandon_and_session_statistics(client):
    _start(client)
    res = client.post('/api/games/idiom/abandon?player_id=xiaoming')
    assert res.get_json()['status'] == 'ABANDONED'
    assert client.post('/api/games/idiom/abandon?player_id=xiaoming').status_code == 404

    stats = client.get('/api/players/1/sessions/statistics').get_json()
    assert stats['total'] == 1
    assert stats['abandoned'] == 1
    assert stats['completion_rate'] == 0.0


def test_sentence_session_cannot_be_submitted_as_idiom(client):
    client.post('/api/games/sentence/start?player_id=xiaoming', json={'difficulty': 'EASY'})
    res = client.post('/api/games/idiom/submit?player_id=xiaoming', json={'answer': '一心一意', 'time_taken': 5})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Invalid Game State'


def test_personal_best_and_history_limit(client):
    for time_taken in (30, 5):
        session_id = _start(client).get_json()['session_id']
        client.post('/api/games/idiom/submit?player_id=xiaoming',
                    json={'answer': session_answer(session_id), 'time_taken': time_taken})

    best = client.get('/api/games/idiom/personal-best/xiaoming?difficulty=easy').get_json()
    assert best['games_played'] == 2
    assert best['best']['time_taken'] == 5
    assert len(client.get('/api/games/idiom/history/xiaoming?limit=1').get_json()) == 1
    assert client.get('/api/games/idiom/history/nobody').status_code == 404


def test_no_repeat_mode_exhausts_and_restarts(no_repeat_app):
    client = no_repeat_app.test_client()
    seen = set()
    for _ in range(5):
        session_id = _start(client).get_json()['session_id']
        seen.add(session_answer(session_id))
    assert len(seen) == 5

    res = _start(client)
    assert res.status_code == 409
    assert res.get_json()['details']['total_questions'] == 5

    restarted = client.post('/api/games/idiom/restart?player_id=xiaoming').get_json()
    assert restarted['cleared'] == 5
    assert _start(client).status_code == 201


def test_failed_settlement_rolls_back_the_whole_submit(client, monkeypatch):
    from sqlalchemy.orm.exc import StaleDataError
    from scramble import db
    from scramble.models import GameSession, IdiomScore
    from scramble.services import leaderboard

    session_id = _start(client).get_json()['session_id']
    answer = session_answer(session_id)

    def conflict(*args, **kwargs):
        raise StaleDataError('leaderboard row changed underneath us')

    monkeypatch.setattr(leaderboard, 'record_score', conflict)
    res = client.post('/api/games/idiom/submit?player_id=xiaoming', json={'answer': answer, 'time_taken': 10})
    assert res.status_code == 500

    db.session.expire_all()
    assert IdiomScore.query.count() == 0
    assert db.session.get(GameSession, session_id).status == 'ACTIVE'

    monkeypatch.undo()
    retry = client.post('/api/games/idiom/submit?player_id=xiaoming', json={'answer': answer, 'time_taken': 10})
    assert retry.status_code == 200
    assert retry.get_json()['rank'] == 1
    assert IdiomScore.query.count() == 1

import random

from conftest import make_player
from scramble.cache import get_cache
from scramble.enums import Difficulty, GameType
from scramble.models import Leaderboard
from scramble.services import leaderboard

IDIOM_EASY = (GameType.IDIOM, Difficulty.EASY)


def _bucket_ranks():
    rows = Leaderboard.query.filter_by(game_type='IDIOM', difficulty='EASY').all()
    return rows, sorted(r.rank for r in rows)


def test_ranks_are_a_permutation_with_best_first(flask_app):
    rng = random.Random(7)
    players = [make_player(f"player{i}") for i in range(6)]
    for _ in range(20):
        leaderboard.record_score(rng.choice(players), *IDIOM_EASY, rng.randint(0, 150), 1.0)

    rows, ranks = _bucket_ranks()
    assert ranks == list(range(1, len(rows) + 1))
    leader = next(r for r in rows if r.rank == 1)
    assert leader.total_score == max(r.total_score for r in rows)
    by_rank = sorted(rows, key=lambda r: r.rank)
    assert [r.total_score for r in by_rank] == sorted((r.total_score for r in rows), reverse=True)


def test_ties_keep_first_entrant_ahead(flask_app):
    first, second = make_player('first'), make_player('second')
    leaderboard.record_score(first, *IDIOM_EASY, 100, 1.0)
    leaderboard.record_score(second, *IDIOM_EASY, 100, 1.0)
    assert leaderboard.player_rank(first.id, *IDIOM_EASY).rank == 1
    assert leaderboard.player_rank(second.id, *IDIOM_EASY).rank == 2

    leaderboard.record_score(second, *IDIOM_EASY, 1, 1.0)
    assert leaderboard.player_rank(second.id, *IDIOM_EASY).rank == 1
    assert leaderboard.is_first_place(second.id, *IDIOM_EASY)
    assert leaderboard.is_top_ten(first.id, *IDIOM_EASY)


def test_aggregates_are_running_averages(flask_app):
    p = make_player('averages')
    leaderboard.record_score(p, *IDIOM_EASY, 100, 1.0)
    entry = leaderboard.record_score(p, *IDIOM_EASY, 50, 0.5)
    assert entry.total_score == 150
    assert entry.games_played == 2
    assert entry.average_score == 75.0
    assert entry.accuracy_rate == 0.75


def test_buckets_are_independent(flask_app):
    p = make_player('bucketeer')
    leaderboard.record_score(p, GameType.IDIOM, Difficulty.EASY, 100, 1.0)
    leaderboard.record_score(p, GameType.SENTENCE, Difficulty.HARD, 300, 1.0)
    assert len(leaderboard.player_rankings(p.id)) == 2
    assert leaderboard.bucket_size(GameType.SENTENCE, Difficulty.EASY) == 0


def test_top_players_cached_until_next_score(flask_app):
    a, b = make_player('alpha'), make_player('bravo')
    leaderboard.record_score(a, *IDIOM_EASY, 100, 1.0)
    top = leaderboard.top_players(*IDIOM_EASY, limit=5)
    assert [row['username'] for row in top] == ['alpha']
    assert get_cache().get('leaderboards', 'top:IDIOM:EASY:5') == top

    leaderboard.record_score(b, *IDIOM_EASY, 200, 1.0)
    assert get_cache().get('leaderboards', 'top:IDIOM:EASY:5') is None
    assert [row['username'] for row in leaderboard.top_players(*IDIOM_EASY, limit=5)] == ['bravo', 'alpha']


def test_recalculate_all_repairs_ranks(flask_app):
    from scramble import db
    players = [make_player(f"fix{i}") for i in range(3)]
    for i, p in enumerate(players):
        leaderboard.record_score(p, *IDIOM_EASY, (i + 1) * 10, 1.0)
    for row in Leaderboard.query.all():
        row.rank = 1
    db.session.commit()

    assert leaderboard.recalculate_all() == 3
    _, ranks = _bucket_ranks()
    assert ranks == [1, 2, 3]
    assert leaderboard.player_rank(players[2].id, *IDIOM_EASY).rank == 1


def test_leaderboard_endpoints(client, flask_app):
    players = [make_player(f"api{i}") for i in range(5)]
    for i, p in enumerate(players):
        leaderboard.record_score(p, *IDIOM_EASY, (i + 1) * 100, 0.8)

    top = client.get('/api/leaderboards/top?game_type=idiom&difficulty=easy&limit=3').get_json()
    assert [row['username'] for row in top] == ['api4', 'api3', 'api2']
    assert [row['rank'] for row in top] == [1, 2, 3]

    near = client.get('/api/leaderboards/near?game_type=IDIOM&difficulty=EASY&rank=3&offset=1').get_json()
    assert [row['rank'] for row in near] == [2, 3, 4]

    stats = client.get('/api/leaderboards/statistics?game_type=IDIOM&difficulty=EASY').get_json()
    assert stats['players'] == 5
    assert stats['top_score'] == 500
    assert stats['average_accuracy'] == 0.8

    res = client.get('/api/leaderboards/player/api0/rank?game_type=SENTENCE&difficulty=EASY')
    assert res.status_code == 404
    assert client.get('/api/leaderboards/top?game_type=COMBINED&difficulty=EASY').status_code == 400
    assert client.post('/api/leaderboards/recalculate').get_json() == {'rows': 5}

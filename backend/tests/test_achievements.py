from conftest import make_player
from scramble import db
from scramble.enums import AchievementType, Difficulty, GameType
from scramble.models import IdiomScore
from scramble.services import achievements, leaderboard


def _play(player, score=100, time_taken=45, hints_used=1, accuracy=1.0):
    db.session.add(IdiomScore(player_id=player.id, idiom='一心一意', score=score, difficulty='EASY',
                              time_taken=time_taken, hints_used=hints_used, accuracy_rate=accuracy,
                              completed=True))
    db.session.commit()


def _types(rows):
    return {a.achievement_type for a in rows}


def test_incomplete_games_unlock_nothing(player):
    assert achievements.check_achievements(player, GameType.IDIOM, 0, 0.0, 10, 0, False) == []


def test_first_win_unlocks_once(player):
    _play(player)
    first = achievements.check_achievements(player, GameType.IDIOM, 100, 1.0, 45, 1, True)
    assert _types(first) == {'FIRST_WIN'}
    assert first[0].title == '第一次胜利'

    _play(player)
    assert achievements.check_achievements(player, GameType.IDIOM, 100, 1.0, 45, 1, True) == []
    assert achievements.unlock(player, AchievementType.FIRST_WIN) is None
    assert len(achievements.player_achievements(player.id)) == 1


def test_performance_rules(player):
    _play(player, score=1200, time_taken=10, hints_used=0)
    unlocked = achievements.check_achievements(player, GameType.IDIOM, 1200, 1.0, 10, 0, True)
    assert _types(unlocked) == {'FIRST_WIN', 'SPEED_DEMON', 'PERFECT_SCORE', 'HIGH_SCORER'}


def test_hint_free_needs_ten_clean_games(player):
    for _ in range(9):
        _play(player, hints_used=0)
    assert not achievements.has_achievement(player.id, AchievementType.HINT_FREE)
    achievements.check_achievements(player, GameType.IDIOM, 100, 0.9, 45, 0, True)
    assert not achievements.has_achievement(player.id, AchievementType.HINT_FREE)

    _play(player, hints_used=0)
    achievements.check_achievements(player, GameType.IDIOM, 100, 0.9, 45, 0, True)
    assert achievements.has_achievement(player.id, AchievementType.HINT_FREE)


def test_rank_based_rules(player):
    leaderboard.record_score(player, GameType.SENTENCE, Difficulty.HARD, 500, 1.0)
    _play(player)
    unlocked = achievements.check_achievements(player, GameType.SENTENCE, 500, 1.0, 45, 1, True)
    assert {'TOP_RANKED', 'SENTENCE_MASTER'} <= _types(unlocked)
    assert 'IDIOM_MASTER' not in _types(unlocked)


def test_progress_and_rarity(client, player):
    make_player('bystander')
    achievements.unlock(player, AchievementType.SPEED_DEMON, {'time_taken': 12})

    progress = client.get(f'/api/achievements/player/{player.id}/progress').get_json()
    assert progress['unlocked'] == 1
    assert progress['total'] == len(AchievementType)
    entry = next(a for a in progress['achievements'] if a['achievement_type'] == 'SPEED_DEMON')
    assert entry['unlocked'] is True

    rarity = client.get('/api/achievements/speed_demon/rarity').get_json()
    assert rarity == {'achievement_type': 'SPEED_DEMON', 'holders': 1, 'players': 2, 'rarity': 50.0}
    assert client.get('/api/achievements/GOLD_STAR/rarity').status_code == 400


def test_achievement_endpoints(client, player):
    achievements.unlock(player, AchievementType.FIRST_WIN, {'score': 100})
    catalog = client.get('/api/achievements/all').get_json()
    assert len(catalog) == len(AchievementType)

    rows = client.get('/api/achievements/player/xiaoming').get_json()
    assert rows[0]['metadata'] == {'score': 100}
    assert client.get('/api/achievements/player/xiaoming/unlocked').get_json() == ['FIRST_WIN']
    assert client.get('/api/achievements/statistics').get_json()['FIRST_WIN'] == 1
    assert client.get('/api/achievements/player/nobody/unlocked').status_code == 404

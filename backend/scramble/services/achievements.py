import json
from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from scramble import db
from scramble.enums import ACHIEVEMENT_CATALOG, AchievementType, GameType
from scramble.models import Achievement, IdiomScore, Leaderboard, Player, SentenceScore, utcnow

SPEED_DEMON_SECONDS = 30
HIGH_SCORE_THRESHOLD = 1000
HUNDRED_GAMES = 100
HINT_FREE_GAMES = 10
TOP_RANK = 10


def _completed_games(player_id) -> int:
    return (IdiomScore.query.filter_by(player_id=player_id, completed=True).count()
            + SentenceScore.query.filter_by(player_id=player_id, completed=True).count())


def _hint_free_games(player_id) -> int:
    return (IdiomScore.query.filter_by(player_id=player_id, completed=True, hints_used=0).count()
            + SentenceScore.query.filter_by(player_id=player_id, completed=True, hints_used=0).count())


def _best_rank(player_id, game_type=None):
    query = db.session.query(func.min(Leaderboard.rank)).filter(Leaderboard.player_id == player_id)
    if game_type is not None:
        query = query.filter(Leaderboard.game_type == game_type.value)
    return query.scalar()


def has_achievement(player_id, achievement_type: AchievementType) -> bool:
    return Achievement.query.filter_by(player_id=player_id, achievement_type=achievement_type.value).first() is not None


def unlock(player, achievement_type: AchievementType, metadata=None):
    """Unlock once; returns the new row or None if the player already has it. Does not commit."""
    if has_achievement(player.id, achievement_type):
        return None
    title, description, _ = ACHIEVEMENT_CATALOG[achievement_type]
    achievement = Achievement(
        player_id=player.id,
        achievement_type=achievement_type.value,
        title=title,
        description=description,
        meta_json=json.dumps(metadata or {}, ensure_ascii=False),
    )
    db.session.add(achievement)
    db.session.flush()
    current_app.logger.info(f"[achievement] player={player.id} unlocked={achievement_type.value}")
    return achievement


def check_achievements(player, game_type: GameType, score: int, accuracy: float,
                       time_taken: int, hints_used: int, completed: bool):
    """Evaluate every rule after a submission; returns newly unlocked rows."""
    if not completed:
        return []
    metadata = {'game_type': game_type.value, 'score': score, 'time_taken': time_taken}
    completed_games = _completed_games(player.id)
    best_rank = _best_rank(player.id)
    best_type_rank = _best_rank(player.id, game_type)

    rules = [
        (AchievementType.FIRST_WIN, completed_games >= 1),
        (AchievementType.SPEED_DEMON, time_taken < SPEED_DEMON_SECONDS),
        (AchievementType.PERFECT_SCORE, accuracy >= 1.0 and hints_used == 0),
        (AchievementType.HUNDRED_GAMES, completed_games >= HUNDRED_GAMES),
        (AchievementType.TOP_RANKED, best_rank is not None and best_rank <= TOP_RANK),
        (AchievementType.HIGH_SCORER, score >= HIGH_SCORE_THRESHOLD),
        (AchievementType.HINT_FREE, hints_used == 0 and _hint_free_games(player.id) >= HINT_FREE_GAMES),
        (AchievementType.IDIOM_MASTER, game_type is GameType.IDIOM and best_type_rank == 1),
        (AchievementType.SENTENCE_MASTER, game_type is GameType.SENTENCE and best_type_rank == 1),
    ]
    unlocked = []
    for achievement_type, earned in rules:
        if earned:
            row = unlock(player, achievement_type, metadata)
            if row is not None:
                unlocked.append(row)
    return unlocked


def player_achievements(player_id):
    return Achievement.query.filter_by(player_id=player_id).order_by(Achievement.unlocked_at.desc()).all()


def recent_achievements(player_id, hours=24):
    cutoff = utcnow() - timedelta(hours=hours)
    return (Achievement.query
            .filter(Achievement.player_id == player_id, Achievement.unlocked_at >= cutoff)
            .order_by(Achievement.unlocked_at.desc())
            .all())


def catalog():
    return [
        {'achievement_type': t.value, 'title': title, 'description': description, 'category': category.value}
        for t, (title, description, category) in ACHIEVEMENT_CATALOG.items()
    ]


def progress(player_id) -> dict:
    """Catalog entries annotated with whether and when the player unlocked them."""
    owned = {a.achievement_type: a for a in player_achievements(player_id)}
    entries = []
    for item in catalog():
        row = owned.get(item['achievement_type'])
        entries.append({**item, 'unlocked': row is not None,
                        'unlocked_at': row.unlocked_at.isoformat() if row else None})
    total = len(entries)
    return {
        'player_id': player_id,
        'unlocked': len(owned),
        'total': total,
        'completion': round(len(owned) / total, 4) if total else 0.0,
        'achievements': entries,
    }


def rarity(achievement_type: AchievementType) -> dict:
    """Share of players holding the achievement, as a percentage."""
    players = Player.query.count()
    holders = Achievement.query.filter_by(achievement_type=achievement_type.value).count()
    return {
        'achievement_type': achievement_type.value,
        'holders': holders,
        'players': players,
        'rarity': round(holders * 100.0 / players, 2) if players else 0.0,
    }


def distribution() -> dict:
    counts = dict(db.session.query(Achievement.achievement_type, func.count(Achievement.id))
                  .group_by(Achievement.achievement_type).all())
    return {t.value: counts.get(t.value, 0) for t in AchievementType}

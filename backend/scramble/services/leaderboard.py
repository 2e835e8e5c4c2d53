"""Per-bucket leaderboard aggregates and ranking.

A bucket is one (game type, difficulty) pair. Ranks inside a bucket are
always 1..N: total score descending, then row id ascending, so whoever
entered the bucket first keeps the better rank on a tie.
"""
from flask import current_app
from sqlalchemy import func

from scramble import db, socketio
from scramble.cache import get_cache
from scramble.enums import Difficulty, GameType
from scramble.errors import PlayerNotFoundError
from scramble.models import Leaderboard, utcnow


def _bucket_key(game_type, difficulty):
    return f"{game_type.value}:{difficulty.value}"


def _bucket_query(game_type, difficulty):
    return Leaderboard.query.filter_by(game_type=game_type.value, difficulty=difficulty.value)


def _ordered(query):
    return query.order_by(Leaderboard.total_score.desc(), Leaderboard.id.asc())


def recalculate_ranks(game_type: GameType, difficulty: Difficulty) -> int:
    """Re-sort one bucket and assign ranks 1..N. Does not commit."""
    rows = _ordered(_bucket_query(game_type, difficulty)).all()
    for position, row in enumerate(rows, start=1):
        if row.rank != position:
            row.rank = position
    return len(rows)


def record_score(player, game_type: GameType, difficulty: Difficulty, score: int, accuracy: float) -> Leaderboard:
    """Fold one correct result into the player's bucket row and re-rank the bucket. Does not commit."""
    entry = _bucket_query(game_type, difficulty).filter_by(player_id=player.id).first()
    if entry is None:
        entry = Leaderboard(player_id=player.id, game_type=game_type.value, difficulty=difficulty.value,
                            total_score=0, games_played=0, average_score=0.0, accuracy_rate=0.0)
        db.session.add(entry)
    previous_games = entry.games_played or 0
    entry.total_score = (entry.total_score or 0) + score
    entry.games_played = previous_games + 1
    entry.average_score = entry.total_score / entry.games_played
    entry.accuracy_rate = min(1.0, ((entry.accuracy_rate or 0.0) * previous_games + accuracy) / entry.games_played)
    entry.last_updated = utcnow()
    db.session.flush()

    recalculate_ranks(game_type, difficulty)
    db.session.flush()
    get_cache().clear('leaderboards')
    return entry


def publish_update(entry: Leaderboard) -> None:
    """Push a committed bucket change to subscribers of that bucket."""
    bucket = f"{entry.game_type}:{entry.difficulty}"
    current_app.logger.info(
        f"[leaderboard] player={entry.player_id} bucket={bucket} "
        f"total={entry.total_score} games={entry.games_played} rank={entry.rank}"
    )
    socketio.emit('leaderboard_update', {
        'game_type': entry.game_type,
        'difficulty': entry.difficulty,
        'player_id': entry.player_id,
        'rank': entry.rank,
        'total_score': entry.total_score,
    }, to=f"leaderboard:{bucket}", namespace='/ws')


def top_players(game_type: GameType, difficulty: Difficulty, limit=None):
    """Top-N rows of a bucket as dicts, served from the cache."""
    limit = int(limit or current_app.config.get('LEADERBOARD_DEFAULT_LIMIT', 10))
    if limit < 1:
        raise ValueError('limit must be at least 1')
    key = f"top:{_bucket_key(game_type, difficulty)}:{limit}"
    return get_cache().get_or_load(
        'leaderboards', key,
        lambda: [row.to_dict() for row in _ordered(_bucket_query(game_type, difficulty)).limit(limit).all()],
    )


def player_rankings(player_id):
    return (Leaderboard.query
            .filter_by(player_id=player_id)
            .order_by(Leaderboard.game_type, Leaderboard.difficulty)
            .all())


def player_rank(player_id, game_type: GameType, difficulty: Difficulty) -> Leaderboard:
    entry = _bucket_query(game_type, difficulty).filter_by(player_id=player_id).first()
    if entry is None:
        raise PlayerNotFoundError(f"{player_id} on {_bucket_key(game_type, difficulty)} leaderboard")
    return entry


def players_near_rank(game_type: GameType, difficulty: Difficulty, rank: int, offset=2):
    if rank < 1:
        raise ValueError('rank must be at least 1')
    low, high = max(1, rank - offset), rank + offset
    return (_bucket_query(game_type, difficulty)
            .filter(Leaderboard.rank >= low, Leaderboard.rank <= high)
            .order_by(Leaderboard.rank)
            .all())


def is_top_ten(player_id, game_type, difficulty) -> bool:
    entry = _bucket_query(game_type, difficulty).filter_by(player_id=player_id).first()
    return bool(entry and entry.rank and entry.rank <= 10)


def is_first_place(player_id, game_type, difficulty) -> bool:
    entry = _bucket_query(game_type, difficulty).filter_by(player_id=player_id).first()
    return bool(entry and entry.rank == 1)


def bucket_size(game_type, difficulty) -> int:
    return _bucket_query(game_type, difficulty).count()


def statistics(game_type: GameType, difficulty: Difficulty) -> dict:
    players, avg_score, avg_accuracy, top_score = (
        db.session.query(
            func.count(Leaderboard.id),
            func.avg(Leaderboard.average_score),
            func.avg(Leaderboard.accuracy_rate),
            func.max(Leaderboard.total_score),
        )
        .filter(Leaderboard.game_type == game_type.value, Leaderboard.difficulty == difficulty.value)
        .one()
    )
    return {
        'game_type': game_type.value,
        'difficulty': difficulty.value,
        'players': players or 0,
        'average_score': round(float(avg_score or 0.0), 2),
        'average_accuracy': round(float(avg_accuracy or 0.0), 4),
        'top_score': int(top_score or 0),
    }


def recalculate_all() -> int:
    """Re-rank every bucket; returns the number of rows touched."""
    touched = 0
    for game_type in GameType:
        for difficulty in Difficulty:
            touched += recalculate_ranks(game_type, difficulty)
    db.session.commit()
    get_cache().clear('leaderboards')
    current_app.logger.info(f"[leaderboard] full recalculation rows={touched}")
    return touched

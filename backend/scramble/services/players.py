import re
import secrets

from flask import current_app
from sqlalchemy import func

from scramble import bcrypt, db
from scramble.cache import get_cache
from scramble.enums import PlayerRole
from scramble.errors import AuthenticationError, DuplicatePlayerError, PlayerNotFoundError
from scramble.models import (
    Achievement, IdiomScore, Leaderboard, Player, SentenceScore, utcnow,
)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
GUEST_EMAIL_DOMAIN = 'game.local'


def _check_email(email):
    email = (email or '').strip()
    if not EMAIL_RE.match(email) or len(email) > 100:
        raise ValueError(f"invalid email address '{email}'")
    return email


def _check_password(password):
    minimum = current_app.config.get('MIN_PASSWORD_LENGTH', 8)
    if not password or len(password) < minimum:
        raise ValueError(f"password must be at least {minimum} characters")
    return password


def _hash(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


def username_taken(username) -> bool:
    return Player.query.filter(func.lower(Player.username) == username.strip().lower()).first() is not None


def email_taken(email) -> bool:
    return Player.query.filter(func.lower(Player.email) == email.strip().lower()).first() is not None


def register(username, email, password, role=PlayerRole.PLAYER) -> Player:
    username = (username or '').strip()
    email = _check_email(email)
    _check_password(password)
    if username_taken(username):
        raise DuplicatePlayerError('username', username)
    if email_taken(email):
        raise DuplicatePlayerError('email', email)
    player = Player(username=username, email=email, password_hash=_hash(password),
                    role=PlayerRole.parse(role).value, active=True)
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-register] player={player.id} username={player.username}")
    return player


def authenticate(login, password) -> Player:
    """Match by username first, then email; bumps last login on success."""
    login = (login or '').strip()
    player = Player.query.filter(func.lower(Player.username) == login.lower()).first()
    if player is None:
        player = Player.query.filter(func.lower(Player.email) == login.lower()).first()
    if player is None or not bcrypt.check_password_hash(player.password_hash, password or ''):
        raise AuthenticationError('Invalid username or password')
    if not player.active:
        raise AuthenticationError('Account is deactivated')
    update_last_login(player)
    return player


def update_last_login(player: Player) -> None:
    player.last_login_at = utcnow()
    db.session.add(player)
    db.session.commit()


def get_player(player_id) -> Player:
    player = db.session.get(Player, player_id)
    if player is None:
        raise PlayerNotFoundError(player_id)
    return player


def get_by_username(username) -> Player:
    player = Player.query.filter(func.lower(Player.username) == (username or '').strip().lower()).first()
    if player is None:
        raise PlayerNotFoundError(username)
    return player


def resolve_player(identifier, auto_create=False) -> Player:
    """Look a player up by numeric id or username.

    With ``auto_create`` an unknown username gets a guest account so a client
    can play with nothing but a name.
    """
    if identifier is None or str(identifier).strip() == '':
        raise ValueError('player_id is required')
    text = str(identifier).strip()
    if text.isdigit():
        return get_player(int(text))
    try:
        return get_by_username(text)
    except PlayerNotFoundError:
        if not auto_create:
            raise
    player = Player(username=text, email=f"{text}@{GUEST_EMAIL_DOMAIN}",
                    password_hash=_hash(secrets.token_urlsafe(16)), role=PlayerRole.PLAYER.value, active=True)
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-guest] player={player.id} username={player.username}")
    return player


def update_email(player_id, email) -> Player:
    player = get_player(player_id)
    email = _check_email(email)
    if email.lower() != player.email.lower() and email_taken(email):
        raise DuplicatePlayerError('email', email)
    player.email = email
    db.session.add(player)
    db.session.commit()
    return player


def change_password(player_id, current_password, new_password) -> Player:
    player = get_player(player_id)
    if not bcrypt.check_password_hash(player.password_hash, current_password or ''):
        raise AuthenticationError('Current password is incorrect')
    player.password_hash = _hash(_check_password(new_password))
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-password] player={player.id}")
    return player


def change_role(player_id, role) -> Player:
    player = get_player(player_id)
    player.role = PlayerRole.parse(role).value
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-role] player={player.id} role={player.role}")
    return player


def set_active(player_id, active: bool) -> Player:
    player = get_player(player_id)
    player.active = active
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-active] player={player.id} active={active}")
    return player


def active_players():
    return Player.query.filter_by(active=True).order_by(Player.username).all()


def search(term):
    return (Player.query
            .filter(Player.username.ilike(f"%{term}%"), Player.active.is_(True))
            .order_by(Player.username)
            .all())


def counts() -> dict:
    total = Player.query.count()
    active = Player.query.filter_by(active=True).count()
    return {'total': total, 'active': active, 'inactive': total - active}


def statistics(player_id) -> dict:
    player = get_player(player_id)

    def _load():
        idiom_games = player.idiom_scores.count()
        sentence_games = player.sentence_scores.count()
        total_score = (
            (db.session.query(func.coalesce(func.sum(IdiomScore.score), 0))
             .filter(IdiomScore.player_id == player.id).scalar() or 0)
            + (db.session.query(func.coalesce(func.sum(SentenceScore.score), 0))
               .filter(SentenceScore.player_id == player.id).scalar() or 0)
        )
        accuracy_sum = (
            (db.session.query(func.coalesce(func.sum(IdiomScore.accuracy_rate), 0.0))
             .filter(IdiomScore.player_id == player.id).scalar() or 0.0)
            + (db.session.query(func.coalesce(func.sum(SentenceScore.accuracy_rate), 0.0))
               .filter(SentenceScore.player_id == player.id).scalar() or 0.0)
        )
        games = idiom_games + sentence_games
        best_rank = (db.session.query(func.min(Leaderboard.rank))
                     .filter(Leaderboard.player_id == player.id).scalar())
        return {
            'player_id': player.id,
            'username': player.username,
            'total_games': games,
            'idiom_games': idiom_games,
            'sentence_games': sentence_games,
            'total_score': int(total_score),
            'overall_accuracy': round(accuracy_sum / games, 4) if games else 0.0,
            'achievements': Achievement.query.filter_by(player_id=player.id).count(),
            'best_rank': best_rank,
            'leaderboard_entries': Leaderboard.query.filter_by(player_id=player.id).count(),
        }

    return get_cache().get_or_load('player_stats', player.id, _load)


def evict_statistics(player_id) -> None:
    get_cache().evict('player_stats', player_id)

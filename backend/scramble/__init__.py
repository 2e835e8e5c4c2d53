import logging

import click
from flask import Flask
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SEED_FLAGS = [
    ('idiom-scramble', True, 'Idiom scramble game mode'),
    ('sentence-crafting', True, 'Sentence crafting game mode'),
    ('leaderboard', True, 'Leaderboards and rankings'),
    ('hints', True, 'Three-level hint system'),
    ('achievements', True, 'Achievement unlocks'),
    ('audio-pronunciation', False, 'Audio pronunciation of answers'),
    ('practice-mode', False, 'Untimed practice mode'),
    ('daily-challenge', False, 'Daily challenge question'),
    ('multiplayer', False, 'Head-to-head multiplayer'),
    ('no-repeat-questions', False, 'Skip recently shown questions'),
]
DEMO_PLAYERS = ['玩家001', '张伟', '李娜', '王芳']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from scramble.cache import CacheRegistry
    from scramble.services.games.history import QuestionHistory
    flask_app.extensions['scramble_cache'] = CacheRegistry(
        ttl=flask_app.config.get('CACHE_TTL_SEC', 600),
        maxsize=flask_app.config.get('CACHE_MAX_SIZE', 1000),
    )
    flask_app.extensions['question_history'] = QuestionHistory(
        size=flask_app.config.get('QUESTION_HISTORY_SIZE', 10),
    )

    from scramble.errors import register_error_handlers
    register_error_handlers(flask_app)

    from scramble.api.players import players
    from scramble.api.games import games
    from scramble.api.idiom import idiom
    from scramble.api.sentence import sentence
    from scramble.api.leaderboards import leaderboards
    from scramble.api.achievements import achievements
    from scramble.api.features import features
    from scramble.api.config import config_api
    flask_app.register_blueprint(players, url_prefix='/api/players')
    flask_app.register_blueprint(games, url_prefix='/api/games')
    flask_app.register_blueprint(idiom, url_prefix='/api/games/idiom')
    flask_app.register_blueprint(sentence, url_prefix='/api/games/sentence')
    flask_app.register_blueprint(leaderboards, url_prefix='/api/leaderboards')
    flask_app.register_blueprint(achievements, url_prefix='/api/achievements')
    flask_app.register_blueprint(features, url_prefix='/api/features')
    flask_app.register_blueprint(config_api, url_prefix='/api/config')

    from scramble.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from scramble.models import Player

    @login_manager.user_loader
    def load_player(player_id):
        return db.session.get(Player, int(player_id))

    _register_cli(flask_app)

    from scramble.services.games.scheduler import start_maintenance_loop
    start_maintenance_loop(flask_app)

    return flask_app


def seed_data():
    """Insert the default feature flags and demo players that are missing."""
    from scramble.models import FeatureFlag, Player
    from scramble.services import players as player_service

    for name, enabled, description in SEED_FLAGS:
        if not FeatureFlag.query.filter_by(name=name).first():
            db.session.add(FeatureFlag(name=name, enabled=enabled, description=description))
    db.session.commit()

    if not Player.query.filter_by(username='admin').first():
        player_service.register('admin', 'admin@chinesescramble.local', 'admin-password', role='ADMIN')
    for index, username in enumerate(DEMO_PLAYERS, start=1):
        if not Player.query.filter_by(username=username).first():
            player_service.register(username, f"player{index}@chinesescramble.local", 'password123')


def _register_cli(flask_app):

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seed_data()
        click.echo('Database has been reset and seeded!')

    @click.command('seed')
    def seed_command():
        """Adds missing feature flags and demo players."""
        with flask_app.app_context():
            seed_data()
        click.echo('Seed data is in place.')

    @click.command('sweep-sessions')
    def sweep_sessions_command():
        """Expires game sessions idle past SESSION_TIMEOUT_MINUTES."""
        from scramble.services.games.sessions import expire_stale_sessions
        with flask_app.app_context():
            click.echo(f"Expired {expire_stale_sessions()} session(s).")

    @click.command('recalculate-leaderboards')
    def recalculate_leaderboards_command():
        """Re-ranks every leaderboard bucket."""
        from scramble.services.leaderboard import recalculate_all
        with flask_app.app_context():
            click.echo(f"Re-ranked {recalculate_all()} leaderboard row(s).")

    @click.command('reload-config')
    def reload_config_command():
        """Reloads every question bank file into config_cache."""
        from scramble.services.configuration import reload_all
        with flask_app.app_context():
            results = reload_all()
        for item in results:
            click.echo(f"{item['config_key']}: {'changed' if item['changed'] else 'unchanged'}")

    for command in (db_reset_command, seed_command, sweep_sessions_command,
                    recalculate_leaderboards_command, reload_config_command):
        flask_app.cli.add_command(command)

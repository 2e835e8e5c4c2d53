"""Enumerations shared by models, services and the HTTP layer.

Values are stored as their upper-case names in string columns so they stay
readable in SQL and match the CHECK constraints in the migrations.
"""
from enum import Enum


class _NamedEnum(str, Enum):

    @classmethod
    def parse(cls, value):
        """Case-insensitive lookup by name; raises ValueError listing valid names."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError(f"{cls.__name__} is required")
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = ', '.join(m.name for m in cls)
            raise ValueError(f"Invalid {cls.__name__} '{value}'. Expected one of: {valid}")

    def __str__(self):
        return self.value


class Difficulty(_NamedEnum):
    EASY = 'EASY'
    MEDIUM = 'MEDIUM'
    HARD = 'HARD'
    EXPERT = 'EXPERT'


class GameType(_NamedEnum):
    IDIOM = 'IDIOM'
    SENTENCE = 'SENTENCE'


class SessionStatus(_NamedEnum):
    ACTIVE = 'ACTIVE'
    COMPLETED = 'COMPLETED'
    ABANDONED = 'ABANDONED'
    EXPIRED = 'EXPIRED'

    @property
    def is_terminal(self):
        return self is not SessionStatus.ACTIVE


class PlayerRole(_NamedEnum):
    PLAYER = 'PLAYER'
    ADMIN = 'ADMIN'
    MODERATOR = 'MODERATOR'


class ConfigType(_NamedEnum):
    IDIOM = 'IDIOM'
    SENTENCE = 'SENTENCE'
    FEATURE_FLAG = 'FEATURE_FLAG'
    GAME_SETTING = 'GAME_SETTING'


class AchievementCategory(_NamedEnum):
    MILESTONE = 'MILESTONE'
    PERFORMANCE = 'PERFORMANCE'
    SKILL = 'SKILL'
    CONSISTENCY = 'CONSISTENCY'


class AchievementType(_NamedEnum):
    FIRST_WIN = 'FIRST_WIN'
    SPEED_DEMON = 'SPEED_DEMON'
    PERFECT_SCORE = 'PERFECT_SCORE'
    HINT_FREE = 'HINT_FREE'
    HUNDRED_GAMES = 'HUNDRED_GAMES'
    IDIOM_MASTER = 'IDIOM_MASTER'
    SENTENCE_MASTER = 'SENTENCE_MASTER'
    TOP_RANKED = 'TOP_RANKED'
    HIGH_SCORER = 'HIGH_SCORER'


# type -> (title, description, category)
ACHIEVEMENT_CATALOG = {
    AchievementType.FIRST_WIN: ('第一次胜利', 'Complete your first game successfully', AchievementCategory.MILESTONE),
    AchievementType.SPEED_DEMON: ('速度之王', 'Complete a game in under 30 seconds', AchievementCategory.PERFORMANCE),
    AchievementType.PERFECT_SCORE: ('完美主义者', 'Complete a game with perfect accuracy and no hints', AchievementCategory.PERFORMANCE),
    AchievementType.HINT_FREE: ('无提示高手', 'Complete 10 games without using hints', AchievementCategory.SKILL),
    AchievementType.HUNDRED_GAMES: ('百场达人', 'Complete 100 games', AchievementCategory.MILESTONE),
    AchievementType.IDIOM_MASTER: ('成语大师', 'Reach first place on an idiom leaderboard', AchievementCategory.SKILL),
    AchievementType.SENTENCE_MASTER: ('句子大师', 'Reach first place on a sentence leaderboard', AchievementCategory.SKILL),
    AchievementType.TOP_RANKED: ('顶级玩家', 'Reach the top 10 of any leaderboard', AchievementCategory.PERFORMANCE),
    AchievementType.HIGH_SCORER: ('高分达人', 'Score 1000 or more points in a single game', AchievementCategory.PERFORMANCE),
}

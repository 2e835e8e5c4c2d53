"""Score calculation for both game modes.

Pure functions: no database, no app context. The HTTP layer exposes
``calculate_score`` through ``/api/games/score-preview`` so clients can show
the same numbers the server will award.
"""
from typing import Dict, NamedTuple

from scramble.enums import Difficulty
from scramble.errors import MaxHintsExceededError

MAX_HINTS = 3
# Penalty charged for each hint level; using n hints costs levels 1..n.
HINT_PENALTIES = {1: 10, 2: 20, 3: 30}


class DifficultySettings(NamedTuple):
    base_points: int
    time_limit: int
    multiplier: float
    time_bonus_ceiling: int
    label: str
    description: str


DIFFICULTY_SETTINGS: Dict[Difficulty, DifficultySettings] = {
    Difficulty.EASY: DifficultySettings(100, 180, 1.0, 50, '简单', 'Beginner (HSK 1-2)'),
    Difficulty.MEDIUM: DifficultySettings(200, 120, 1.5, 100, '中等', 'Intermediate (HSK 3-4)'),
    Difficulty.HARD: DifficultySettings(300, 90, 2.0, 150, '困难', 'Advanced (HSK 5)'),
    Difficulty.EXPERT: DifficultySettings(500, 60, 3.0, 250, '专家', 'Native (HSK 6)'),
}


class ScoreBreakdown(NamedTuple):
    base_points: int
    time_bonus: int
    difficulty_multiplier: float
    hint_penalty: int
    total_score: int

    def to_dict(self):
        return self._asdict()


ZERO_SCORE = ScoreBreakdown(0, 0, 0.0, 0, 0)


def settings_for(difficulty) -> DifficultySettings:
    return DIFFICULTY_SETTINGS[Difficulty.parse(difficulty)]


def get_hint_penalty(level: int) -> int:
    """Penalty for a single hint level (1-3)."""
    if level not in HINT_PENALTIES:
        raise ValueError(f"Hint level must be between 1 and {MAX_HINTS}, got {level}")
    return HINT_PENALTIES[level]


def total_hint_penalty(hints_used: int) -> int:
    if hints_used < 0:
        raise ValueError('hints_used cannot be negative')
    if hints_used > MAX_HINTS:
        raise MaxHintsExceededError(MAX_HINTS, hints_used)
    return sum(HINT_PENALTIES[level] for level in range(1, hints_used + 1))


def calculate_score(difficulty, time_taken: int, hints_used: int, correct: bool) -> ScoreBreakdown:
    """Score one answer.

    Incorrect answers score zero across the board. Correct answers earn the
    tier's base points plus a bonus proportional to the time left, scaled by
    the tier multiplier, minus the cumulative hint penalty; never below zero.
    """
    if time_taken < 0:
        raise ValueError('time_taken cannot be negative')
    penalty = total_hint_penalty(hints_used)
    if not correct:
        return ZERO_SCORE

    s = settings_for(difficulty)
    time_remaining = min(max(s.time_limit - time_taken, 0), s.time_limit)
    time_bonus = (time_remaining * s.time_bonus_ceiling) // s.time_limit
    scaled = int((s.base_points + time_bonus) * s.multiplier)
    total = max(0, scaled - penalty)
    return ScoreBreakdown(s.base_points, time_bonus, s.multiplier, penalty, total)


def maximum_score(difficulty) -> int:
    s = settings_for(difficulty)
    return int((s.base_points + s.time_bonus_ceiling) * s.multiplier)


def calculate_accuracy(correct: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return correct / total


def difficulty_table():
    return [
        {
            'difficulty': d.value,
            'label': s.label,
            'description': s.description,
            'base_points': s.base_points,
            'time_limit': s.time_limit,
            'multiplier': s.multiplier,
            'time_bonus_ceiling': s.time_bonus_ceiling,
            'max_score': maximum_score(d),
        }
        for d, s in DIFFICULTY_SETTINGS.items()
    ]

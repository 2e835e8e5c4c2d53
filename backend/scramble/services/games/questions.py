"""Question banks, selection, scrambling and hint text."""
import random
from typing import List

from flask import current_app

from scramble.enums import GameType
from scramble.errors import AllQuestionsCompletedError
from scramble.services import configuration
from scramble.services.games.history import get_history

IDIOM_BANK = 'idioms.json'
SENTENCE_BANK = 'sentences.json'
SCRAMBLE_ATTEMPTS = 3


def idioms(difficulty) -> List[dict]:
    return [q for q in configuration.load_json(IDIOM_BANK)['idioms'] if q['difficulty'] == difficulty.value]


def sentences(difficulty) -> List[dict]:
    bank = []
    for q in configuration.load_json(SENTENCE_BANK)['sentences']:
        if q['difficulty'] != difficulty.value:
            continue
        q = dict(q)
        q['target_sentence'] = ''.join(q['words'])
        bank.append(q)
    return bank


def answer_of(question: dict, game_type: GameType) -> str:
    return question['idiom'] if game_type is GameType.IDIOM else question['target_sentence']


def no_repeat_enabled() -> bool:
    from scramble.services import features
    return bool(current_app.config.get('NO_REPEAT_QUESTIONS')) or features.is_enabled('no-repeat-questions')


def pick_question(player_id, game_type: GameType, difficulty, candidates: List[dict], rng=random) -> dict:
    """Pick a random question, skipping recent ones when no-repeat is on."""
    if not candidates:
        raise AllQuestionsCompletedError(game_type.value, difficulty.value, 0)
    pool = candidates
    if no_repeat_enabled():
        seen = get_history().excluded(player_id, game_type.value)
        pool = [q for q in candidates if answer_of(q, game_type) not in seen]
        if not pool:
            raise AllQuestionsCompletedError(game_type.value, difficulty.value, len(candidates))
    question = rng.choice(pool)
    get_history().add(player_id, game_type.value, answer_of(question, game_type))
    return question


def scramble(tokens, rng=random) -> list:
    """Shuffle tokens, retrying a few times so the result differs from the input."""
    original = list(tokens)
    shuffled = list(original)
    if len(set(original)) < 2:
        return shuffled
    for _ in range(SCRAMBLE_ATTEMPTS):
        rng.shuffle(shuffled)
        if shuffled != original:
            break
    return shuffled


def idiom_hint(question: dict, level: int) -> str:
    idiom = question['idiom']
    if level == 1:
        meaning = question.get('meaning')
        return f"{question['definition']} ({meaning})" if meaning else question['definition']
    if level == 2:
        syllables = (question.get('pinyin') or '').split()
        first = f" ({syllables[0]})" if syllables else ''
        return f"第一个字是: {idiom[0]}{first}"
    if question.get('usage'):
        return f"例句: {question['usage']}"
    if question.get('origin'):
        return f"出处: {question['origin']}"
    return f"这个成语有{len(idiom)}个字"


def sentence_hint(question: dict, level: int) -> str:
    words = question['words']
    hints = question.get('hints') or {}
    if level == 1:
        points = question.get('grammar_points') or []
        if question.get('meaning'):
            suffix = f" | 语法: {', '.join(points)}" if points else ''
            return f"{question['meaning']}{suffix}"
        return f"这个句子有{len(words)}个词"
    if level == 2:
        return hints.get('level2') or f"第一个词是: {words[0]}"
    return hints.get('level3') or f"句子开头: {''.join(words[:max(1, len(words) // 2)])}"

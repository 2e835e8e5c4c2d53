"""Answer validation for idioms and sentences."""
import re
from typing import Iterable, List, NamedTuple, Optional, Sequence

# CJK ideographs, CJK punctuation, full-width forms and whitespace.
_CHINESE_TEXT_RE = re.compile(r'^[一-鿿　-〿＀-￯‘-”\s]*$')
_LATIN_OR_DIGIT_RE = re.compile(r'[A-Za-z0-9０-９Ａ-Ｚａ-ｚ]')
_PUNCTUATION_RE = re.compile(
    r'[，。！？、；：“”‘’（）《》,.!?;:\s]+'
)

EXTRA_WORD_PENALTY = 5
MISSING_WORD_PENALTY = 10
WORD_ORDER_PENALTY = 20


class IdiomResult(NamedTuple):
    correct: bool
    accuracy: float


class SentenceError(NamedTuple):
    type: str
    message: str
    position: Optional[int]

    def to_dict(self):
        return self._asdict()


class SentenceResult(NamedTuple):
    valid: bool
    grammar_score: int
    similarity: float
    accuracy: float
    errors: List[SentenceError]
    tokens: List[str]


def normalize(text: str) -> str:
    """Strip whitespace and punctuation so only the characters are compared."""
    return _PUNCTUATION_RE.sub('', text or '')


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """1 - edit distance / longer length; 1.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def is_chinese_text(text: str) -> bool:
    return bool(_CHINESE_TEXT_RE.match(text or '')) and not _LATIN_OR_DIGIT_RE.search(text or '')


def validate_idiom(answer, idiom: str) -> IdiomResult:
    if isinstance(answer, (list, tuple)):
        answer = ''.join(str(c) for c in answer)
    given = re.sub(r'\s+', '', answer or '')
    return IdiomResult(given == idiom, round(similarity(given, idiom), 4))


def tokenize(text: str, vocabulary: Iterable[str]) -> List[str]:
    """Split ``text`` into words by greedy longest match against ``vocabulary``.

    Characters that start no known word become single-character tokens.
    """
    words = sorted({w for w in vocabulary if w}, key=len, reverse=True)
    tokens = []
    for chunk in _PUNCTUATION_RE.split(text or ''):
        i = 0
        while i < len(chunk):
            for word in words:
                if chunk.startswith(word, i):
                    tokens.append(word)
                    i += len(word)
                    break
            else:
                tokens.append(chunk[i])
                i += 1
    return tokens


def _as_tokens(answer, target_words: Sequence[str]) -> List[str]:
    if isinstance(answer, (list, tuple)):
        return [normalize(str(t)) for t in answer if normalize(str(t))]
    return tokenize(answer, target_words)


def validate_sentence(answer, target_words: Sequence[str]) -> SentenceResult:
    """Check a sentence answer against the expected word order.

    Grammar starts at 100 and loses points for words that do not belong,
    words that are missing and words in the wrong position. The answer is
    valid only when it reproduces the target exactly.
    """
    raw = ''.join(answer) if isinstance(answer, (list, tuple)) else (answer or '')
    target = ''.join(target_words)
    if not is_chinese_text(raw):
        error = SentenceError('INVALID_CHARACTERS', 'Answer must contain Chinese characters only', None)
        return SentenceResult(False, 0, 0.0, 0.0, [error], [])

    tokens = _as_tokens(answer, target_words)
    joined = ''.join(tokens)
    errors = []

    remaining = list(target_words)
    for pos, token in enumerate(tokens):
        if token in remaining:
            remaining.remove(token)
        else:
            errors.append(SentenceError('EXTRA_WORD', f"'{token}' is not part of the sentence", pos))
    for word in remaining:
        errors.append(SentenceError('MISSING_WORD', f"'{word}' is missing", None))

    for pos, (token, expected) in enumerate(zip(tokens, target_words)):
        if token != expected and token in target_words:
            errors.append(SentenceError('WORD_ORDER', f"'{token}' is out of place", pos))

    penalties = {
        'EXTRA_WORD': EXTRA_WORD_PENALTY,
        'MISSING_WORD': MISSING_WORD_PENALTY,
        'WORD_ORDER': WORD_ORDER_PENALTY,
    }
    grammar = 100 - sum(penalties[e.type] for e in errors)
    grammar = min(100, max(0, grammar))

    sim = round(similarity(joined, target), 4)
    valid = joined == target
    if valid:
        grammar, errors = 100, []
    accuracy = round((grammar / 100 + sim) / 2, 4)
    return SentenceResult(valid, grammar, sim, accuracy, errors, tokens)

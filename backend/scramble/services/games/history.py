"""Recently shown questions per (player, game type).

Kept in memory only; a restart of the process forgets it, which is fine for
a "don't show the same idiom twice in a row" feature. The app factory puts
one instance in ``app.extensions['question_history']``.
"""
import threading
from collections import deque

from flask import current_app


class QuestionHistory:

    def __init__(self, size=10):
        self.size = size
        self._lock = threading.Lock()
        self._entries = {}

    @staticmethod
    def _key(player_id, game_type):
        return f"{player_id}:{game_type}"

    def add(self, player_id, game_type, question):
        with self._lock:
            recent = self._entries.setdefault(self._key(player_id, game_type), deque(maxlen=self.size))
            if question in recent:
                recent.remove(question)
            recent.append(question)

    def was_recently_shown(self, player_id, game_type, question):
        with self._lock:
            return question in self._entries.get(self._key(player_id, game_type), ())

    def excluded(self, player_id, game_type):
        with self._lock:
            return set(self._entries.get(self._key(player_id, game_type), ()))

    def clear(self, player_id, game_type=None):
        with self._lock:
            if game_type is not None:
                self._entries.pop(self._key(player_id, game_type), None)
                return
            prefix = f"{player_id}:"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def count(self, player_id, game_type):
        with self._lock:
            return len(self._entries.get(self._key(player_id, game_type), ()))


def get_history() -> QuestionHistory:
    return current_app.extensions['question_history']

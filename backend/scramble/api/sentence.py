from scramble.api.modes import build_mode_blueprint
from scramble.services.games import sentence as sentence_service

sentence = build_mode_blueprint('sentence', sentence_service)

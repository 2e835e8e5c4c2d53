from scramble.api.modes import build_mode_blueprint
from scramble.services.games import idiom as idiom_service

idiom = build_mode_blueprint('idiom', idiom_service)

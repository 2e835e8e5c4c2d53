"""Request parsing helpers shared by the blueprints."""
from flask import request

from scramble.errors import RequestValidationError
from scramble.services import players as player_service


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require(data: dict, *fields):
    missing = {f: 'is required' for f in fields if data.get(f) in (None, '')}
    if missing:
        raise RequestValidationError(missing)
    return [data[f] for f in fields]


def as_int(value, field, minimum=None, default=None):
    if value in (None, ''):
        if default is None:
            raise RequestValidationError({field: 'is required'})
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise RequestValidationError({field: 'must be an integer'})
    if minimum is not None and number < minimum:
        raise RequestValidationError({field: f"must be at least {minimum}"})
    return number


def as_enum(enum_cls, value, field):
    try:
        return enum_cls.parse(value)
    except ValueError as exc:
        raise RequestValidationError({field: str(exc)})


def query_int(name, default, minimum=1):
    return as_int(request.args.get(name), name, minimum=minimum, default=default)


def current_player(auto_create=True):
    """Player named by ``player_id`` in the query string or JSON body (id or username)."""
    identifier = request.args.get('player_id') or json_body().get('player_id')
    if identifier in (None, ''):
        raise RequestValidationError({'player_id': 'is required'})
    return player_service.resolve_player(identifier, auto_create=auto_create)

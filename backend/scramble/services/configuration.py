"""Question-bank files and their ``config_cache`` records.

Content files live in ``CONTENT_DIR``. The first read of a key stores the
file text with its SHA-256 checksum in ``config_cache``; parsed content is
served from the ``configurations`` cache region. ``check_for_changes`` runs
from the maintenance loop and reloads keys whose file checksum moved.
"""
import hashlib
import json
import os
import re

from flask import current_app

from scramble import db
from scramble.cache import get_cache
from scramble.enums import ConfigType
from scramble.errors import ConfigurationNotFoundError
from scramble.models import ConfigCache, utcnow

CONFIG_KEY_RE = re.compile(r'^[a-z0-9]+([-_][a-z0-9]+)*\.json$')


def checksum(content: str) -> str:
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


def config_type_for(key: str) -> ConfigType:
    name = key.lower()
    if 'idiom' in name:
        return ConfigType.IDIOM
    if 'sentence' in name:
        return ConfigType.SENTENCE
    if 'feature' in name:
        return ConfigType.FEATURE_FLAG
    return ConfigType.GAME_SETTING


def _path_for(key: str) -> str:
    if not key or not CONFIG_KEY_RE.match(key):
        raise ConfigurationNotFoundError(key)
    path = os.path.join(current_app.config['CONTENT_DIR'], key)
    if not os.path.isfile(path):
        raise ConfigurationNotFoundError(key)
    return path


def _read_file(key: str) -> str:
    with open(_path_for(key), encoding='utf-8') as fh:
        return fh.read()


def _store(key: str, content: str):
    """Insert or refresh the cache row; returns (row, changed)."""
    digest = checksum(content)
    row = ConfigCache.query.filter_by(config_key=key).first()
    changed = row is None or row.checksum != digest
    if row is None:
        row = ConfigCache(config_key=key, config_type=config_type_for(key).value,
                          description=f"Question bank loaded from {key}")
    row.config_value = content
    row.checksum = digest
    row.last_loaded_at = utcnow()
    db.session.add(row)
    db.session.commit()
    if changed:
        current_app.logger.info(f"[config-load] key={key} checksum={digest[:12]}")
    return row, changed


def load_configuration(key: str) -> str:
    """Raw text of a content file, preferring the stored copy."""
    row = ConfigCache.query.filter_by(config_key=key).first()
    if row is not None:
        return row.config_value
    content = _read_file(key)
    _store(key, content)
    return content


def load_json(key: str):
    """Parsed content of a content file, served from the TTL cache."""
    return get_cache().get_or_load('configurations', key, lambda: json.loads(load_configuration(key)))


def reload_configuration(key: str) -> dict:
    content = _read_file(key)
    json.loads(content)  # refuse to store a file that does not parse
    row, changed = _store(key, content)
    get_cache().evict('configurations', key)
    result = row.to_dict()
    result['changed'] = changed
    return result


def list_keys():
    directory = current_app.config['CONTENT_DIR']
    if not os.path.isdir(directory):
        return []
    return sorted(name for name in os.listdir(directory) if CONFIG_KEY_RE.match(name))


def reload_all():
    return [reload_configuration(key) for key in list_keys()]


def check_for_changes():
    """Reload every stored key whose file on disk no longer matches its checksum."""
    changed = []
    for row in ConfigCache.query.order_by(ConfigCache.config_key).all():
        try:
            content = _read_file(row.config_key)
        except ConfigurationNotFoundError:
            current_app.logger.warning(f"[config-check] key={row.config_key} file missing; keeping stored copy")
            continue
        if checksum(content) != row.checksum:
            reload_configuration(row.config_key)
            changed.append(row.config_key)
    if changed:
        current_app.logger.info(f"[config-check] reloaded={','.join(changed)}")
    return changed


def configuration_exists(key: str) -> bool:
    try:
        _path_for(key)
    except ConfigurationNotFoundError:
        return ConfigCache.query.filter_by(config_key=key).first() is not None
    return True


def get_metadata(key: str) -> dict:
    row = ConfigCache.query.filter_by(config_key=key).first()
    if row is None:
        load_configuration(key)
        row = ConfigCache.query.filter_by(config_key=key).first()
    return row.to_dict()

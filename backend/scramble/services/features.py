from datetime import timedelta

from flask import current_app

from scramble import db
from scramble.cache import get_cache
from scramble.errors import DuplicateFeatureFlagError, FeatureFlagNotFoundError
from scramble.models import FeatureFlag, utcnow

RECENT_DAYS = 7


def _get_or_404(name) -> FeatureFlag:
    flag = FeatureFlag.query.filter_by(name=name).first()
    if not flag:
        raise FeatureFlagNotFoundError(name)
    return flag


def is_enabled(name) -> bool:
    """Missing flags read as disabled."""
    def _load():
        flag = FeatureFlag.query.filter_by(name=name).first()
        if flag is None:
            current_app.logger.warning(f"[feature] flag={name} missing; treating as disabled")
            return False
        return bool(flag.enabled)
    return get_cache().get_or_load('feature_flags', name, _load)


def get_flag(name) -> FeatureFlag:
    return _get_or_404(name)


def list_flags():
    return FeatureFlag.query.order_by(FeatureFlag.name).all()


def enabled_flags():
    return FeatureFlag.query.filter_by(enabled=True).order_by(FeatureFlag.name).all()


def disabled_flags():
    return FeatureFlag.query.filter_by(enabled=False).order_by(FeatureFlag.name).all()


def set_enabled(name, enabled: bool) -> FeatureFlag:
    """Enable or disable a flag; a no-op when it is already in that state."""
    flag = _get_or_404(name)
    if flag.enabled == enabled:
        return flag
    flag.enabled = enabled
    if enabled:
        flag.enabled_at = utcnow()
    else:
        flag.disabled_at = utcnow()
    db.session.add(flag)
    db.session.commit()
    get_cache().evict('feature_flags', name)
    current_app.logger.info(f"[feature] flag={name} enabled={enabled}")
    return flag


def toggle(name) -> FeatureFlag:
    return set_enabled(name, not _get_or_404(name).enabled)


def create_flag(name, description=None, enabled=False) -> FeatureFlag:
    if FeatureFlag.query.filter_by(name=name).first():
        raise DuplicateFeatureFlagError(name)
    flag = FeatureFlag(name=name, description=description, enabled=bool(enabled))
    if flag.enabled:
        flag.enabled_at = utcnow()
    db.session.add(flag)
    db.session.commit()
    get_cache().evict('feature_flags', name)
    current_app.logger.info(f"[feature] created flag={name} enabled={flag.enabled}")
    return flag


def update_description(name, description) -> FeatureFlag:
    flag = _get_or_404(name)
    flag.description = description
    db.session.add(flag)
    db.session.commit()
    return flag


def delete_flag(name) -> None:
    flag = _get_or_404(name)
    db.session.delete(flag)
    db.session.commit()
    get_cache().evict('feature_flags', name)
    current_app.logger.info(f"[feature] deleted flag={name}")


def search(term):
    pattern = f"%{term}%"
    return (FeatureFlag.query
            .filter(db.or_(FeatureFlag.name.ilike(pattern), FeatureFlag.description.ilike(pattern)))
            .order_by(FeatureFlag.name)
            .all())


def recently_changed(days=RECENT_DAYS):
    cutoff = utcnow() - timedelta(days=days)
    return {
        'enabled': FeatureFlag.query.filter(FeatureFlag.enabled.is_(True), FeatureFlag.enabled_at >= cutoff).all(),
        'disabled': FeatureFlag.query.filter(FeatureFlag.enabled.is_(False), FeatureFlag.disabled_at >= cutoff).all(),
    }


def statistics() -> dict:
    total = FeatureFlag.query.count()
    enabled = FeatureFlag.query.filter_by(enabled=True).count()
    disabled = total - enabled
    return {
        'total': total,
        'enabled': enabled,
        'disabled': disabled,
        'enabled_percentage': round(enabled * 100.0 / total, 2) if total else 0.0,
        'disabled_percentage': round(disabled * 100.0 / total, 2) if total else 0.0,
    }

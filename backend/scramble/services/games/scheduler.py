from scramble import socketio

_started = set()


def run_maintenance(app) -> dict:
    """One pass: expire idle sessions and reload changed question banks."""
    from scramble.services import configuration
    from scramble.services.games import sessions

    with app.app_context():
        expired = sessions.expire_stale_sessions()
        reloaded = configuration.check_for_changes()
    return {'expired_sessions': expired, 'reloaded_configs': reloaded}


def start_maintenance_loop(app) -> None:
    """Start the periodic maintenance worker once per app.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Interval comes from MAINTENANCE_INTERVAL_SEC; 0 disables the loop
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    interval = int(app.config.get('MAINTENANCE_INTERVAL_SEC', 300))
    if interval <= 0 or id(app) in _started:
        return
    _started.add(id(app))
    app.logger.info(f"[maintenance] loop started interval={interval}s")

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                result = run_maintenance(app)
            except Exception:
                app.logger.exception('[maintenance] pass failed')
                continue
            if result['expired_sessions'] or result['reloaded_configs']:
                app.logger.info(
                    f"[maintenance] expired={result['expired_sessions']} reloaded={len(result['reloaded_configs'])}"
                )

    socketio.start_background_task(_worker)



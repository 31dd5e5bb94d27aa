from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from buzzer import db, get_engine
from buzzer.models import AdminLog, record_event


admin = Blueprint('admin', __name__)


def _audit(action, state):
    try:
        record_event('admin', action, state, actor=getattr(current_user, 'username', None))
    except Exception:
        current_app.logger.exception(f"[audit-error] action={action}")


@admin.route('/state', methods=['GET'])
@login_required
def get_state():
    engine = get_engine()
    return jsonify({
        'state': engine.snapshot().to_dict(),
        'sessions': engine.session_count(),
    })


@admin.route('/reset', methods=['POST'])
@login_required
def force_reset():
    state = get_engine().reset(source='admin')
    _audit('reset', state)
    return jsonify({'state': state.to_dict()})


@admin.route('/live', methods=['POST'])
@login_required
def set_live():
    """Set live mode from ``{"live": bool}``, or toggle when no value is given."""
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    if 'live' not in data:
        state = engine.toggle_live_mode(source='admin')
    else:
        live = data.get('live')
        if not isinstance(live, bool):
            return jsonify({'error': 'live must be a boolean'}), 400
        state = engine.set_live_mode(live, source='admin')
    _audit('live' if state.is_live_mode else 'freeze', state)
    return jsonify({'state': state.to_dict()})


@admin.route('/logs', methods=['GET'])
@login_required
def list_logs():
    try:
        limit = int(request.args.get('limit', 100))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(1, min(limit, 1000))
    entries = AdminLog.query.order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit).all()
    return jsonify([e.to_dict() for e in entries])


@admin.route('/logs/<int:log_id>', methods=['DELETE'])
@login_required
def delete_log(log_id):
    entry = db.session.get(AdminLog, log_id)
    if entry is None:
        return jsonify({'error': 'Log not found'}), 404
    db.session.delete(entry)
    db.session.commit()
    return jsonify({'success': True, 'id': log_id})

from flask import Blueprint, jsonify
from buzzer import get_engine

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the buzzer server!'})


@main.route('/health')
def health():
    engine = get_engine()
    state = engine.snapshot()
    return jsonify({
        'status': 'ok',
        'sessions': engine.session_count(),
        'phase': 'live' if state.is_live_mode else 'frozen',
    })

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.security import generate_password_hash
import click
import json
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def get_engine():
    """The BuzzerEngine bound to the current app."""
    return current_app.extensions['buzzer']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    if not flask_app.config.get('PHRASE_KEYS'):
        raise RuntimeError('PHRASE_KEYS must name at least one counter')
    if not flask_app.config.get('ADMIN_PASSWORD_HASH'):
        flask_app.config['ADMIN_PASSWORD_HASH'] = generate_password_hash(
            flask_app.config.get('ADMIN_PASSWORD') or ''
        )

    allowed_origins = list(flask_app.config.get('CORS_ORIGINS') or [])
    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from buzzer.services.live import BuzzerEngine
    from buzzer.services.live.broadcast import SocketIOTransport
    from buzzer.services.live.timers import socketio_call_later
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    engine = BuzzerEngine.from_config(
        flask_app.config,
        transport=SocketIOTransport(socketio, namespace),
        call_later=socketio_call_later(socketio),
    )
    flask_app.extensions['buzzer'] = engine

    from buzzer.main import main
    flask_app.register_blueprint(main)

    from buzzer.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/admin')

    from buzzer.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    from buzzer.auth import init_auth
    init_auth(flask_app)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the audit log table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Audit log has been reset!')

    @click.command('show-state')
    def show_state_command():
        """Prints the in-memory counters of this process."""
        print(json.dumps(engine.snapshot().to_dict(), indent=2))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(show_state_command)

    if flask_app.config.get('BACKGROUND_TASKS_ENABLED') and not flask_app.config.get('TESTING'):
        from buzzer.services.live.tasks import start_background_tasks
        flask_app.extensions['buzzer_scheduler'] = start_background_tasks(flask_app, socketio, engine)

    return flask_app

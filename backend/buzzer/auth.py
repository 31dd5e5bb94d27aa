from flask import current_app, jsonify
from buzzer import login_manager
from buzzer.models import AdminUser


def _configured_admin():
    return AdminUser(
        current_app.config.get('ADMIN_USERNAME', 'admin'),
        current_app.config['ADMIN_PASSWORD_HASH'],
    )


def init_auth(flask_app):
    # HTTP Basic on every admin request; no login form, no session cookie needed

    @login_manager.user_loader
    def load_user(user_id):
        admin = _configured_admin()
        return admin if user_id == admin.id else None

    @login_manager.request_loader
    def load_user_from_request(req):
        auth = req.authorization
        if not auth or auth.type != 'basic':
            return None
        admin = _configured_admin()
        if auth.username == admin.username and admin.check_password(auth.password):
            return admin
        current_app.logger.info(f"[admin-auth-failed] user={auth.username!r}")
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        response = jsonify({'error': 'Authentication required'})
        response.status_code = 401
        response.headers['WWW-Authenticate'] = 'Basic realm="buzzer-admin"'
        return response

    flask_app.logger.debug(f"[auth] admin basic auth enabled user={flask_app.config.get('ADMIN_USERNAME')!r}")

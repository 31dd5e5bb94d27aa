from buzzer import db
from flask_login import UserMixin
from werkzeug.security import check_password_hash
import json
import time


class AdminUser(UserMixin):
    """The single admin account; credentials come from config, not the DB."""

    def __init__(self, username, password_hash):
        self.id = username
        self.username = username
        self.password_hash = password_hash

    def check_password(self, password):
        return check_password_hash(self.password_hash, password or '')

    def to_dict(self):
        return {'username': self.username}


class AdminLog(db.Model):
    """Audit trail of admin actions and scheduled phase changes.

    Only the events are stored; counter values stay in memory.
    """
    __tablename__ = 'admin_log'
    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.Float, nullable=False, default=time.time, index=True)
    source = db.Column(db.String(32), nullable=False)  # admin, scheduler
    action = db.Column(db.String(64), nullable=False)  # reset, freeze, live, reset_live
    actor = db.Column(db.String(64), nullable=True)
    detail = db.Column(db.Text, nullable=True)  # JSON-encoded state summary

    def to_dict(self):
        try:
            detail = json.loads(self.detail) if self.detail else None
        except ValueError:
            detail = None
        return {
            'id': self.id,
            'created_at': self.created_at,
            'source': self.source,
            'action': self.action,
            'actor': self.actor,
            'detail': detail,
        }


def record_event(source, action, state=None, actor=None):
    """Append an audit row; failures roll back and are re-raised."""
    entry = AdminLog(
        source=source,
        action=action,
        actor=actor,
        detail=json.dumps(state.to_dict()) if state is not None else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return entry

# patitas/models/profile.py
from patitas import db
from flask_login import UserMixin
from datetime import datetime
import uuid
import bcrypt

from patitas.models.enums import AdminRole
from patitas.utils.security import generate_secure_token


def load_profile_from_session(session_id):
    """
    user_loader de Flask-Login.

    El id de sesion es "<profile_id>:<session_token>". Un token que no
    coincide corresponde a una sesion revocada. Los perfiles baneados se
    devuelven igual para que el ban-gate los desconecte y redirija.
    """
    if not session_id or ':' not in session_id:
        return None

    profile_id, token = session_id.split(':', 1)
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        return None
    if profile.banned:
        return profile
    if not token or token != profile.session_token:
        return None
    return profile


class Profile(UserMixin, db.Model):
    __tablename__ = 'profiles'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(30))
    password_hash = db.Column(db.String(128))

    # Ban
    banned = db.Column(db.Boolean, default=False, nullable=False)
    banned_at = db.Column(db.DateTime)
    banned_by = db.Column(db.String(36))
    ban_reason = db.Column(db.Text)

    # Se rota para invalidar todas las sesiones abiertas
    session_token = db.Column(db.String(64), nullable=False, default=generate_secure_token)

    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relaciones
    publications = db.relationship('Publication', backref='owner', lazy='dynamic')
    reports_made = db.relationship('Report', backref='reporter', lazy='dynamic',
                                   foreign_keys='Report.reporter_id')

    def set_password(self, password):
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password):
        if not self.password_hash or not password:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        except ValueError:
            return False

    def get_id(self):
        return f'{self.id}:{self.session_token}'

    @property
    def is_admin(self):
        return self.admin is not None

    def revoke_sessions(self):
        """Invalida todas las sesiones existentes del usuario"""
        self.session_token = generate_secure_token()

    def update_last_login(self):
        self.last_login = datetime.utcnow()

    def __repr__(self):
        return f'<Profile {self.email}>'


class AdminUser(db.Model):
    __tablename__ = 'admin_users'

    id = db.Column(db.String(36), db.ForeignKey('profiles.id'), primary_key=True)
    role = db.Column(db.String(20), nullable=False, default=AdminRole.ADMIN.value)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    profile = db.relationship('Profile', backref=db.backref('admin', uselist=False))

    @property
    def role_enum(self):
        return AdminRole.parse(self.role)

    def __repr__(self):
        return f'<AdminUser {self.id} ({self.role})>'

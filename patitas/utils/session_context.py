"""
Contexto de sesion y ban-gate.

`SessionContext` reune el usuario actual y su rol de administrador para
un request; se inyecta en los templates con un context processor en vez de
leer estado global desde cada componente. Los cambios de sesion (login,
logout, ban, unban) se notifican con la señal `session_changed`; quien
quiera enterarse se conecta con `subscribe()` y se desconecta con
`unsubscribe()`.
"""
import logging
from urllib.parse import urlencode

from blinker import Namespace
from flask import g, redirect, request, session, url_for
from flask_login import current_user, login_user, logout_user

logger = logging.getLogger(__name__)

_signals = Namespace()
session_changed = _signals.signal('session-changed')

# Rutas que el ban-gate no intercepta
GATE_EXEMPT_ENDPOINTS = {'auth.banned', 'auth.logout', 'static', 'public.media'}


class SessionContext:
    """Usuario actual y su rol para el request en curso"""

    def __init__(self, user=None):
        self.user = user if user is not None and user.is_authenticated else None

    @property
    def is_authenticated(self):
        return self.user is not None

    @property
    def user_id(self):
        return self.user.id if self.user else None

    @property
    def is_admin(self):
        return bool(self.user) and self.user.is_admin

    @property
    def admin_role(self):
        if not self.is_admin:
            return None
        return self.user.admin.role_enum

    def owns(self, publication):
        return self.user_id is not None and publication.user_id == self.user_id

    @staticmethod
    def subscribe(receiver):
        """receiver(sender, event=..., profile_id=...)"""
        session_changed.connect(receiver)
        return receiver

    @staticmethod
    def unsubscribe(receiver):
        session_changed.disconnect(receiver)


def get_session_context():
    """SessionContext del request actual (se crea una sola vez por request)"""
    if 'session_context' not in g:
        g.session_context = SessionContext(current_user._get_current_object())
    return g.session_context


def inject_session_context():
    return {'session_ctx': get_session_context()}


def notify_session_change(event, profile_id):
    session_changed.send(None, event=event, profile_id=profile_id)


def sign_in(profile, remember=False):
    login_user(profile, remember=remember)
    g.pop('session_context', None)
    notify_session_change('signed_in', profile.id)


def sign_out():
    profile_id = current_user.id if current_user.is_authenticated else None
    # logout_user() marca la cookie "remember" para borrar; limpiar antes
    session.clear()
    logout_user()
    g.pop('session_context', None)
    if profile_id:
        notify_session_change('signed_out', profile_id)


def banned_notice_url(reason=None):
    url = url_for('auth.banned')
    if reason:
        url = f'{url}?{urlencode({"reason": reason})}'
    return url


def enforce_ban_gate():
    """
    Corre antes de cada request. Si la sesion pertenece a una cuenta
    baneada (incluida una sesion restaurada desde la cookie "remember"),
    la cierra y redirige al aviso de suspension con el motivo guardado.
    """
    if request.endpoint in GATE_EXEMPT_ENDPOINTS:
        return None
    user = current_user._get_current_object()
    if not getattr(user, 'banned', False):
        return None

    reason = user.ban_reason
    logger.warning('Sesion de usuario baneado %s cerrada en %s', user.id, request.path)
    sign_out()
    return redirect(banned_notice_url(reason))

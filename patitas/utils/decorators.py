from functools import wraps
from flask import redirect, url_for, flash
from flask_login import current_user

def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return redirect(url_for('auth.login'))

        if not current_user.is_admin:
            flash('Acceso denegado. Solo administradores.', 'error')
            return redirect(url_for('public.index'))

        return f(*args, **kwargs)
    return decorated_function

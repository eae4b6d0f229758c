import logging

from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from patitas import db
from patitas.models import Profile
from patitas.utils.security import is_safe_url, is_valid_email, is_valid_phone, normalize_email
from patitas.utils.session_context import sign_in, sign_out, banned_notice_url

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/auth')

AUTH_ERROR_MESSAGES = {
    'access_denied': 'Se denegó el acceso a tu cuenta.',
    'server_error': 'Ocurrió un error en el servidor. Inténtalo de nuevo más tarde.',
    'session_expired': 'Tu sesión expiró. Vuelve a iniciar sesión.',
}

@bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('public.index'))

    if request.method == 'POST':
        email = normalize_email(request.form.get('email'))
        password = request.form.get('password') or ''

        user = Profile.query.filter_by(email=email).first() if email else None
        if not user or not user.check_password(password):
            flash('Email o contraseña incorrectos', 'error')
            return render_template('auth/login.html', email=email), 401

        # Ban-gate en el login: no se crea sesion para cuentas baneadas
        if user.banned:
            logger.warning('Intento de login de usuario baneado %s', user.id)
            return redirect(banned_notice_url(user.ban_reason))

        user.update_last_login()
        db.session.commit()
        sign_in(user, remember=bool(request.form.get('remember')))
        logger.info('Login de %s', user.id)

        next_page = request.args.get('next')
        if next_page and is_safe_url(next_page):
            return redirect(next_page)
        return redirect(url_for('public.index'))

    return render_template('auth/login.html')

@bp.route('/sign-up', methods=['GET', 'POST'])
def sign_up():
    if current_user.is_authenticated:
        return redirect(url_for('public.index'))

    if request.method == 'POST':
        full_name = (request.form.get('full_name') or '').strip()
        email = normalize_email(request.form.get('email'))
        phone = (request.form.get('phone') or '').strip()
        password = request.form.get('password') or ''
        confirm_password = request.form.get('confirm_password') or ''

        # Validaciones
        error = None
        if not full_name:
            error = 'El nombre es obligatorio'
        elif not is_valid_email(email):
            error = 'Email inválido'
        elif phone and not is_valid_phone(phone):
            error = 'Formato de teléfono inválido'
        elif password != confirm_password:
            error = 'Las contraseñas no coinciden'
        elif len(password) < 6:
            error = 'La contraseña debe tener al menos 6 caracteres'
        elif Profile.query.filter_by(email=email).first():
            error = 'Este email ya está registrado'

        if error:
            flash(error, 'error')
            return render_template('auth/sign_up.html', full_name=full_name, email=email, phone=phone), 400

        user = Profile(full_name=full_name, email=email, phone=phone or None)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Error creando cuenta %s: %s', email, e)
            return redirect(url_for('auth.error', error='server_error'))

        logger.info('Cuenta creada: %s', user.id)
        return redirect(url_for('auth.sign_up_success'))

    return render_template('auth/sign_up.html')

@bp.route('/sign-up-success')
def sign_up_success():
    return render_template('auth/sign_up_success.html')

@bp.route('/logout')
def logout():
    sign_out()
    flash('Cerraste tu sesión.', 'info')
    return redirect(url_for('public.index'))

@bp.route('/banned')
def banned():
    """Aviso de cuenta suspendida con el motivo guardado"""
    reason = request.args.get('reason')
    return render_template('auth/banned.html', reason=reason)

@bp.route('/error')
def error():
    code = request.args.get('error')
    message = AUTH_ERROR_MESSAGES.get(code, 'Ocurrió un error inesperado durante la autenticación.')
    return render_template('auth/error.html', code=code, message=message)

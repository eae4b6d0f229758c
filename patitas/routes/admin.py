import logging

from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify, abort, current_app
from flask_login import login_required, current_user

from patitas.services.errors import NotFound, PatitasError
from patitas.services.moderation import ModerationService
from patitas.utils.decorators import admin_required
from patitas.utils.pagination import page_arg

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__, url_prefix='/admin')

def _per_page():
    return current_app.config['ADMIN_PAGE_SIZE']

def _back(default_endpoint):
    """Vuelve a la pagina de origen (misma pagina y filtros) para releer el estado"""
    next_page = request.form.get('next')
    if next_page and next_page.startswith('/admin'):
        return redirect(next_page)
    return redirect(url_for(default_endpoint))

@bp.route('/')
@login_required
@admin_required
def index():
    """Panel administrativo principal"""
    stats, recent_reports, recent_publications = ModerationService.dashboard_stats()
    return render_template('admin/index.html',
                           stats=stats,
                           recent_reports=[ModerationService.resolve_report_entry(r) for r in recent_reports],
                           recent_publications=recent_publications,
                           admin_role=current_user.admin.role_enum)

# ── Reportes ────────────────────────────────────────────────────────────

@bp.route('/reports')
@login_required
@admin_required
def reports():
    status = request.args.get('status', 'all')
    try:
        result = ModerationService.list_reports(status=status, page=page_arg(request.args.get('page')),
                                                per_page=_per_page())
    except PatitasError:
        flash('Filtro de estado inválido', 'error')
        return redirect(url_for('admin.reports'))
    return render_template('admin/reports.html', result=result, status=status)

@bp.route('/reports/<report_id>/status', methods=['POST'])
@login_required
@admin_required
def update_report_status(report_id):
    try:
        report = ModerationService.update_report_status(report_id, current_user.id, request.form.get('status', ''))
        flash(f'Reporte marcado como "{report.status_enum.label}"', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error actualizando reporte %s: %s', report_id, e.message)
        flash(e.message, 'error')
    return _back('admin.reports')

# ── Publicaciones ───────────────────────────────────────────────────────

@bp.route('/publications')
@login_required
@admin_required
def publications():
    status = request.args.get('status', 'all')
    search = (request.args.get('search') or '').strip()
    try:
        result = ModerationService.list_publications(status=status, search=search or None,
                                                     page=page_arg(request.args.get('page')),
                                                     per_page=_per_page())
    except PatitasError:
        flash('Filtro de estado inválido', 'error')
        return redirect(url_for('admin.publications'))
    return render_template('admin/publications.html', result=result, status=status, search=search)

@bp.route('/publications/<publication_id>')
@login_required
@admin_required
def publication_details(publication_id):
    try:
        details = ModerationService.get_publication_details(publication_id)
    except NotFound:
        return jsonify({'error': 'La publicación no existe'}), 404
    details['created_at'] = details['created_at'].isoformat() if details['created_at'] else None
    return jsonify(details)

@bp.route('/publications/<publication_id>/status', methods=['POST'])
@login_required
@admin_required
def force_publication_status(publication_id):
    try:
        publication = ModerationService.force_listing_status(publication_id, current_user.id,
                                                             request.form.get('status', ''))
        flash(f'Publicación marcada como "{publication.status_enum.label}"', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error forzando estado de %s: %s', publication_id, e.message)
        flash(e.message, 'error')
    return _back('admin.publications')

@bp.route('/publications/<publication_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_publication(publication_id):
    try:
        ModerationService.delete_listing(publication_id, current_user.id)
        flash('Publicación eliminada', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error eliminando %s: %s', publication_id, e.message)
        flash(e.message, 'error')
    return _back('admin.publications')

# ── Usuarios ────────────────────────────────────────────────────────────

@bp.route('/users')
@login_required
@admin_required
def users():
    """Lista de usuarios (sin administradores)"""
    banned_filter = request.args.get('banned', 'all')
    banned = {'yes': True, 'no': False}.get(banned_filter)
    search = (request.args.get('search') or '').strip()
    result = ModerationService.list_users(banned=banned, search=search or None,
                                          page=page_arg(request.args.get('page')),
                                          per_page=_per_page())
    return render_template('admin/users.html', result=result, banned_filter=banned_filter, search=search)

@bp.route('/users/<user_id>')
@login_required
@admin_required
def user_stats(user_id):
    try:
        stats = ModerationService.get_user_stats(user_id)
    except NotFound:
        return jsonify({'error': 'El usuario no existe'}), 404
    for key in ('banned_at', 'created_at'):
        stats[key] = stats[key].isoformat() if stats[key] else None
    return jsonify(stats)

@bp.route('/users/<user_id>/ban', methods=['POST'])
@login_required
@admin_required
def ban_user(user_id):
    try:
        profile = ModerationService.ban_user(user_id, current_user.id, request.form.get('reason'))
        flash(f'{profile.full_name} fue baneado', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error baneando %s: %s', user_id, e.message)
        flash(e.message, 'error')
    return _back('admin.users')

@bp.route('/users/<user_id>/unban', methods=['POST'])
@login_required
@admin_required
def unban_user(user_id):
    try:
        profile = ModerationService.unban_user(user_id, current_user.id)
        flash(f'{profile.full_name} fue desbaneado', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error desbaneando %s: %s', user_id, e.message)
        flash(e.message, 'error')
    return _back('admin.users')

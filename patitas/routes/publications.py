# patitas/routes/publications.py
import logging

from flask import Blueprint, render_template, redirect, url_for, flash, request, abort, current_app
from flask_login import login_required, current_user

from patitas.services.directory import DirectoryService
from patitas.services.errors import NotFound, PatitasError, ValidationError
from patitas.services.lifecycle import LifecycleService
from patitas.services.moderation import ModerationService
from patitas.services.publishing import PublishingService
from patitas.utils.session_context import get_session_context

logger = logging.getLogger(__name__)

bp = Blueprint('publications', __name__)

STATUS_MESSAGES = {
    'active': 'La publicación está activa nuevamente.',
    'resolved': '¡Qué alegría! La publicación quedó marcada como resuelta.',
    'inactive': 'La publicación quedó inactiva.',
}


@bp.route('/publicar', methods=['GET', 'POST'])
@login_required
def create():
    """Formulario para publicar una mascota encontrada o perdida"""
    if request.method == 'POST':
        images = request.files.getlist('images')
        try:
            result = PublishingService.create_publication(
                current_user.id, request.form, images,
                max_images=current_app.config['MAX_IMAGES_PER_PUBLICATION'],
            )
        except ValidationError as e:
            flash('Por favor, completa todos los campos obligatorios', 'error')
            return render_template('publications/new.html', form=request.form, errors=e.errors), 400
        except PatitasError as e:
            logger.error('Error creando publicacion de %s: %s', current_user.id, e.message)
            flash(e.message, 'error')
            return render_template('publications/new.html', form=request.form, errors={}), 500

        publication = result.publication
        if result.failed_images:
            flash(f'La publicación se creó, pero {len(result.failed_images)} imagen(es) no se pudieron '
                  'subir. Puedes agregarlas desde la publicación.', 'warning')
        elif publication.publication_type == 'found':
            flash('Tu hallazgo ha sido publicado exitosamente', 'success')
        else:
            flash('Tu búsqueda ha sido publicada exitosamente', 'success')
        return redirect(url_for('publications.detail', publication_id=publication.id))

    return render_template('publications/new.html', form={}, errors={})


@bp.route('/publicacion/<publication_id>')
def detail(publication_id):
    ctx = get_session_context()
    try:
        publication = DirectoryService.get_visible(publication_id, ctx)
    except NotFound:
        abort(404)

    is_owner = ctx.owns(publication)
    return render_template('publications/detail.html',
                           publication=publication,
                           is_owner=is_owner,
                           allowed_targets=LifecycleService.allowed_targets(publication.status) if is_owner else [],
                           max_images=current_app.config['MAX_IMAGES_PER_PUBLICATION'])


@bp.route('/publicacion/<publication_id>/reportar', methods=['POST'])
@login_required
def report(publication_id):
    try:
        ModerationService.file_report(
            publication_id,
            current_user.id,
            request.form.get('reason', ''),
            request.form.get('description'),
        )
        flash('Gracias por tu reporte. Lo revisaremos pronto.', 'success')
    except ValidationError:
        flash('Selecciona una razón para el reporte', 'error')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.error('Error enviando reporte sobre %s: %s', publication_id, e.message)
        flash('Hubo un problema al enviar el reporte. Inténtalo de nuevo.', 'error')

    return redirect(url_for('publications.detail', publication_id=publication_id))


@bp.route('/publicacion/<publication_id>/estado', methods=['POST'])
@login_required
def update_status(publication_id):
    """Cambio de estado por parte del dueño"""
    target = request.form.get('status', '')
    try:
        LifecycleService.set_status(publication_id, current_user.id, target)
        flash(STATUS_MESSAGES.get(target, 'El estado de la publicación ha sido actualizado'), 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.warning('Cambio de estado rechazado (%s -> %s) para %s: %s',
                       publication_id, target, current_user.id, e.message)
        flash(e.message, 'error')

    next_page = request.form.get('next')
    if next_page == 'mine':
        return redirect(url_for('publications.mine'))
    return redirect(url_for('publications.detail', publication_id=publication_id))


@bp.route('/publicacion/<publication_id>/imagenes', methods=['POST'])
@login_required
def add_images(publication_id):
    """Completa imagenes faltantes de una publicacion"""
    try:
        result = PublishingService.add_images(
            publication_id, current_user.id, request.files.getlist('images'),
            max_images=current_app.config['MAX_IMAGES_PER_PUBLICATION'],
        )
        if result.failed_images:
            flash(f'{len(result.failed_images)} imagen(es) no se pudieron subir.', 'warning')
        else:
            flash('Imágenes agregadas', 'success')
    except NotFound:
        abort(404)
    except PatitasError as e:
        logger.warning('Carga de imagenes rechazada en %s: %s', publication_id, e.message)
        flash(e.message, 'error')

    return redirect(url_for('publications.detail', publication_id=publication_id))


@bp.route('/mis-publicaciones')
@login_required
def mine():
    publications = DirectoryService.owner_listings(current_user.id)
    return render_template('publications/mine.html',
                           publications=publications,
                           allowed_targets=LifecycleService.allowed_targets)

# patitas/routes/public.py
from flask import Blueprint, render_template, request, jsonify, current_app, send_from_directory, url_for

from patitas.services.directory import DirectoryService, clean_filters
from patitas.utils.pagination import page_arg

bp = Blueprint('public', __name__)


def _card(publication):
    card = publication.to_card()
    card['url'] = url_for('publications.detail', publication_id=publication.id)
    return card


@bp.route('/')
def index():
    """Directorio: primera pagina de publicaciones con filtros"""
    filters = clean_filters(request.args)
    result = DirectoryService.search(filters, page=0,
                                     per_page=current_app.config['DIRECTORY_PAGE_SIZE'])
    return render_template('public/index.html',
                           publications=result['items'],
                           total=result['total'],
                           has_more=result['has_more'],
                           filters=filters)


@bp.route('/publicaciones')
def load_more():
    """Paginas siguientes del directorio; el cliente las agrega a la lista"""
    filters = clean_filters(request.args)
    page = page_arg(request.args.get('page', 1))
    result = DirectoryService.search(filters, page=page,
                                     per_page=current_app.config['DIRECTORY_PAGE_SIZE'])
    return jsonify({
        'publications': [_card(p) for p in result['items']],
        'page': result['page'],
        'total': result['total'],
        'has_more': result['has_more'],
    })


@bp.route('/media/<path:key>')
def media(key):
    """Imagenes subidas (almacenamiento local)"""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], key)

# patitas/services/directory.py
"""
Directorio publico: busqueda paginada de publicaciones.

Solo se listan publicaciones activas o resueltas; las urgentes primero y
luego las mas recientes.
"""
from sqlalchemy import or_

from patitas import db
from patitas.models import Publication, PublicationStatus, PublicationType, PetType, PetSize
from patitas.services.errors import NotFound
from patitas.utils.pagination import paginate

PUBLIC_STATUSES = (PublicationStatus.ACTIVE.value, PublicationStatus.RESOLVED.value)

FILTER_KEYS = ('search', 'pet_type', 'pet_size', 'publication_type', 'location')


def _selected(value):
    """'' y 'all' significan sin filtro"""
    if value is None:
        return None
    value = str(value).strip()
    return value if value and value != 'all' else None


def clean_filters(args):
    """Normaliza los filtros de la query string; ignora valores fuera del enum"""
    filters = {}
    for key in FILTER_KEYS:
        value = _selected(args.get(key))
        if value is None:
            continue
        enum = {'pet_type': PetType, 'pet_size': PetSize, 'publication_type': PublicationType}.get(key)
        if enum is not None and value not in enum.values():
            continue
        filters[key] = value
    return filters


class DirectoryService:
    """Lecturas publicas de publicaciones"""

    PAGE_SIZE = 12

    @staticmethod
    def build_query(filters=None):
        filters = filters or {}
        query = Publication.query.filter(Publication.status.in_(PUBLIC_STATUSES))

        if filters.get('pet_type'):
            query = query.filter(Publication.pet_type == filters['pet_type'])
        if filters.get('pet_size'):
            query = query.filter(Publication.pet_size == filters['pet_size'])
        if filters.get('publication_type'):
            query = query.filter(Publication.publication_type == filters['publication_type'])
        if filters.get('location'):
            query = query.filter(Publication.location.ilike(f"%{filters['location']}%"))
        if filters.get('search'):
            pattern = f"%{filters['search']}%"
            query = query.filter(or_(Publication.title.ilike(pattern),
                                     Publication.description.ilike(pattern)))

        return query.order_by(Publication.is_urgent.desc(), Publication.created_at.desc())

    @staticmethod
    def search(filters=None, page=0, per_page=None):
        """
        Busqueda paginada del directorio

        Args:
            filters: dict con search, pet_type, pet_size, publication_type, location
            page: pagina (desde 0)
            per_page: tamaño de pagina (12 por defecto)

        Returns:
            dict: items, total, page, per_page, pages, has_more
        """
        per_page = per_page or DirectoryService.PAGE_SIZE
        return paginate(DirectoryService.build_query(filters), page, per_page)

    @staticmethod
    def get_visible(publication_id, viewer=None):
        """
        Publicacion para la pagina de detalle. Las inactivas solo las ve
        su dueño (o un administrador).
        """
        publication = db.session.get(Publication, publication_id)
        if publication is None:
            raise NotFound('La publicación no existe o fue eliminada')

        if publication.status not in PUBLIC_STATUSES:
            is_owner = viewer is not None and viewer.user_id == publication.user_id
            if not (is_owner or (viewer is not None and viewer.is_admin)):
                raise NotFound('La publicación no existe o fue eliminada')
        return publication

    @staticmethod
    def owner_listings(user_id):
        """Todas las publicaciones del usuario, cualquier estado"""
        return Publication.query.filter_by(user_id=user_id).order_by(
            Publication.created_at.desc()
        ).all()

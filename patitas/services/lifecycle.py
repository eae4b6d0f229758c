# patitas/services/lifecycle.py
"""
Ciclo de vida de una publicacion: cambios de estado pedidos por el dueño.

    active   -> resolved | inactive
    inactive -> active
    resolved -> (terminal; solo un administrador puede cambiarlo)
"""
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from patitas import db
from patitas.models import Publication, PublicationStatus
from patitas.services.errors import InvalidTransition, NotFound, Unauthorized, StorageError

logger = logging.getLogger(__name__)


class LifecycleService:
    """Cambios de estado de una publicacion iniciados por su dueño"""

    TRANSITIONS = {
        PublicationStatus.ACTIVE: frozenset({PublicationStatus.RESOLVED, PublicationStatus.INACTIVE}),
        PublicationStatus.INACTIVE: frozenset({PublicationStatus.ACTIVE}),
        PublicationStatus.RESOLVED: frozenset(),
    }

    @staticmethod
    def allowed_targets(status):
        """Estados alcanzables desde `status`, en orden de declaracion"""
        current = PublicationStatus.parse(status)
        reachable = LifecycleService.TRANSITIONS[current]
        return [s for s in PublicationStatus if s in reachable]

    @staticmethod
    def can_transition(current, target):
        current = PublicationStatus.parse(current)
        target = PublicationStatus.parse(target)
        return current == target or target in LifecycleService.TRANSITIONS[current]

    @staticmethod
    def set_status(publication_id, requester_id, target):
        """
        Aplica un cambio de estado pedido por el dueño

        Args:
            publication_id: ID de la publicacion
            requester_id: ID del usuario que pide el cambio
            target: estado destino (str o PublicationStatus)

        Returns:
            Publication: la publicacion (sin cambios si ya estaba en `target`)

        Raises:
            NotFound, Unauthorized, InvalidTransition, ValidationError, StorageError
        """
        target = PublicationStatus.parse(target, field='status')

        publication = db.session.get(Publication, publication_id)
        if publication is None:
            raise NotFound('La publicación no existe')

        # La propiedad se valida antes que la tabla de transiciones
        if not requester_id or publication.user_id != requester_id:
            logger.warning('Usuario %s intento cambiar estado de %s sin ser dueño',
                           requester_id, publication_id)
            raise Unauthorized('Solo el dueño puede cambiar el estado de esta publicación')

        current = publication.status_enum
        if current == target:
            return publication

        if target not in LifecycleService.TRANSITIONS[current]:
            raise InvalidTransition(current, target)

        publication.status = target.value
        publication.updated_at = datetime.utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Error al guardar estado de %s: %s', publication_id, e)
            raise StorageError()

        logger.info('Publicacion %s: %s -> %s (dueño %s)',
                    publication_id, current.value, target.value, requester_id)
        return publication

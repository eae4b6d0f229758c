# patitas/services/publishing.py
"""
Creacion de publicaciones desde el formulario "Publicar".

La fila se crea primero y las imagenes se suben despues. Si alguna imagen
falla la publicacion se conserva con las que si se guardaron y el dueño
puede completarlas luego con `add_images`.
"""
import logging
import re
from collections import namedtuple
from datetime import datetime, date

from sqlalchemy.exc import SQLAlchemyError

from patitas import db
from patitas.models import Publication, PublicationType, PetType, PetSize, PublicationStatus
from patitas.services.errors import NotFound, StorageError, Unauthorized, ValidationError
from patitas.services.storage import ImageStorage
from patitas.utils.security import is_valid_email, is_valid_phone, normalize_email

logger = logging.getLogger(__name__)

PublishResult = namedtuple('PublishResult', ['publication', 'failed_images'])

_INDEX_PATTERN = re.compile(r'_(\d+)\.[a-z0-9]+$')


def _clean(form, key):
    value = form.get(key)
    return value.strip() if isinstance(value, str) else ''


def _is_checked(value):
    return str(value).lower() in ('1', 'true', 'on', 'yes', 'si', 'sí')


def _present_files(files):
    return [f for f in (files or []) if f is not None and getattr(f, 'filename', '')]


def validate_publication_form(form, images, max_images=5, storage=None):
    """
    Valida el formulario de publicacion antes de escribir nada

    Args:
        form: dict-like con los campos del formulario
        images: lista de archivos subidos
        max_images: limite de imagenes
        storage: ImageStorage para validar extensiones (opcional)

    Returns:
        dict: valores limpios listos para crear la Publication

    Raises:
        ValidationError: con `errors` campo -> mensaje
    """
    errors = {}

    raw_type = _clean(form, 'publication_type') or PublicationType.FOUND.value
    publication_type = None
    try:
        publication_type = PublicationType.parse(raw_type)
    except ValidationError:
        errors['publication_type'] = 'Tipo de publicación inválido'

    title = _clean(form, 'title')
    if not title:
        errors['title'] = 'El título es obligatorio'

    description = _clean(form, 'description')
    if not description:
        errors['description'] = 'La descripción es obligatoria'

    pet_type = None
    raw_pet_type = _clean(form, 'pet_type')
    if not raw_pet_type:
        errors['pet_type'] = 'El tipo de mascota es obligatorio'
    else:
        try:
            pet_type = PetType.parse(raw_pet_type)
        except ValidationError:
            errors['pet_type'] = 'Tipo de mascota inválido'

    pet_size = None
    raw_size = _clean(form, 'pet_size')
    if raw_size:
        try:
            pet_size = PetSize.parse(raw_size)
        except ValidationError:
            errors['pet_size'] = 'Tamaño inválido'

    found = publication_type != PublicationType.LOST
    location = _clean(form, 'location')
    if not location:
        errors['location'] = ('La ubicación donde encontraste la mascota es obligatoria' if found
                              else 'La ubicación donde se perdió la mascota es obligatoria')

    event_date = None
    raw_date = _clean(form, 'event_date')
    if not raw_date:
        errors['event_date'] = ('La fecha del hallazgo es obligatoria' if found
                                else 'La fecha de pérdida es obligatoria')
    else:
        try:
            event_date = date.fromisoformat(raw_date)
        except ValueError:
            errors['event_date'] = 'Fecha inválida'

    present = _present_files(images)
    if not present:
        errors['images'] = 'Debes subir al menos una foto de la mascota'
    elif len(present) > max_images:
        errors['images'] = f'Puedes subir máximo {max_images} imágenes'
    elif storage is not None:
        for f in present:
            try:
                storage.validate(f)
            except ValidationError as e:
                errors['images'] = e.message
                break

    contact_phone = _clean(form, 'contact_phone')
    contact_email = normalize_email(_clean(form, 'contact_email'))
    if not contact_phone and not contact_email:
        errors['contact'] = ('Debes proporcionar al menos un método de contacto '
                             '(teléfono de WhatsApp o email)')
    else:
        if contact_phone and not is_valid_phone(contact_phone):
            errors['contact_phone'] = ('Formato de teléfono inválido. Debe tener 10-14 dígitos, '
                                       'puede incluir código de país')
        if contact_email and not is_valid_email(contact_email):
            errors['contact_email'] = 'Formato de email inválido'

    if errors:
        # El primer error define el mensaje general
        field = 'contact' if 'contact' in errors else next(iter(errors))
        raise ValidationError(errors[field], field=field, errors=errors)

    return {
        'publication_type': publication_type.value,
        'title': title,
        'description': description,
        'pet_type': pet_type.value,
        'pet_size': pet_size.value if pet_size else None,
        'pet_color': _clean(form, 'pet_color') or None,
        'pet_breed': _clean(form, 'pet_breed') or None,
        'location': location,
        'event_date': event_date,
        'contact_phone': contact_phone or None,
        'contact_email': contact_email or None,
        'is_urgent': _is_checked(form.get('is_urgent', '')),
    }


def _next_image_index(urls):
    indexes = [int(m.group(1)) for m in (_INDEX_PATTERN.search(u) for u in urls) if m]
    return max(indexes) + 1 if indexes else 0


class PublishingService:
    """Alta de publicaciones y carga de imagenes"""

    @staticmethod
    def create_publication(owner_id, form, images, storage=None, max_images=5):
        """
        Crea la publicacion y sube sus imagenes

        Returns:
            PublishResult(publication, failed_images)
        """
        storage = storage or ImageStorage.from_app()
        values = validate_publication_form(form, images, max_images=max_images, storage=storage)

        publication = Publication(user_id=owner_id, status=PublicationStatus.ACTIVE.value,
                                  images=[], **values)
        db.session.add(publication)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Error creando publicacion de %s: %s', owner_id, e)
            raise StorageError('No se pudo crear la publicación. Inténtalo de nuevo.')

        logger.info('Publicacion %s creada por %s', publication.id, owner_id)

        failed = PublishingService._upload_images(publication, _present_files(images), storage, start=0)
        return PublishResult(publication, failed)

    @staticmethod
    def add_images(publication_id, requester_id, images, storage=None, max_images=5):
        """
        Agrega imagenes a una publicacion existente (completa cargas parciales)

        Returns:
            PublishResult(publication, failed_images)
        """
        publication = db.session.get(Publication, publication_id)
        if publication is None:
            raise NotFound('La publicación no existe')
        if publication.user_id != requester_id:
            raise Unauthorized('Solo el dueño puede agregar imágenes')

        storage = storage or ImageStorage.from_app()
        present = _present_files(images)
        current = list(publication.images or [])
        if not present:
            raise ValidationError('Selecciona al menos una imagen', field='images')
        if len(current) + len(present) > max_images:
            raise ValidationError(f'Puedes subir máximo {max_images} imágenes', field='images')
        for f in present:
            storage.validate(f)

        failed = PublishingService._upload_images(publication, present, storage,
                                                  start=_next_image_index(current))
        return PublishResult(publication, failed)

    @staticmethod
    def _upload_images(publication, files, storage, start):
        """Sube cada archivo; los fallos se registran y no revierten la publicacion"""
        if not files:
            return []

        urls = list(publication.images or [])
        failed = []
        for offset, file in enumerate(files):
            index = start + offset
            try:
                urls.append(storage.upload(publication.id, index, file))
            except StorageError as e:
                logger.warning('Imagen %s de %s no subida: %s', index, publication.id, e.message)
                failed.append(index)

        publication.images = urls
        publication.updated_at = datetime.utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error('Error guardando imagenes de %s: %s', publication.id, e)
            raise StorageError('La publicación se creó pero no se pudieron guardar las imágenes. '
                               'Puedes agregarlas desde la publicación.')
        return failed

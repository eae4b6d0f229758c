# patitas/services/storage.py
"""
Almacenamiento de imagenes de publicaciones.

Las imagenes se guardan en UPLOAD_FOLDER bajo la clave
`publications/{publication_id}_{index}.{ext}` y se sirven por /media/<clave>.
"""
import logging
import os

from flask import current_app, url_for

from patitas.services.errors import StorageError, ValidationError
from patitas.utils.security import image_extension

logger = logging.getLogger(__name__)

PUBLICATIONS_FOLDER = 'publications'


class ImageStorage:
    """Backend de archivos en disco local"""

    def __init__(self, root, allowed_extensions):
        self.root = root
        self.allowed_extensions = set(allowed_extensions)

    @classmethod
    def from_app(cls, app=None):
        app = app or current_app
        return cls(app.config['UPLOAD_FOLDER'], app.config['ALLOWED_IMAGE_EXTENSIONS'])

    @staticmethod
    def build_key(publication_id, index, extension):
        return f'{PUBLICATIONS_FOLDER}/{publication_id}_{index}.{extension}'

    def validate(self, file):
        ext = image_extension(getattr(file, 'filename', ''))
        if ext not in self.allowed_extensions:
            raise ValidationError(
                f'Formato de imagen no permitido ({ext or "sin extensión"})',
                field='images',
            )
        return ext

    def path_for(self, key):
        return os.path.join(self.root, *key.split('/'))

    def upload(self, publication_id, index, file):
        """
        Guarda una imagen y devuelve su URL publica

        Args:
            publication_id: ID de la publicacion
            index: posicion de la imagen en la publicacion
            file: werkzeug FileStorage

        Returns:
            str: URL publica de la imagen
        """
        ext = self.validate(file)
        key = self.build_key(publication_id, index, ext)
        path = self.path_for(key)

        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            file.save(path)
        except OSError as e:
            logger.error('Error guardando imagen %s: %s', key, e)
            raise StorageError(f'No se pudo guardar la imagen {index + 1}')

        logger.info('Imagen guardada: %s', key)
        return self.public_url(key)

    def public_url(self, key):
        return url_for('public.media', key=key)

    def delete_publication_images(self, publication_id):
        """Borra todas las imagenes de una publicacion; devuelve cuantas borro"""
        folder = os.path.join(self.root, PUBLICATIONS_FOLDER)
        if not os.path.isdir(folder):
            return 0

        removed = 0
        prefix = f'{publication_id}_'
        for name in os.listdir(folder):
            if name.startswith(prefix):
                try:
                    os.remove(os.path.join(folder, name))
                    removed += 1
                except OSError as e:
                    logger.warning('No se pudo borrar %s: %s', name, e)
        return removed

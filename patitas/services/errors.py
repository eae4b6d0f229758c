# patitas/services/errors.py
"""
Errores del dominio.

Los servicios lanzan estas excepciones; las rutas las capturan, muestran
el mensaje con flash y registran el fallo.
"""


class PatitasError(Exception):
    """Error base de la aplicacion"""

    default_message = 'Ocurrió un error inesperado'

    def __init__(self, message=None, field=None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)


class Unauthorized(PatitasError):
    """Falla de rol o de propiedad"""
    default_message = 'No tienes permisos para realizar esta acción'


class InvalidTransition(PatitasError):
    """Cambio de estado no permitido por la maquina de estados"""
    default_message = 'Cambio de estado no permitido'

    def __init__(self, current=None, target=None, message=None):
        self.current = current
        self.target = target
        if message is None and current is not None and target is not None:
            message = f'No se puede pasar de "{current.label}" a "{target.label}"'
        super().__init__(message)


class NotFound(PatitasError):
    """Entidad referenciada inexistente"""
    default_message = 'No se encontró el recurso solicitado'


class ValidationError(PatitasError):
    """Dato faltante o con formato invalido"""
    default_message = 'Hay datos inválidos en el formulario'

    def __init__(self, message=None, field=None, errors=None):
        super().__init__(message, field=field)
        self.errors = dict(errors or {})
        if field and field not in self.errors:
            self.errors[field] = self.message


class StorageError(PatitasError):
    """Falla de la base de datos o del almacenamiento de imagenes"""
    default_message = 'No se pudo guardar la información. Inténtalo de nuevo.'

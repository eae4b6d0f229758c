# patitas/models/enums.py
"""
Enumeraciones cerradas del dominio.

Cada miembro lleva su etiqueta en español; los templates usan `.label` y
nunca el valor crudo. `parse()` rechaza valores desconocidos con
ValidationError en lugar de dejarlos pasar como texto.
"""
from enum import Enum

from patitas.services.errors import ValidationError


class LabeledEnum(str, Enum):
    """Enum de strings con etiqueta para mostrar"""

    def __new__(cls, value, label):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.label = label
        return obj

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, raw, field=None):
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip())
        except ValueError:
            raise ValidationError(f'Valor inválido: {raw!r}', field=field)

    @classmethod
    def choices(cls):
        return [(member.value, member.label) for member in cls]

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class PublicationType(LabeledEnum):
    FOUND = ('found', 'Mascota encontrada')
    LOST = ('lost', 'Mascota perdida')


class PublicationStatus(LabeledEnum):
    ACTIVE = ('active', 'Activa')
    RESOLVED = ('resolved', 'Resuelta')
    INACTIVE = ('inactive', 'Inactiva')


class PetType(LabeledEnum):
    DOG = ('perro', 'Perro')
    CAT = ('gato', 'Gato')
    OTHER = ('otro', 'Otro')


class PetSize(LabeledEnum):
    SMALL = ('pequeño', 'Pequeño')
    MEDIUM = ('mediano', 'Mediano')
    LARGE = ('grande', 'Grande')


class ReportReason(LabeledEnum):
    INAPPROPRIATE = ('contenido_inapropiado', 'Contenido inapropiado')
    FALSE_INFO = ('informacion_falsa', 'Información falsa')
    SPAM = ('spam', 'Spam')
    OTHER = ('otro', 'Otro')


class ReportStatus(LabeledEnum):
    PENDING = ('pending', 'Pendiente')
    REVIEWED = ('reviewed', 'Revisado')
    RESOLVED = ('resolved', 'Resuelto')
    DISMISSED = ('dismissed', 'Descartado')

    @property
    def is_terminal(self):
        return self in (ReportStatus.RESOLVED, ReportStatus.DISMISSED)


class AdminRole(LabeledEnum):
    ADMIN = ('admin', 'Administrador')
    MODERATOR = ('moderator', 'Moderador')

# Importar todos los models
from .profile import Profile, AdminUser
from .publication import Publication
from .report import Report
from .enums import (
    PublicationType, PublicationStatus, PetType, PetSize,
    ReportReason, ReportStatus, AdminRole,
)

__all__ = [
    'Profile', 'AdminUser', 'Publication', 'Report',
    'PublicationType', 'PublicationStatus', 'PetType', 'PetSize',
    'ReportReason', 'ReportStatus', 'AdminRole',
]

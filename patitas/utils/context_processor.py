"""
Context processors para disponibilizar variables en todos los templates
"""
from flask import current_app

from patitas.models.enums import (
    PublicationType, PublicationStatus, PetType, PetSize, ReportReason, ReportStatus,
)

def inject_global_vars():
    """Inyecta variables globales en todos los templates"""
    return {
        'site': {
            'name': current_app.config.get('SITE_NAME', 'Patitas Conectadas'),
            'support_email': current_app.config.get('SUPPORT_EMAIL'),
        },
        'PublicationType': PublicationType,
        'PublicationStatus': PublicationStatus,
        'PetType': PetType,
        'PetSize': PetSize,
        'ReportReason': ReportReason,
        'ReportStatus': ReportStatus,
    }

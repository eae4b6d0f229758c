# patitas/models/publication.py
from patitas import db
from datetime import datetime
import uuid
import re

from patitas.models.enums import PublicationType, PublicationStatus, PetType, PetSize


class Publication(db.Model):
    __tablename__ = 'publications'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    publication_type = db.Column(db.String(10), nullable=False)  # found, lost
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False)
    pet_type = db.Column(db.String(20), nullable=False)  # perro, gato, otro
    pet_size = db.Column(db.String(20))
    pet_color = db.Column(db.String(60))
    pet_breed = db.Column(db.String(80))
    location = db.Column(db.String(255), nullable=False)
    event_date = db.Column(db.Date, nullable=False)  # fecha del hallazgo o de la perdida
    images = db.Column(db.JSON, nullable=False, default=list)
    is_urgent = db.Column(db.Boolean, default=False, nullable=False)
    contact_phone = db.Column(db.String(30))
    contact_email = db.Column(db.String(255))
    status = db.Column(db.String(20), nullable=False, default=PublicationStatus.ACTIVE.value, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def status_enum(self):
        return PublicationStatus.parse(self.status)

    @property
    def type_enum(self):
        return PublicationType.parse(self.publication_type)

    @property
    def pet_type_enum(self):
        return PetType.parse(self.pet_type)

    @property
    def pet_size_enum(self):
        return PetSize.parse(self.pet_size) if self.pet_size else None

    @property
    def contact_visible(self):
        """Los datos de contacto solo se muestran mientras esta activa"""
        return self.status == PublicationStatus.ACTIVE.value

    @property
    def whatsapp_url(self):
        if not self.contact_phone:
            return None
        digits = re.sub(r'\D', '', self.contact_phone)
        return f'https://api.whatsapp.com/send/?phone={digits}'

    @property
    def cover_image(self):
        return self.images[0] if self.images else None

    def to_card(self):
        """Representacion publica para el directorio (JSON)"""
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'publication_type': self.publication_type,
            'publication_type_label': self.type_enum.label,
            'pet_type': self.pet_type,
            'pet_type_label': self.pet_type_enum.label,
            'pet_size': self.pet_size,
            'pet_size_label': self.pet_size_enum.label if self.pet_size_enum else None,
            'location': self.location,
            'event_date': self.event_date.isoformat() if self.event_date else None,
            'event_date_display': self.event_date.strftime('%d/%m/%Y') if self.event_date else '',
            'images': list(self.images or []),
            'cover_image': self.cover_image,
            'is_urgent': self.is_urgent,
            'status': self.status,
            'status_label': self.status_enum.label,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if self.contact_visible:
            data['contact_phone'] = self.contact_phone
            data['contact_email'] = self.contact_email
        return data

    def __repr__(self):
        return f'<Publication {self.title} - {self.status}>'

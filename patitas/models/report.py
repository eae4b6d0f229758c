# patitas/models/report.py
from patitas import db
from datetime import datetime
import uuid

from patitas.models.enums import ReportReason, ReportStatus


class Report(db.Model):
    __tablename__ = 'reports'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Sin FK: el reporte sobrevive a la publicacion eliminada
    publication_id = db.Column(db.String(36), nullable=False, index=True)
    reporter_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    reason = db.Column(db.String(40), nullable=False)  # contenido_inapropiado, informacion_falsa, spam, otro
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=ReportStatus.PENDING.value, index=True)
    reviewed_by = db.Column(db.String(36))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def reason_enum(self):
        return ReportReason.parse(self.reason)

    @property
    def status_enum(self):
        return ReportStatus.parse(self.status)

    def __repr__(self):
        return f'<Report {self.reason} - {self.status}>'

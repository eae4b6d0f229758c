# patitas/services/moderation.py
"""
Moderacion: reportes de usuarios, acciones de administrador sobre
publicaciones y baneo de cuentas.
"""
import logging
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from patitas import db
from patitas.models import (
    AdminUser, Profile, Publication, Report,
    PublicationStatus, ReportReason, ReportStatus,
)
from patitas.services.errors import NotFound, StorageError, Unauthorized, ValidationError
from patitas.services.storage import ImageStorage
from patitas.utils.pagination import paginate
from patitas.utils.session_context import notify_session_change

logger = logging.getLogger(__name__)

DELETED_PUBLICATION_TITLE = 'Publicación eliminada'
UNKNOWN_REPORTER_NAME = 'Usuario desconocido'

# Los reportes no tienen tabla de transiciones: es una decision humana del
# moderador y cualquier estado puede pasar a cualquier otro.
REPORT_TRANSITIONS_UNRESTRICTED = True


def _commit(action, entity_id):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Error en %s (%s): %s', action, entity_id, e)
        raise StorageError()


class ModerationService:
    """Superficie administrativa sobre reportes, publicaciones y usuarios"""

    PAGE_SIZE = 20

    @staticmethod
    def require_admin(admin_id):
        """Devuelve el AdminUser o lanza Unauthorized"""
        admin = db.session.get(AdminUser, admin_id) if admin_id else None
        if admin is None:
            logger.warning('Accion de moderacion rechazada para %s (no es admin)', admin_id)
            raise Unauthorized('Acceso denegado. Solo administradores.')
        return admin

    @staticmethod
    def _get_publication(publication_id):
        publication = db.session.get(Publication, publication_id)
        if publication is None:
            raise NotFound('La publicación no existe')
        return publication

    @staticmethod
    def _get_profile(user_id):
        profile = db.session.get(Profile, user_id)
        if profile is None:
            raise NotFound('El usuario no existe')
        return profile

    # ── Reportes ─────────────────────────────────────────────────────────

    @staticmethod
    def file_report(publication_id, reporter_id, reason, description=None):
        """
        Registra un reporte de usuario contra una publicacion

        Returns:
            str: ID del reporte creado (estado pending)
        """
        if not reporter_id or db.session.get(Profile, reporter_id) is None:
            raise Unauthorized('Debes iniciar sesión para reportar una publicación')
        ModerationService._get_publication(publication_id)
        reason = ReportReason.parse(reason, field='reason')

        report = Report(
            publication_id=publication_id,
            reporter_id=reporter_id,
            reason=reason.value,
            description=(description or '').strip() or None,
            status=ReportStatus.PENDING.value,
        )
        db.session.add(report)
        _commit('file_report', publication_id)

        logger.info('Reporte %s (%s) sobre %s por %s', report.id, reason.value, publication_id, reporter_id)
        return report.id

    @staticmethod
    def update_report_status(report_id, admin_id, new_status):
        """Cambia el estado de un reporte (cualquier estado -> cualquier estado)"""
        ModerationService.require_admin(admin_id)
        new_status = ReportStatus.parse(new_status, field='status')

        report = db.session.get(Report, report_id)
        if report is None:
            raise NotFound('El reporte no existe')

        previous = report.status
        report.status = new_status.value
        report.reviewed_by = admin_id
        report.updated_at = datetime.utcnow()
        _commit('update_report_status', report_id)

        logger.info('Reporte %s: %s -> %s (admin %s)', report_id, previous, new_status.value, admin_id)
        return report

    @staticmethod
    def resolve_report_entry(report, publications=None, profiles=None):
        """
        Arma la vista de un reporte con su publicacion, su autor y el dueño
        de la publicacion (para banearlo desde la lista de reportes).
        Una publicacion borrada se reemplaza por un marcador y no tiene dueño.
        """
        if publications is None:
            publication = db.session.get(Publication, report.publication_id)
        else:
            publication = publications.get(report.publication_id)
        if profiles is None:
            reporter = db.session.get(Profile, report.reporter_id)
        else:
            reporter = profiles.get(report.reporter_id)

        owner_view = None
        if publication is not None:
            if profiles is None:
                owner = db.session.get(Profile, publication.user_id)
            else:
                owner = profiles.get(publication.user_id)
            if owner is not None:
                owner_view = {
                    'id': owner.id,
                    'full_name': owner.full_name,
                    'banned': owner.banned,
                    'is_admin': owner.is_admin,
                }
            publication_view = {
                'id': publication.id,
                'title': publication.title,
                'status': publication.status,
                'status_label': publication.status_enum.label,
                'user_id': publication.user_id,
                'deleted': False,
            }
        else:
            publication_view = {
                'id': report.publication_id,
                'title': DELETED_PUBLICATION_TITLE,
                'status': None,
                'status_label': 'Eliminada',
                'user_id': None,
                'deleted': True,
            }

        return {
            'report': report,
            'reason_label': report.reason_enum.label,
            'status_label': report.status_enum.label,
            'publication': publication_view,
            'reporter': {
                'id': report.reporter_id,
                'full_name': reporter.full_name if reporter else UNKNOWN_REPORTER_NAME,
            },
            'owner': owner_view,
        }

    @staticmethod
    def get_report(report_id):
        report = db.session.get(Report, report_id)
        if report is None:
            raise NotFound('El reporte no existe')
        return ModerationService.resolve_report_entry(report)

    @staticmethod
    def list_reports(status=None, page=0, per_page=None):
        per_page = per_page or ModerationService.PAGE_SIZE
        query = Report.query
        if status and status != 'all':
            query = query.filter(Report.status == ReportStatus.parse(status, field='status').value)
        query = query.order_by(Report.created_at.desc())

        result = paginate(query, page, per_page)
        reports = result['items']

        publication_ids = {r.publication_id for r in reports}
        publications = {p.id: p for p in Publication.query.filter(Publication.id.in_(publication_ids))} \
            if publication_ids else {}
        # Autores de los reportes y dueños de las publicaciones en una sola consulta
        profile_ids = {r.reporter_id for r in reports} | {p.user_id for p in publications.values()}
        profiles = {p.id: p for p in Profile.query.filter(Profile.id.in_(profile_ids))} \
            if profile_ids else {}

        result['items'] = [
            ModerationService.resolve_report_entry(r, publications, profiles) for r in reports
        ]
        return result

    # ── Publicaciones ────────────────────────────────────────────────────

    @staticmethod
    def force_listing_status(publication_id, admin_id, status):
        """Fija el estado sin validar dueño ni tabla de transiciones"""
        ModerationService.require_admin(admin_id)
        status = PublicationStatus.parse(status, field='status')
        publication = ModerationService._get_publication(publication_id)

        previous = publication.status
        publication.status = status.value
        publication.updated_at = datetime.utcnow()
        _commit('force_listing_status', publication_id)

        logger.info('Publicacion %s: %s -> %s (forzado por admin %s)',
                    publication_id, previous, status.value, admin_id)
        return publication

    @staticmethod
    def delete_listing(publication_id, admin_id, storage=None):
        """Elimina la publicacion; sus reportes quedan huerfanos"""
        ModerationService.require_admin(admin_id)
        publication = ModerationService._get_publication(publication_id)

        db.session.delete(publication)
        _commit('delete_listing', publication_id)

        storage = storage or ImageStorage.from_app()
        removed = storage.delete_publication_images(publication_id)
        logger.info('Publicacion %s eliminada por admin %s (%s imagenes)', publication_id, admin_id, removed)

    @staticmethod
    def get_publication_details(publication_id):
        publication = ModerationService._get_publication(publication_id)
        owner = db.session.get(Profile, publication.user_id)
        report_count = db.session.query(func.count(Report.id)).filter(
            Report.publication_id == publication_id
        ).scalar() or 0

        return {
            'id': publication.id,
            'user_id': publication.user_id,
            'title': publication.title,
            'description': publication.description,
            'pet_type': publication.pet_type,
            'status': publication.status,
            'created_at': publication.created_at,
            'user_full_name': owner.full_name if owner else UNKNOWN_REPORTER_NAME,
            'user_email': owner.email if owner else None,
            'user_phone': owner.phone if owner else None,
            'user_banned': bool(owner and owner.banned),
            'report_count': report_count,
        }

    @staticmethod
    def list_publications(status=None, search=None, page=0, per_page=None):
        per_page = per_page or ModerationService.PAGE_SIZE
        query = Publication.query
        if status and status != 'all':
            query = query.filter(Publication.status == PublicationStatus.parse(status, field='status').value)
        if search:
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(Publication.title.ilike(pattern),
                                     Publication.description.ilike(pattern)))
        return paginate(query.order_by(Publication.created_at.desc()), page, per_page)

    # ── Usuarios ─────────────────────────────────────────────────────────

    @staticmethod
    def ban_user(user_id, admin_id, reason):
        """
        Banea la cuenta y revoca sus sesiones en el mismo commit.
        La proxima validacion de cualquier sesion existente falla.
        """
        ModerationService.require_admin(admin_id)
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError('Debes indicar el motivo del baneo', field='reason')

        profile = ModerationService._get_profile(user_id)
        if profile.id == admin_id:
            raise Unauthorized('No puedes banear tu propia cuenta')
        if profile.is_admin:
            raise Unauthorized('No se puede banear a otro administrador')

        profile.banned = True
        profile.banned_at = datetime.utcnow()
        profile.banned_by = admin_id
        profile.ban_reason = reason
        profile.revoke_sessions()
        _commit('ban_user', user_id)

        logger.warning('Usuario %s baneado por %s: %s', user_id, admin_id, reason)
        notify_session_change('banned', user_id)
        return profile

    @staticmethod
    def unban_user(user_id, admin_id):
        """Quita el baneo; las sesiones anteriores no se restauran"""
        ModerationService.require_admin(admin_id)
        profile = ModerationService._get_profile(user_id)

        profile.banned = False
        profile.banned_at = None
        profile.banned_by = None
        profile.ban_reason = None
        _commit('unban_user', user_id)

        logger.info('Usuario %s desbaneado por %s', user_id, admin_id)
        notify_session_change('unbanned', user_id)
        return profile

    @staticmethod
    def get_user_stats(user_id):
        profile = ModerationService._get_profile(user_id)

        publications_count = db.session.query(func.count(Publication.id)).filter(
            Publication.user_id == user_id
        ).scalar() or 0

        # Reportes recibidos: sobre publicaciones que siguen existiendo
        reports_received_count = db.session.query(func.count(Report.id)).join(
            Publication, Publication.id == Report.publication_id
        ).filter(
            Publication.user_id == user_id
        ).scalar() or 0

        reports_made_count = db.session.query(func.count(Report.id)).filter(
            Report.reporter_id == user_id
        ).scalar() or 0

        return {
            'user_id': profile.id,
            'full_name': profile.full_name,
            'email': profile.email,
            'phone': profile.phone,
            'banned': profile.banned,
            'banned_at': profile.banned_at,
            'ban_reason': profile.ban_reason,
            'publications_count': publications_count,
            'reports_received_count': reports_received_count,
            'reports_made_count': reports_made_count,
            'created_at': profile.created_at,
        }

    @staticmethod
    def list_users(banned=None, search=None, page=0, per_page=None):
        per_page = per_page or ModerationService.PAGE_SIZE
        query = Profile.query.filter(Profile.id.notin_(select(AdminUser.id)))
        if banned is not None:
            query = query.filter(Profile.banned == bool(banned))
        if search:
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(Profile.full_name.ilike(pattern),
                                     Profile.email.ilike(pattern)))
        return paginate(query.order_by(Profile.created_at.desc()), page, per_page)

    # ── Dashboard ────────────────────────────────────────────────────────

    @staticmethod
    def dashboard_stats():
        def count(model, *criteria):
            return db.session.query(func.count(model.id)).filter(*criteria).scalar() or 0

        stats = {
            'total_publications': count(Publication),
            'active_publications': count(Publication, Publication.status == PublicationStatus.ACTIVE.value),
            'total_reports': count(Report),
            'pending_reports': count(Report, Report.status == ReportStatus.PENDING.value),
            'total_users': count(Profile),
        }
        recent_reports = Report.query.order_by(Report.created_at.desc()).limit(5).all()
        recent_publications = Publication.query.order_by(Publication.created_at.desc()).limit(5).all()
        return stats, recent_reports, recent_publications

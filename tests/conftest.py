# tests/conftest.py
"""
Fixtures compartidos para todos los tests de Patitas Conectadas
"""
import os
import pytest
from datetime import date, datetime, timedelta
from io import BytesIO

from flask import g
from werkzeug.datastructures import FileStorage

# Forzar variables de entorno ANTES de importar la app
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing'

from patitas import create_app, db as _db
from patitas.models import AdminUser, Profile, Publication, Report
from patitas.services.errors import StorageError, ValidationError


@pytest.fixture(scope='function')
def app(tmp_path):
    """Crea la aplicacion Flask para tests"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret-key-for-testing',
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'LOG_DIR': str(tmp_path / 'logs'),
    })
    return app


@pytest.fixture(scope='function')
def db(app):
    """Crea y limpia la base de datos para cada test"""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app, db):
    """Cliente HTTP de test"""
    with app.test_client() as client:
        with app.app_context():
            yield client


@pytest.fixture
def app_context(app, db):
    """Contexto de la aplicacion"""
    with app.app_context():
        yield app


@pytest.fixture
def request_context(app, db):
    """Contexto de request (url_for dentro de los servicios)"""
    with app.test_request_context():
        yield app


def create_profile(db, email, full_name, password='Secret123', phone=None, **extra):
    profile = Profile(full_name=full_name, email=email, phone=phone, **extra)
    profile.set_password(password)
    db.session.add(profile)
    db.session.commit()
    return profile


def create_publication(db, owner, **overrides):
    """Helper: crea una publicacion activa con valores por defecto"""
    values = {
        'publication_type': 'found',
        'title': 'Perro encontrado en el parque',
        'description': 'Perro mediano, muy amigable, con collar rojo',
        'pet_type': 'perro',
        'pet_size': 'mediano',
        'location': 'Parque Centenario',
        'event_date': date(2024, 5, 10),
        'images': ['/media/publications/x_0.jpg'],
        'contact_phone': '+54 1123456789',
        'contact_email': None,
        'status': 'active',
        'is_urgent': False,
    }
    values.update(overrides)
    publication = Publication(user_id=owner.id, **values)
    db.session.add(publication)
    db.session.commit()
    return publication


@pytest.fixture
def profile(db):
    """Usuario comun de test"""
    return create_profile(db, 'ana@test.com', 'Ana Pérez', password='AnaPass123', phone='1123456789')


@pytest.fixture
def second_profile(db):
    """Segundo usuario comun"""
    return create_profile(db, 'bruno@test.com', 'Bruno Díaz', password='BrunoPass123')


@pytest.fixture
def admin_user(db):
    """Administrador de test"""
    user = create_profile(db, 'admin@test.com', 'Admin User', password='AdminPass123')
    db.session.add(AdminUser(id=user.id, role='admin'))
    db.session.commit()
    return user


@pytest.fixture
def publication(db, profile):
    """Publicacion activa de `profile`"""
    return create_publication(db, profile)


@pytest.fixture
def report(db, publication, second_profile):
    """Reporte pendiente sobre `publication`"""
    r = Report(
        publication_id=publication.id,
        reporter_id=second_profile.id,
        reason='spam',
        description='Parece publicidad',
        status='pending',
        created_at=datetime.utcnow() - timedelta(minutes=5),
    )
    db.session.add(r)
    db.session.commit()
    return r


def image_file(name='foto.jpg', content=b'fake-image-bytes'):
    return FileStorage(stream=BytesIO(content), filename=name, content_type='image/jpeg')


class FakeStorage:
    """ImageStorage en memoria; `fail_indexes` simula fallos de subida"""

    def __init__(self, fail_indexes=()):
        self.fail_indexes = set(fail_indexes)
        self.saved = {}
        self.deleted = []

    def validate(self, file):
        ext = file.filename.rsplit('.', 1)[-1].lower()
        if ext not in {'jpg', 'jpeg', 'png', 'gif', 'webp'}:
            raise ValidationError('Formato de imagen no permitido', field='images')
        return ext

    def upload(self, publication_id, index, file):
        if index in self.fail_indexes:
            raise StorageError(f'No se pudo guardar la imagen {index + 1}')
        ext = self.validate(file)
        url = f'/media/publications/{publication_id}_{index}.{ext}'
        self.saved[index] = url
        return url

    def delete_publication_images(self, publication_id):
        self.deleted.append(publication_id)
        return 0


def login(client, email, password):
    """Helper para hacer login en los tests"""
    return client.post('/auth/login', data={
        'email': email,
        'password': password,
    }, follow_redirects=True)


def logout(client):
    """Helper para hacer logout"""
    return client.get('/auth/logout', follow_redirects=True)


def forget_loaded_user():
    """
    Olvida el usuario que Flask-Login dejo en `g`.

    El cliente de test comparte el app context entre requests; sin esto el
    request siguiente reutiliza el usuario ya cargado en vez de leerlo de
    las cookies como en produccion.
    """
    g.pop('_login_user', None)
    g.pop('session_context', None)

# tests/test_publishing.py
"""
Tests del alta de publicaciones y la carga de imagenes
"""
import os
import pytest
from datetime import date
from io import BytesIO

from patitas.models import Publication
from patitas.services.errors import NotFound, Unauthorized, ValidationError
from patitas.services.publishing import PublishingService, validate_publication_form
from patitas.services.storage import ImageStorage
from tests.conftest import FakeStorage, create_publication, image_file, login


def _form(**overrides):
    form = {
        'publication_type': 'lost',
        'title': 'Se perdió Michi',
        'description': 'Gata gris con manchas blancas',
        'pet_type': 'gato',
        'pet_size': 'pequeño',
        'location': 'Palermo',
        'event_date': '2024-06-01',
        'contact_phone': '',
        'contact_email': 'Ana@Test.com',
    }
    form.update(overrides)
    return form


class TestValidation:
    """validate_publication_form"""

    def test_valid_form(self):
        values = validate_publication_form(_form(is_urgent='on'), [image_file()])
        assert values['publication_type'] == 'lost'
        assert values['pet_type'] == 'gato'
        assert values['event_date'] == date(2024, 6, 1)
        assert values['contact_email'] == 'ana@test.com'
        assert values['contact_phone'] is None
        assert values['is_urgent'] is True

    def test_no_contact_is_keyed_contact(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(contact_email=''), [image_file()])
        assert exc.value.field == 'contact'
        assert 'contact' in exc.value.errors

    def test_phone_only_is_enough(self):
        values = validate_publication_form(_form(contact_email='', contact_phone='+54 1123456789'),
                                           [image_file()])
        assert values['contact_phone'] == '+54 1123456789'

    def test_invalid_phone_and_email(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(contact_phone='123', contact_email='not-an-email'),
                                      [image_file()])
        assert set(exc.value.errors) >= {'contact_phone', 'contact_email'}

    def test_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form({'contact_email': 'a@b.com'}, [image_file()])
        errors = exc.value.errors
        for field in ('title', 'description', 'pet_type', 'location', 'event_date'):
            assert field in errors

    def test_unknown_enum_values(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(pet_type='hamster', pet_size='gigante',
                                            publication_type='adopcion'), [image_file()])
        assert {'pet_type', 'pet_size', 'publication_type'} <= set(exc.value.errors)

    def test_invalid_date(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(event_date='01/06/2024'), [image_file()])
        assert exc.value.errors['event_date'] == 'Fecha inválida'

    def test_images_required(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(), [image_file(name='')])
        assert 'images' in exc.value.errors

    def test_images_limit(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(), [image_file(f'{i}.jpg') for i in range(6)], max_images=5)
        assert 'máximo 5' in exc.value.errors['images']

    def test_image_extension_checked_by_storage(self):
        with pytest.raises(ValidationError) as exc:
            validate_publication_form(_form(), [image_file('doc.pdf')], storage=FakeStorage())
        assert 'images' in exc.value.errors


class TestCreatePublication:
    """PublishingService.create_publication"""

    def test_email_only_succeeds(self, db, profile):
        storage = FakeStorage()
        result = PublishingService.create_publication(profile.id, _form(), [image_file(), image_file('b.png')],
                                                      storage=storage)
        pub = db.session.get(Publication, result.publication.id)
        assert pub.user_id == profile.id
        assert pub.status == 'active'
        assert pub.contact_phone is None
        assert pub.images == [f'/media/publications/{pub.id}_0.jpg', f'/media/publications/{pub.id}_1.png']
        assert result.failed_images == []

    def test_no_contact_creates_nothing(self, db, profile):
        with pytest.raises(ValidationError) as exc:
            PublishingService.create_publication(profile.id, _form(contact_email=''), [image_file()],
                                                 storage=FakeStorage())
        assert exc.value.field == 'contact'
        assert Publication.query.count() == 0

    def test_partial_upload_failure_keeps_listing(self, db, profile):
        storage = FakeStorage(fail_indexes={1})
        files = [image_file('a.jpg'), image_file('b.jpg'), image_file('c.jpg')]
        result = PublishingService.create_publication(profile.id, _form(), files, storage=storage)

        assert result.failed_images == [1]
        pub = db.session.get(Publication, result.publication.id)
        assert pub is not None
        assert pub.images == [f'/media/publications/{pub.id}_0.jpg', f'/media/publications/{pub.id}_2.jpg']

    def test_all_uploads_fail_keeps_listing(self, db, profile):
        storage = FakeStorage(fail_indexes={0})
        result = PublishingService.create_publication(profile.id, _form(), [image_file()], storage=storage)
        assert result.failed_images == [0]
        assert db.session.get(Publication, result.publication.id).images == []


class TestAddImages:
    """PublishingService.add_images"""

    def test_owner_fills_missing_images(self, db, profile):
        pub = create_publication(db, profile, images=[f'/media/publications/p_0.jpg'])
        result = PublishingService.add_images(pub.id, profile.id, [image_file('x.webp')], storage=FakeStorage())
        assert result.failed_images == []
        assert pub.images[-1] == f'/media/publications/{pub.id}_1.webp'
        assert len(pub.images) == 2

    def test_next_index_after_gap(self, db, profile):
        pub = create_publication(db, profile, images=['/media/publications/p_0.jpg',
                                                      '/media/publications/p_2.jpg'])
        PublishingService.add_images(pub.id, profile.id, [image_file()], storage=FakeStorage())
        assert pub.images[-1].endswith('_3.jpg')

    def test_non_owner_rejected(self, db, publication, second_profile):
        with pytest.raises(Unauthorized):
            PublishingService.add_images(publication.id, second_profile.id, [image_file()],
                                         storage=FakeStorage())

    def test_limit_counts_existing_images(self, db, profile):
        pub = create_publication(db, profile, images=[f'/media/publications/p_{i}.jpg' for i in range(4)])
        with pytest.raises(ValidationError):
            PublishingService.add_images(pub.id, profile.id, [image_file('a.jpg'), image_file('b.jpg')],
                                         storage=FakeStorage(), max_images=5)

    def test_empty_selection(self, db, publication, profile):
        with pytest.raises(ValidationError):
            PublishingService.add_images(publication.id, profile.id, [], storage=FakeStorage())

    def test_missing_publication(self, db, profile):
        with pytest.raises(NotFound):
            PublishingService.add_images('nope', profile.id, [image_file()], storage=FakeStorage())


class TestImageStorage:
    """Almacenamiento local de imagenes"""

    def test_upload_and_delete(self, request_context):
        storage = ImageStorage.from_app()
        url = storage.upload('pub-1', 0, image_file('Foto.JPG'))
        assert url == '/media/publications/pub-1_0.jpg'
        assert os.path.exists(storage.path_for('publications/pub-1_0.jpg'))

        storage.upload('pub-1', 1, image_file('otra.png'))
        storage.upload('pub-2', 0, image_file('otra.png'))
        assert storage.delete_publication_images('pub-1') == 2
        assert os.path.exists(storage.path_for('publications/pub-2_0.png'))

    def test_rejects_extension(self, request_context):
        with pytest.raises(ValidationError):
            ImageStorage.from_app().upload('pub-1', 0, image_file('script.exe'))

    def test_build_key(self):
        assert ImageStorage.build_key('abc', 3, 'png') == 'publications/abc_3.png'

    def test_delete_without_folder(self, tmp_path):
        storage = ImageStorage(str(tmp_path / 'empty'), {'jpg'})
        assert storage.delete_publication_images('x') == 0


class TestPublishRoutes:
    """Formulario /publicar"""

    def test_requires_login(self, client):
        resp = client.get('/publicar')
        assert resp.status_code == 302
        assert '/auth/login' in resp.headers['Location']

    def test_form_renders(self, client, profile):
        login(client, 'ana@test.com', 'AnaPass123')
        resp = client.get('/publicar')
        assert resp.status_code == 200
        assert 'data-disable-on-submit' in resp.data.decode('utf-8')

    def test_publish_with_images(self, client, db, profile):
        login(client, 'ana@test.com', 'AnaPass123')
        data = _form()
        data['images'] = [(BytesIO(b'img-1'), 'a.jpg'), (BytesIO(b'img-2'), 'b.png')]
        resp = client.post('/publicar', data=data, content_type='multipart/form-data')
        assert resp.status_code == 302

        pub = Publication.query.one()
        assert resp.headers['Location'].endswith(f'/publicacion/{pub.id}')
        assert len(pub.images) == 2

        media = client.get(pub.images[0])
        assert media.status_code == 200
        assert media.data == b'img-1'

    def test_missing_contact_rerenders_with_error(self, client, db, profile):
        login(client, 'ana@test.com', 'AnaPass123')
        data = _form(contact_email='')
        data['images'] = [(BytesIO(b'img'), 'a.jpg')]
        resp = client.post('/publicar', data=data, content_type='multipart/form-data')
        assert resp.status_code == 400
        assert 'al menos un método de contacto' in resp.data.decode('utf-8')
        assert Publication.query.count() == 0

    def test_owner_adds_images(self, client, db, profile, publication):
        login(client, 'ana@test.com', 'AnaPass123')
        resp = client.post(f'/publicacion/{publication.id}/imagenes',
                           data={'images': [(BytesIO(b'more'), 'more.jpg')]},
                           content_type='multipart/form-data', follow_redirects=True)
        assert 'Imágenes agregadas' in resp.data.decode('utf-8')
        assert len(db.session.get(Publication, publication.id).images) == 2

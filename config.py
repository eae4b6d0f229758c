import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

# Diretorio base del proyecto
basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-in-production'

    # Base de datos - ruta absoluta
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'patitas.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sesiones
    REMEMBER_COOKIE_DURATION = timedelta(days=int(os.environ.get('REMEMBER_COOKIE_DAYS', '14')))
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() in ['true', '1', 'on']

    # Imagenes
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'instance', 'uploads')
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25 MB por request
    MAX_IMAGES_PER_PUBLICATION = 5
    ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}

    # Paginacion
    DIRECTORY_PAGE_SIZE = 12
    ADMIN_PAGE_SIZE = 20

    # Logs
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(basedir, 'logs')

    # App
    SITE_NAME = 'Patitas Conectadas'
    SUPPORT_EMAIL = os.environ.get('SUPPORT_EMAIL', 'soporte@patitasconectadas.com')

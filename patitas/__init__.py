# patitas/__init__.py
import logging
import os

from flask import Flask, render_template
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_cors import CORS

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def configure_logging(app):
    """Configura handlers de log de la aplicacion"""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    root = logging.getLogger('patitas')
    root.setLevel(level)

    if not root.handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

        # En tests no se escribe a disco
        if not app.config.get('TESTING'):
            log_dir = app.config.get('LOG_DIR', 'logs')
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_dir, 'patitas.log'))
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app)

    # Inicializar extensiones
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    CORS(app)

    # Configurar login
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Debes iniciar sesión para acceder a esta página.'
    login_manager.login_message_category = 'error'

    # Importar modelos y configurar user_loader
    from patitas.models.profile import load_profile_from_session
    login_manager.user_loader(load_profile_from_session)

    # Registrar blueprints
    from patitas.routes import auth, public, publications, admin
    app.register_blueprint(auth.bp)
    app.register_blueprint(public.bp)
    app.register_blueprint(publications.bp)
    app.register_blueprint(admin.bp)

    # Ban-gate en cada request y contexto de sesion para los templates
    from patitas.utils.session_context import enforce_ban_gate, inject_session_context
    from patitas.utils.context_processor import inject_global_vars
    app.before_request(enforce_ban_gate)
    app.context_processor(inject_session_context)
    app.context_processor(inject_global_vars)

    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        logging.getLogger('patitas').error('Error interno: %s', getattr(error, 'original_exception', error))
        return render_template('errors/500.html'), 500

    # Crear directorios necesarios
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.instance_path, exist_ok=True)

    return app

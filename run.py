from patitas import create_app, db
import os

app = create_app()

@app.shell_context_processor
def make_shell_context():
    from patitas.models import Profile, AdminUser, Publication, Report

    return {'db': db, 'Profile': Profile, 'AdminUser': AdminUser,
            'Publication': Publication, 'Report': Report}

if __name__ == '__main__':
    with app.app_context():
        os.makedirs(app.instance_path, exist_ok=True)
        print(f"Base de datos: {app.config['SQLALCHEMY_DATABASE_URI']}")

        db.create_all()
        print("Tablas creadas/actualizadas")

    debug = os.environ.get('FLASK_DEBUG', 'False').lower() in ['true', '1', 'on']
    print(f"Patitas Conectadas en http://localhost:5000 (debug={debug})")
    app.run(debug=debug, host='0.0.0.0', port=5000)

"""
Otorga el rol de administrador a una cuenta existente
Ejecutar: python create_admin.py email@ejemplo.com [admin|moderator]
"""
import sys

from patitas import create_app, db
from patitas.models import AdminRole, AdminUser, Profile
from patitas.services.errors import ValidationError


def grant_admin(email, role='admin'):
    app = create_app()

    with app.app_context():
        db.create_all()
        try:
            role = AdminRole.parse(role)
        except ValidationError:
            print(f"Rol inválido: {role}. Usa: {', '.join(AdminRole.values())}")
            return 1

        profile = Profile.query.filter_by(email=email.strip().lower()).first()
        if not profile:
            print(f"No existe una cuenta con el email {email}")
            print("Registra la cuenta primero en /auth/sign-up")
            return 1

        admin = db.session.get(AdminUser, profile.id)
        if admin:
            admin.role = role.value
            print(f"{profile.full_name} ya era administrador; rol actualizado a {role.label}")
        else:
            db.session.add(AdminUser(id=profile.id, role=role.value))
            print(f"{profile.full_name} ahora es {role.label}")
        db.session.commit()
        return 0


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    sys.exit(grant_admin(sys.argv[1], *sys.argv[2:3]))

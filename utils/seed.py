from models.user import Role

DEFAULT_ROLES = ["PLAYER", "STAFF", "ADMIN", "SUPER_ADMIN"]

def seed_roles(session):
    existing = {r.name for r in session.query(Role).all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            session.add(Role(name=name))
    session.commit()

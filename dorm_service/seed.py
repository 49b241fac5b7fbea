"""
Seed the default administrator.

Creates admin@local / Admin123! if it does not exist yet.

Run with: dorm-seed  (or python -m dorm_service.seed)
"""
import structlog
from sqlalchemy.orm import Session

from .config import settings
from .domain.entities import Role
from .domain.errors import Conflict
from .infrastructure.db import SessionLocal, engine
from .infrastructure.models import Base
from .infrastructure.repositories import UserRepository
from .infrastructure.security import PasswordHasher

logger = structlog.get_logger()

ADMIN_EMAIL = "admin@local"
ADMIN_NAME = "Admin"
ADMIN_PASSWORD = "Admin123!"


def seed_admin(db: Session, hasher: PasswordHasher) -> bool:
    """Returns True when the admin was created, False when it already existed."""
    repo = UserRepository(db)
    if repo.get_by_email(ADMIN_EMAIL):
        return False
    try:
        repo.create(ADMIN_EMAIL, ADMIN_NAME, hasher.hash(ADMIN_PASSWORD), Role.admin)
    except Conflict:
        # другой воркер успел раньше
        return False
    logger.info("admin_seeded", email=ADMIN_EMAIL)
    return True


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_admin(db, PasswordHasher(settings.BCRYPT_ROUNDS))
    finally:
        db.close()


if __name__ == "__main__":
    main()

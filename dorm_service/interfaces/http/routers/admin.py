import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.use_cases.create_user import CreateUser
from ....domain.entities import Identity
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher
from ..authz import get_hasher, require_admin
from ..schemas import UserCreate, UserOut

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/users", response_model=UserOut)
def create_user(
    payload: UserCreate,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
):
    uc = CreateUser(repo=UserRepository(db), hasher=hasher)
    user = uc.execute(payload.email, payload.name, payload.password, payload.role)
    logger.info("user_created", user_id=user.id, role=user.role.value, by=admin.user_id)
    # UserOut не содержит пароля
    return user

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ....application.use_cases.authenticate import Authenticate
from ....config import settings
from ....domain.entities import Identity
from ....domain.errors import InvalidCredentials, Unauthorized
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, TokenService
from ..authz import get_hasher, get_identity, get_tokens
from ..ratelimit import limiter
from ..schemas import LoginReq, TokenResp, UserOut

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResp)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenService = Depends(get_tokens),
):
    uc = Authenticate(repo=UserRepository(db), hasher=hasher, tokens=tokens)
    try:
        token, user = uc.execute(payload.email, payload.password)
    except InvalidCredentials:
        logger.info("login_failed", email=payload.email)
        raise
    return TokenResp(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    user = UserRepository(db).get(identity.user_id)
    if not user:
        # подписанный токен, но пользователя уже нет
        raise Unauthorized()
    return user

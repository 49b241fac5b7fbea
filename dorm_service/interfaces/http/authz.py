from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from ...domain.entities import Identity, Role, STAFF_ROLES
from ...domain.errors import Forbidden, Unauthorized
from ...infrastructure.security import PasswordHasher, TokenService

# auto_error=False: a missing header is a 401 here, not HTTPBearer's 403
bearer = HTTPBearer(auto_error=False)


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_identity(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    tokens: TokenService = Depends(get_tokens),
) -> Identity:
    if creds is None or not creds.credentials:
        raise Unauthorized()
    try:
        return tokens.verify(creds.credentials)
    except JWTError:
        raise Unauthorized()


def require_roles(*roles: Role):
    allowed = frozenset(roles)

    def dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise Forbidden()
        return identity

    return dependency


require_admin = require_roles(Role.admin)
require_staff = require_roles(*STAFF_ROLES)

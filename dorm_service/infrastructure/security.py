from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from passlib.context import CryptContext

from ..domain.entities import Identity, Role


class PasswordHasher:
    def __init__(self, rounds: int = 10):
        self.pwd = CryptContext(
            schemes=["bcrypt_sha256"],
            deprecated="auto",
            bcrypt_sha256__default_rounds=rounds,
        )

    def hash(self, plain: str) -> str: return self.pwd.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool: return self.pwd.verify(plain, hashed)

    def dummy_verify(self) -> None:
        """Burn the same time as a real verify when the account does not exist."""
        self.pwd.dummy_verify()


class TokenService:
    """Issues and verifies signed access tokens.

    Secret, algorithm and lifetime are resolved once at start-up and passed in.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", lifetime: timedelta = timedelta(days=7)):
        if not secret:
            raise ValueError("token secret is required")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user_id: int, role: Role, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "email": email,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        """Возвращает Identity из токена или кидает JWTError."""
        payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        try:
            return Identity(
                user_id=int(payload["sub"]),
                role=Role(payload["role"]),
                email=str(payload["email"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise JWTError(f"Malformed claims: {e}")

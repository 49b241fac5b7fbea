from ...domain.entities import User, Role
from ...domain.errors import InvalidCredentials


class ICredentialsRepository:
    def get_password_hash(self, email: str) -> tuple[User, str] | None: ...


class IPasswordVerifier:
    def verify(self, plain: str, hashed: str) -> bool: ...
    def dummy_verify(self) -> None: ...


class ITokenIssuer:
    def issue(self, user_id: int, role: Role, email: str) -> str: ...


class Authenticate:
    """Checks an email/password pair and issues an access token.

    Unknown email and wrong password are indistinguishable to the caller.
    """

    def __init__(self, repo: ICredentialsRepository, hasher: IPasswordVerifier, tokens: ITokenIssuer):
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens

    def execute(self, email: str, password: str) -> tuple[str, User]:
        found = self.repo.get_password_hash(email)
        if found is None:
            self.hasher.dummy_verify()
            raise InvalidCredentials()
        user, pwd_hash = found
        if not self.hasher.verify(password, pwd_hash):
            raise InvalidCredentials()
        return self.tokens.issue(user.id, user.role, user.email), user

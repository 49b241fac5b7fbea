from ...domain.entities import User, Role
from ...domain.errors import Conflict


class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def create(self, email: str, name: str, password_hash: str, role: Role = Role.student) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...


class CreateUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, email: str, name: str, password: str, role: Role) -> User:
        if self.repo.get_by_email(email):
            raise Conflict("email_taken")
        pwd_hash = self.hasher.hash(password)
        return self.repo.create(email, name, pwd_hash, role)

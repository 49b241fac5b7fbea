import os
from pathlib import Path
from typing import Optional

DEFAULT_TOKEN_FILE = Path.home() / ".dorm" / "token"


class TokenStore:
    """Keeps the session token on disk between invocations.

    Location: $DORM_TOKEN_FILE, else ~/.dorm/token
    """

    def __init__(self, path: Optional[Path] = None):
        env_path = os.environ.get("DORM_TOKEN_FILE")
        self.path = Path(path or env_path or DEFAULT_TOKEN_FILE)

    def get(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: Optional[str]) -> None:
        if not token:
            self.clear()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # только владелец, ещё до записи токена
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            os.fchmod(f.fileno(), 0o600)
            f.write(token)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

class DomainError(Exception):
    """Business rule violation with a machine-readable tag and an HTTP status."""
    status_code = 400
    code = "bad_request"

    def __init__(self, code: str | None = None):
        if code is not None:
            self.code = code
        super().__init__(self.code)


class InvalidCredentials(DomainError):
    status_code = 401
    code = "invalid_credentials"


class Unauthorized(DomainError):
    status_code = 401
    code = "unauthorized"


class Forbidden(DomainError):
    status_code = 403
    code = "forbidden"


class NotFound(DomainError):
    status_code = 404
    code = "not_found"


class Conflict(DomainError):
    status_code = 409
    code = "conflict"

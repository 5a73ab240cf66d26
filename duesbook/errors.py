class DuesbookError(Exception):
    """Base for errors that are reported to the client as-is."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(DuesbookError):
    status_code = 400


class DuplicateIdentity(DuesbookError):
    status_code = 400


class AuthFailed(DuesbookError):
    status_code = 401


class Forbidden(DuesbookError):
    status_code = 403

class ReIndexError(Exception):
    """Base class for the publishing domain errors."""

    status_code = 400


class NotEnoughPrivilegesError(ReIndexError):
    status_code = 403

    def __init__(self, message: str = "Not enough privileges or incompatible state."):
        super().__init__(message)


class UserMismatchError(ReIndexError):
    status_code = 409


class InvalidFieldError(ReIndexError):
    status_code = 400


class DocumentNotFoundError(ReIndexError):
    status_code = 404

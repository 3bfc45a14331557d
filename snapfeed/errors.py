class SnapFeedError(Exception):
    status_code = 400


class InvalidArgumentError(SnapFeedError):
    status_code = 400


class InvalidCredentialsError(SnapFeedError):
    status_code = 401

    def __init__(self, message="Invalid email or password"):
        super().__init__(message)


class NotFoundError(SnapFeedError):
    status_code = 404


class ConflictError(SnapFeedError):
    status_code = 409


class MediaStorageError(SnapFeedError):
    status_code = 503

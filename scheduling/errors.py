class BookingError(Exception):
    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        out = {"error": self.message}
        out.update(self.details)
        return out


class ValidationError(BookingError):
    status_code = 400


class ForbiddenError(BookingError):
    status_code = 403


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class StorageError(BookingError):
    # Transient store failure; the whole operation may be retried
    status_code = 503

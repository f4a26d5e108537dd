class TripMuseError(Exception):
    """Base error for the trip engine."""

    code = "INTERNAL_ERROR"
    status_code = 500


class NotFoundError(TripMuseError):
    code = "NOT_FOUND"
    status_code = 404


class BadRequestError(TripMuseError):
    code = "BAD_REQUEST"
    status_code = 400


class StorageError(TripMuseError):
    """Device or media I/O failed."""

    code = "STORAGE_ERROR"
    status_code = 500


class ExternalServiceError(TripMuseError):
    """Geocoder or remote album API failed."""

    code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502

import secrets
import string

TRIP_ID_PREFIX = "trip"
_ALPHABET = string.ascii_lowercase + string.digits


def new_trip_id(length: int = 12) -> str:
    """Opaque id for one detection run's trip; never reused across runs."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{TRIP_ID_PREFIX}_{suffix}"

from typing import Optional

from fastapi import Header

from core.exceptions import BadRequestError


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> int:
    # Authentication lives in front of this service; it forwards the user id.
    if x_user_id is None or not x_user_id.strip().isdigit():
        raise BadRequestError("X-User-Id header is required")
    return int(x_user_id)

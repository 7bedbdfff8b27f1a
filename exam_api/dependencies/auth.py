"""Identity dependencies for FastAPI.

Authentication happens upstream; the gateway forwards the resolved user id
in a request header.
"""
from typing import Annotated

from fastapi import Header, HTTPException, status

from exam_api.config import USER_ID_HEADER
from exam_api.utils import validate_id


async def get_current_user_id(
    user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """Get the id of the current user.

    Raises:
        HTTPException: 401 if the identity header is missing or blank.
    """
    if user_id is None or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return validate_id("userId", user_id)

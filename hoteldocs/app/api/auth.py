"""Minimal auth dependency for the hotel-admin endpoints.

Stub implementation that extracts hotel_id/admin_id from a bearer token or
uses development defaults. Token issuance and verification belong to the
external identity provider.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from hoteldocs.app.db.context import HotelContext

DEV_HOTEL_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEV_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> HotelContext:
    """Extract hotel context from the authorization header.

    Accepts "Bearer <hotel_id>:<admin_id>". Without a header the
    development context is returned.

    Args:
        authorization: Authorization header (e.g., "Bearer <token>")

    Returns:
        HotelContext with hotel_id and admin_id

    Raises:
        HTTPException: If authorization is invalid
    """
    if not authorization:
        return HotelContext(hotel_id=DEV_HOTEL_ID, admin_id=DEV_ADMIN_ID)

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]  # Strip "Bearer "

    if ":" in token:
        try:
            hotel_id_str, admin_id_str = token.split(":", 1)
            return HotelContext(
                hotel_id=uuid.UUID(hotel_id_str),
                admin_id=uuid.UUID(admin_id_str),
            )
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token format (expected hotel_id:admin_id)",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid bearer token",
        headers={"WWW-Authenticate": "Bearer"},
    )

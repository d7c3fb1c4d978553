"""Request context for hotel-scope enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class HotelContext:
    """Authenticated hotel admin identity.

    Used to enforce hotel scoping in all document operations.
    """

    hotel_id: UUID
    admin_id: UUID

"""Domain model for festivals and their sessions."""

from __future__ import annotations

from .enums import CardType, parse_card_type
from .session import (
    DESCRIPTIVE_FIELDS,
    IDENTITY_FIELDS,
    UPDATABLE_FIELDS,
    Booking,
    ExistingSession,
    Festival,
    SessionRecord,
    composite_key,
    normalize_key_part,
)

__all__ = [
    "DESCRIPTIVE_FIELDS",
    "IDENTITY_FIELDS",
    "UPDATABLE_FIELDS",
    "Booking",
    "CardType",
    "ExistingSession",
    "Festival",
    "SessionRecord",
    "composite_key",
    "normalize_key_part",
    "parse_card_type",
]

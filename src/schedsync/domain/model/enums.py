"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CardType(StrEnum):
    """How a session is rendered on the public schedule."""

    SIMPLIFIED = "simplified"
    PHOTO = "photo"
    FULL = "full"


_CARD_TYPE_ALIASES: dict[str, CardType] = {
    "simplified": CardType.SIMPLIFIED,
    "minimal": CardType.SIMPLIFIED,
    "simple": CardType.SIMPLIFIED,
    "photo": CardType.PHOTO,
    "photo-only": CardType.PHOTO,
    "photo_only": CardType.PHOTO,
    "full": CardType.FULL,
    "detailed": CardType.FULL,
}


def parse_card_type(value: str | None) -> CardType:
    """Map a free-form card type onto the fixed variant set (unknown -> full)."""

    if value is None:
        return CardType.FULL
    return _CARD_TYPE_ALIASES.get(value.strip().lower(), CardType.FULL)

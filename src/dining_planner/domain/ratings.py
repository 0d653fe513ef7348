"""Food rating domain models."""

from enum import StrEnum


class Rating(StrEnum):
    """A user's opinion of a food; NEUTRAL means nothing is stored."""

    LIKE = "like"
    DISLIKE = "dislike"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, raw: str | None) -> "Rating":
        """Parse a stored or requested rating, mapping empty values to NEUTRAL."""
        if raw is None:
            return cls.NEUTRAL
        cleaned = raw.strip().lower()
        if not cleaned:
            return cls.NEUTRAL
        return cls(cleaned)


def toggle_rating(current: Rating, requested: Rating) -> Rating:
    """Apply a rating action: repeating the stored rating clears it."""
    if requested is Rating.NEUTRAL or requested is current:
        return Rating.NEUTRAL
    return requested

"""Global enums — values are the wire/storage representation."""

from enum import Enum


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"

    @property
    def opposite(self) -> "Outcome":
        return Outcome.NO if self is Outcome.YES else Outcome.YES


class MarketStatus(str, Enum):
    """active -> resolved -> settled, or active -> cancelled. Never reversed."""
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    SETTLED = "SETTLED"
    CANCELLED = "CANCELLED"

"""Data models for market data."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class PriceUpdate:
    """Immutable snapshot of a single instrument's price at a point in time."""

    instrument: str
    price: float
    refresh_time: datetime  # Always timezone-aware

    def __post_init__(self) -> None:
        if self.refresh_time.tzinfo is None or self.refresh_time.utcoffset() is None:
            raise ValueError("refresh_time must be timezone-aware")

    def changed_from(self, other: PriceUpdate | None) -> bool:
        """True when the price differs from ``other``. Refresh time is ignored."""
        if other is None:
            return True
        return self.price != other.price

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON / cache / SSE transmission."""
        return {
            "instrument": self.instrument,
            "price": self.price,
            "refresh_time": self.refresh_time.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PriceUpdate:
        """Inverse of to_dict(). Raises KeyError/TypeError/ValueError on bad input."""
        return cls(
            instrument=str(data["instrument"]),
            price=float(data["price"]),
            refresh_time=datetime.fromisoformat(data["refresh_time"]),
        )

    @classmethod
    def now(cls, instrument: str, price: float) -> PriceUpdate:
        return cls(instrument=instrument, price=price, refresh_time=datetime.now(timezone.utc))

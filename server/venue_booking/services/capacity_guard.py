"""Venue capacity validation."""

from typing import Optional, Protocol

from ..core.exceptions import CapacityExceededError


class HasCapacity(Protocol):
    capacity_banquet: Optional[int]
    capacity_theater: Optional[int]
    capacity_reception: Optional[int]
    capacity_ushape: Optional[int]


def max_capacity(venue: HasCapacity) -> int:
    """Largest capacity across all layouts; unset layouts count as 0."""
    return max(
        venue.capacity_banquet or 0,
        venue.capacity_theater or 0,
        venue.capacity_reception or 0,
        venue.capacity_ushape or 0,
    )


def check_capacity(venue: HasCapacity, requested_guest_count: int, allow_override: bool) -> int:
    """
    Validate a guest count against the venue's capacity.

    A venue with no capacity configured never rejects a request.

    Args:
        venue: Venue (or anything exposing the four capacity fields)
        requested_guest_count: Number of guests requested
        allow_override: Hotel policy allowing bookings above capacity

    Returns:
        The venue's maximum capacity (0 when unconfigured)

    Raises:
        CapacityExceededError: If the guest count is above capacity and override is disabled
    """
    limit = max_capacity(venue)
    if limit == 0:
        return limit

    if requested_guest_count > limit and not allow_override:
        venue_id = getattr(venue, "id", None)
        raise CapacityExceededError(
            requested=requested_guest_count,
            max_capacity=limit,
            venue_id=str(venue_id) if venue_id else None,
        )

    return limit

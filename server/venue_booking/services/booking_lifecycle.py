"""Booking status state machine.

Role-agnostic: callers gate transitions through the request's
BookingPermissions before asking this module whether a move is legal.
"""

from collections.abc import Sequence
from typing import Optional
from uuid import UUID

from ..core.exceptions import InvalidTransitionError
from ..models.booking import Booking, BookingStatus

S = BookingStatus

TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED})

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    S.INQUIRY: frozenset({S.TENTATIVE, S.CONFIRMED, S.CANCELLED}),
    S.TENTATIVE: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.EXECUTED, S.CANCELLED}),
    # Cancellation stays reachable from every non-terminal status
    S.EXECUTED: frozenset({S.COMPLETED, S.CANCELLED}),
    # Leaving CONFLICT always takes explicit staff action
    S.CONFLICT: frozenset({S.TENTATIVE, S.CANCELLED}),
    S.WAITLIST: frozenset({S.TENTATIVE, S.CONFIRMED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}


def allowed_transitions(current: str) -> list[str]:
    """Statuses reachable from ``current``, sorted for stable messages."""
    return sorted(status.value for status in ALLOWED_TRANSITIONS[BookingStatus(current)])


def is_terminal(status: str) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def validate_transition(
    current: str,
    requested: str,
    booking_id: Optional[UUID] = None,
) -> BookingStatus:
    """
    Check that ``current -> requested`` is a legal move.

    Returns:
        The requested status as a BookingStatus

    Raises:
        InvalidTransitionError: If the move is not in the transition table
    """
    current_status = BookingStatus(current)
    requested_status = BookingStatus(requested)

    if requested_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransitionError(
            current_status=current_status.value,
            requested_status=requested_status.value,
            allowed_transitions=allowed_transitions(current_status),
            booking_id=str(booking_id) if booking_id else None,
        )

    return requested_status


def initial_status(conflicts: Sequence[Booking]) -> tuple[BookingStatus, Optional[UUID]]:
    """Status and conflict link for a newly created booking."""
    if conflicts:
        return BookingStatus.CONFLICT, conflicts[0].id
    return BookingStatus.INQUIRY, None


def rescheduled_status(
    current: str,
    current_conflict_id: Optional[UUID],
    conflicts: Sequence[Booking],
) -> tuple[BookingStatus, Optional[UUID]]:
    """
    Status and conflict link after a booking's time range changed.

    Any collision forces CONFLICT. A CONFLICT booking whose collisions are
    gone falls back to INQUIRY; its status before the conflict is not
    tracked, so it is never restored.
    """
    current_status = BookingStatus(current)

    if conflicts:
        return BookingStatus.CONFLICT, conflicts[0].id
    if current_status == BookingStatus.CONFLICT:
        return BookingStatus.INQUIRY, None
    return current_status, current_conflict_id


def apply_status(booking: Booking, status: BookingStatus, conflict_id: Optional[UUID] = None) -> None:
    """Write a status onto a booking, keeping the conflict link only while in CONFLICT."""
    booking.status = status
    booking.conflict_id = conflict_id if status == BookingStatus.CONFLICT else None

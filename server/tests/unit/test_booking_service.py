"""Unit tests for the booking service."""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from venue_booking.core.context import RequestContext, Role
from venue_booking.core.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from venue_booking.models import AuditLogEntry, Booking, BookingStatus, Hotel, TaxStrategy
from venue_booking.schemas.booking import (
    CancelBookingRequest,
    ChangeStatusRequest,
    CreateBookingRequest,
    DeleteBookingRequest,
    GetBookingRequest,
    ListBookingsRequest,
    PublicBookingRequest,
    RescheduleBookingRequest,
)


async def _count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar()


async def _confirm(booking_service, ctx, booking_id):
    return await booking_service.change_status(
        ChangeStatusRequest(booking_id=booking_id, status=BookingStatus.CONFIRMED), ctx
    )


@pytest.mark.asyncio
async def test_create_booking_starts_as_inquiry(booking_service, booking_payload, admin_ctx, hotel, at):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)

    assert booking.status == BookingStatus.INQUIRY
    assert booking.conflict_id is None
    assert booking.hotel_id == hotel.id
    assert booking.created_by_id == "admin-1"
    assert booking.assigned_to_id == "admin-1"
    assert booking.guaranteed_pax == 120
    assert booking.event_date == at(10).date()
    assert booking.is_public_booking is False
    assert re.fullmatch(r"BK-[A-Z0-9]{6}", booking.booking_number)


@pytest.mark.asyncio
async def test_create_booking_freezes_pricing(booking_service, booking_payload, admin_ctx):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)

    assert booking.base_price == Decimal("1000.00")
    assert booking.service_charge == Decimal("100.00")
    assert booking.vat == Decimal("150.00")
    assert booking.total_amount == Decimal("1250.00")
    assert booking.currency == "USD"
    assert booking.vat_rate_snapshot == Decimal("15.00")
    assert booking.service_charge_rate_snapshot == Decimal("10.00")
    assert booking.tax_strategy_snapshot == TaxStrategy.STANDARD


@pytest.mark.asyncio
async def test_compound_hotel_taxes_service_charge(
    booking_service, hotel_factory, venue_factory, customer_factory, at
):
    hotel = await hotel_factory(tax_strategy=TaxStrategy.COMPOUND)
    venue = await venue_factory(hotel)
    customer = await customer_factory(hotel)
    ctx = RequestContext.build(user_id="admin-c", role=Role.HOTEL_ADMIN, hotel_id=hotel.id)

    booking = await booking_service.create_booking(
        CreateBookingRequest(
            venue_id=venue.id,
            customer_id=customer.id,
            event_name="Board dinner",
            start_time=at(18),
            end_time=at(22),
            guest_count=40,
        ),
        ctx,
    )

    assert booking.vat == Decimal("165.00")
    assert booking.total_amount == Decimal("1265.00")


@pytest.mark.asyncio
async def test_base_price_override_is_used(booking_service, booking_payload, admin_ctx):
    booking = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(base_price_override=Decimal("0"))), admin_ctx
    )

    assert booking.base_price == Decimal("0")
    assert booking.total_amount == Decimal("0")


@pytest.mark.asyncio
async def test_aware_times_are_stored_as_utc(booking_service, booking_payload, admin_ctx):
    plus_two = timezone(timedelta(hours=2))
    start = datetime(2030, 6, 3, 12, 0, tzinfo=plus_two)
    end = datetime(2030, 6, 3, 16, 0, tzinfo=plus_two)

    booking = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=start, end=end)), admin_ctx
    )

    assert booking.start_time == datetime(2030, 6, 3, 10, 0)
    assert booking.end_time == datetime(2030, 6, 3, 14, 0)


@pytest.mark.asyncio
async def test_capacity_exceeded_rejects_and_persists_nothing(
    booking_service, booking_payload, admin_ctx, test_session
):
    with pytest.raises(CapacityExceededError) as exc_info:
        await booking_service.create_booking(CreateBookingRequest(**booking_payload(guest_count=250)), admin_ctx)

    assert exc_info.value.requested == 250
    assert exc_info.value.max_capacity == 200
    assert exc_info.value.problem_details["excess"] == 50
    assert await _count(test_session, Booking) == 0


@pytest.mark.asyncio
async def test_capacity_override_allows_large_party(
    booking_service, hotel_factory, venue_factory, customer_factory, at
):
    hotel = await hotel_factory(allow_capacity_override=True)
    venue = await venue_factory(hotel)
    customer = await customer_factory(hotel)
    ctx = RequestContext.build(user_id="admin-o", role=Role.HOTEL_ADMIN, hotel_id=hotel.id)

    booking = await booking_service.create_booking(
        CreateBookingRequest(
            venue_id=venue.id,
            customer_id=customer.id,
            event_name="Conference",
            start_time=at(9),
            end_time=at(17),
            guest_count=250,
        ),
        ctx,
    )

    assert booking.guest_count == 250
    assert booking.status == BookingStatus.INQUIRY


@pytest.mark.asyncio
async def test_overlapping_booking_is_marked_conflict(booking_service, booking_payload, admin_ctx, at):
    first = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    first_id = first.id
    await _confirm(booking_service, admin_ctx, first_id)

    second = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(13), end=at(16))), admin_ctx
    )

    assert second.status == BookingStatus.CONFLICT
    assert second.conflict_id == first_id


@pytest.mark.asyncio
async def test_inquiries_do_not_block_each_other(booking_service, booking_payload, admin_ctx, at):
    await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)

    second = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(12), end=at(15))), admin_ctx
    )

    assert second.status == BookingStatus.INQUIRY


@pytest.mark.asyncio
async def test_back_to_back_bookings_do_not_conflict(
    booking_service, booking_payload, admin_ctx, venue, customer, booking_factory, at
):
    await booking_factory(venue, customer, at(10), at(14), BookingStatus.CONFIRMED)

    booking = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(14), end=at(16))), admin_ctx
    )

    assert booking.status == BookingStatus.INQUIRY


@pytest.mark.asyncio
async def test_reschedule_out_of_conflict_returns_to_inquiry(
    booking_service, booking_payload, admin_ctx, venue, customer, booking_factory, at
):
    await booking_factory(venue, customer, at(10), at(14), BookingStatus.CONFIRMED)
    conflicted = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(13), end=at(16))), admin_ctx
    )
    assert conflicted.status == BookingStatus.CONFLICT

    moved = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=conflicted.id, start_time=at(15), end_time=at(17)), admin_ctx
    )

    assert moved.status == BookingStatus.INQUIRY
    assert moved.conflict_id is None
    assert moved.start_time == at(15)
    assert moved.end_time == at(17)


@pytest.mark.asyncio
async def test_reschedule_into_conflict(
    booking_service, booking_payload, admin_ctx, venue, customer, booking_factory, at
):
    blocker = await booking_factory(venue, customer, at(18), at(22), BookingStatus.TENTATIVE)
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    await _confirm(booking_service, admin_ctx, booking.id)

    moved = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=booking.id, start_time=at(17), end_time=at(19)), admin_ctx
    )

    assert moved.status == BookingStatus.CONFLICT
    assert moved.conflict_id == blocker.id


@pytest.mark.asyncio
async def test_reschedule_ignores_own_slot(booking_service, booking_payload, admin_ctx, at):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    await _confirm(booking_service, admin_ctx, booking.id)

    moved = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=booking.id, end_time=at(15)), admin_ctx
    )

    assert moved.status == BookingStatus.CONFIRMED
    assert moved.start_time == at(10)
    assert moved.end_time == at(15)


@pytest.mark.asyncio
async def test_reschedule_to_same_times_picks_up_new_blocker(booking_service, booking_payload, admin_ctx):
    first = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    first_id, start, end = first.id, first.start_time, first.end_time
    second = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    second_id = second.id
    assert second.status == BookingStatus.INQUIRY
    await _confirm(booking_service, admin_ctx, second_id)

    rechecked = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=first_id, start_time=start, end_time=end), admin_ctx
    )

    assert rechecked.status == BookingStatus.CONFLICT
    assert rechecked.conflict_id == second_id
    assert rechecked.start_time == start
    assert rechecked.end_time == end


@pytest.mark.asyncio
async def test_reschedule_to_same_times_clears_stale_conflict(
    booking_service, booking_payload, admin_ctx, venue, customer, booking_factory, at
):
    blocker = await booking_factory(venue, customer, at(10), at(14), BookingStatus.CONFIRMED)
    blocker_id = blocker.id
    conflicted = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(12), end=at(16))), admin_ctx
    )
    conflicted_id = conflicted.id
    assert conflicted.status == BookingStatus.CONFLICT
    await booking_service.cancel_booking(CancelBookingRequest(booking_id=blocker_id), admin_ctx)

    rechecked = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=conflicted_id, start_time=at(12)), admin_ctx
    )

    assert rechecked.status == BookingStatus.INQUIRY
    assert rechecked.conflict_id is None


@pytest.mark.asyncio
async def test_reschedule_without_times_keeps_status(booking_service, booking_payload, admin_ctx):
    first = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    first_id = first.id
    second = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    await _confirm(booking_service, admin_ctx, second.id)

    updated = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=first_id, guest_count=90), admin_ctx
    )

    assert updated.status == BookingStatus.INQUIRY
    assert updated.guest_count == 90


@pytest.mark.asyncio
async def test_reschedule_with_end_before_start(booking_service, booking_payload, admin_ctx, at):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)

    with pytest.raises(ValidationError):
        await booking_service.reschedule_booking(
            RescheduleBookingRequest(booking_id=booking.id, start_time=at(15)), admin_ctx
        )


@pytest.mark.asyncio
async def test_reschedule_updates_details_without_repricing(
    booking_service, booking_payload, admin_ctx, session_factory, hotel
):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id

    async with session_factory() as session:
        await session.execute(
            update(Hotel).where(Hotel.id == hotel.id).values(vat_rate=Decimal("20.00"))
        )
        await session.commit()

    updated = await booking_service.reschedule_booking(
        RescheduleBookingRequest(booking_id=booking_id, guest_count=150, event_name="Gala Dinner"), admin_ctx
    )

    assert updated.guest_count == 150
    assert updated.event_name == "Gala Dinner"
    assert updated.vat == Decimal("150.00")
    assert updated.total_amount == Decimal("1250.00")


@pytest.mark.asyncio
async def test_reschedule_terminal_booking_is_rejected(booking_service, booking_payload, admin_ctx, at):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id
    await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), admin_ctx)

    with pytest.raises(PreconditionFailedError):
        await booking_service.reschedule_booking(
            RescheduleBookingRequest(booking_id=booking_id, start_time=at(8), end_time=at(9)), admin_ctx
        )


@pytest.mark.asyncio
async def test_hotel_rate_change_does_not_touch_existing_bookings(
    booking_service, booking_payload, admin_ctx, session_factory, hotel, at
):
    existing = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    existing_id = existing.id

    async with session_factory() as session:
        await session.execute(
            update(Hotel)
            .where(Hotel.id == hotel.id)
            .values(vat_rate=Decimal("20.00"), tax_strategy=TaxStrategy.COMPOUND)
        )
        await session.commit()

    fresh = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(10, day_offset=1), end=at(14, day_offset=1))), admin_ctx
    )
    assert fresh.vat_rate_snapshot == Decimal("20.00")
    assert fresh.vat == Decimal("220.00")
    assert fresh.total_amount == Decimal("1320.00")

    reread = await booking_service.get_booking(GetBookingRequest(booking_id=existing_id), admin_ctx)
    assert reread.vat_rate_snapshot == Decimal("15.00")
    assert reread.tax_strategy_snapshot == TaxStrategy.STANDARD
    assert reread.total_amount == Decimal("1250.00")


@pytest.mark.asyncio
async def test_status_change_follows_transition_table(booking_service, booking_payload, admin_ctx):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id

    tentative = await booking_service.change_status(
        ChangeStatusRequest(booking_id=booking_id, status=BookingStatus.TENTATIVE), admin_ctx
    )
    assert tentative.status == BookingStatus.TENTATIVE

    with pytest.raises(InvalidTransitionError) as exc_info:
        await booking_service.change_status(
            ChangeStatusRequest(booking_id=booking_id, status=BookingStatus.COMPLETED), admin_ctx
        )
    assert exc_info.value.problem_details["current_status"] == "TENTATIVE"

    reread = await booking_service.get_booking(GetBookingRequest(booking_id=booking_id), admin_ctx)
    assert reread.status == BookingStatus.TENTATIVE


@pytest.mark.asyncio
async def test_cancel_twice_is_rejected(booking_service, booking_payload, admin_ctx):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id

    cancelled = await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), admin_ctx)
    assert cancelled.status == BookingStatus.CANCELLED

    with pytest.raises(InvalidTransitionError):
        await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), admin_ctx)


@pytest.mark.asyncio
async def test_cancelling_conflict_clears_link(booking_service, booking_payload, admin_ctx, at):
    first = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    await _confirm(booking_service, admin_ctx, first.id)
    second = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(12), end=at(15))), admin_ctx
    )

    cancelled = await booking_service.cancel_booking(CancelBookingRequest(booking_id=second.id), admin_ctx)

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.conflict_id is None


@pytest.mark.asyncio
async def test_delete_requires_cancelled_booking(booking_service, booking_payload, admin_ctx):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id

    with pytest.raises(PreconditionFailedError):
        await booking_service.delete_booking(DeleteBookingRequest(booking_id=booking_id), admin_ctx)

    await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), admin_ctx)
    await booking_service.delete_booking(DeleteBookingRequest(booking_id=booking_id), admin_ctx)

    with pytest.raises(NotFoundError):
        await booking_service.get_booking(GetBookingRequest(booking_id=booking_id), admin_ctx)


@pytest.mark.asyncio
async def test_delete_clears_conflict_links(booking_service, booking_payload, admin_ctx, at):
    first = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    first_id = first.id
    await _confirm(booking_service, admin_ctx, first_id)
    second = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(12), end=at(15))), admin_ctx
    )
    second_id = second.id
    assert second.conflict_id == first_id

    await booking_service.cancel_booking(CancelBookingRequest(booking_id=first_id), admin_ctx)
    await booking_service.delete_booking(DeleteBookingRequest(booking_id=first_id), admin_ctx)

    survivor = await booking_service.get_booking(GetBookingRequest(booking_id=second_id), admin_ctx)
    assert survivor.status == BookingStatus.CONFLICT
    assert survivor.conflict_id is None


@pytest.mark.asyncio
async def test_sales_cannot_delete(booking_service, booking_payload, admin_ctx, sales_ctx):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), sales_ctx)
    booking_id = booking.id
    await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), sales_ctx)

    with pytest.raises(AuthorizationError):
        await booking_service.delete_booking(DeleteBookingRequest(booking_id=booking_id), sales_ctx)

    await booking_service.delete_booking(DeleteBookingRequest(booking_id=booking_id), admin_ctx)


@pytest.mark.asyncio
async def test_super_admin_needs_impersonation(booking_service, booking_payload):
    ctx = RequestContext.build(user_id="super-1", role=Role.SUPER_ADMIN)

    with pytest.raises(AuthorizationError) as exc_info:
        await booking_service.create_booking(CreateBookingRequest(**booking_payload()), ctx)

    assert "Impersonation Mode" in exc_info.value.problem_details["detail"]


@pytest.mark.asyncio
async def test_customer_cannot_create_staff_booking(booking_service, booking_payload, customer_ctx):
    with pytest.raises(AuthorizationError):
        await booking_service.create_booking(CreateBookingRequest(**booking_payload()), customer_ctx)


@pytest.mark.asyncio
async def test_inactive_venue_cannot_be_booked(
    booking_service, booking_payload, admin_ctx, hotel, venue_factory, test_session
):
    closed = await venue_factory(hotel, is_active=False)

    with pytest.raises(PreconditionFailedError):
        await booking_service.create_booking(CreateBookingRequest(**booking_payload(venue_id=closed.id)), admin_ctx)

    assert await _count(test_session, Booking) == 0


@pytest.mark.asyncio
async def test_deactivated_hotel_cannot_take_bookings(
    booking_service, hotel_factory, venue_factory, customer_factory, at
):
    hotel = await hotel_factory(is_deactivated=True)
    venue = await venue_factory(hotel)
    customer = await customer_factory(hotel)
    ctx = RequestContext.build(user_id="admin-d", role=Role.HOTEL_ADMIN, hotel_id=hotel.id)

    with pytest.raises(PreconditionFailedError):
        await booking_service.create_booking(
            CreateBookingRequest(
                venue_id=venue.id,
                customer_id=customer.id,
                event_name="Closing party",
                start_time=at(19),
                end_time=at(23),
                guest_count=20,
            ),
            ctx,
        )


@pytest.mark.asyncio
async def test_other_tenant_venue_is_not_found(
    booking_service, booking_payload, admin_ctx, hotel_factory, venue_factory
):
    other_hotel = await hotel_factory()
    foreign_venue = await venue_factory(other_hotel)

    with pytest.raises(NotFoundError):
        await booking_service.create_booking(
            CreateBookingRequest(**booking_payload(venue_id=foreign_venue.id)), admin_ctx
        )


@pytest.mark.asyncio
async def test_other_tenant_customer_is_not_found(
    booking_service, booking_payload, admin_ctx, hotel_factory, customer_factory
):
    other_hotel = await hotel_factory()
    foreign_customer = await customer_factory(other_hotel)

    with pytest.raises(NotFoundError):
        await booking_service.create_booking(
            CreateBookingRequest(**booking_payload(customer_id=foreign_customer.id)), admin_ctx
        )


@pytest.mark.asyncio
async def test_other_tenant_booking_is_invisible(
    booking_service, booking_payload, admin_ctx, hotel_factory, at
):
    booking = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    booking_id = booking.id
    other_hotel = await hotel_factory()
    intruder = RequestContext.build(user_id="admin-2", role=Role.HOTEL_ADMIN, hotel_id=other_hotel.id)

    with pytest.raises(NotFoundError):
        await booking_service.get_booking(GetBookingRequest(booking_id=booking_id), intruder)
    with pytest.raises(NotFoundError):
        await booking_service.reschedule_booking(
            RescheduleBookingRequest(booking_id=booking_id, start_time=at(8), end_time=at(9)), intruder
        )
    with pytest.raises(NotFoundError):
        await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking_id), intruder)
    with pytest.raises(NotFoundError):
        await booking_service.delete_booking(DeleteBookingRequest(booking_id=booking_id), intruder)

    assert await booking_service.list_bookings(ListBookingsRequest(), intruder) == []

    untouched = await booking_service.get_booking(GetBookingRequest(booking_id=booking_id), admin_ctx)
    assert untouched.status == BookingStatus.INQUIRY


@pytest.mark.asyncio
async def test_list_bookings_filters(booking_service, booking_payload, admin_ctx, hotel, venue_factory, at):
    second_venue = await venue_factory(hotel)
    early = await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    late = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(10, day_offset=2), end=at(12, day_offset=2))), admin_ctx
    )
    elsewhere = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(venue_id=second_venue.id, start=at(9), end=at(11))), admin_ctx
    )
    early_id, late_id, elsewhere_id = early.id, late.id, elsewhere.id
    await booking_service.cancel_booking(CancelBookingRequest(booking_id=elsewhere_id), admin_ctx)

    everything = await booking_service.list_bookings(ListBookingsRequest(), admin_ctx)
    assert [b.id for b in everything] == [late_id, early_id, elsewhere_id]

    cancelled = await booking_service.list_bookings(ListBookingsRequest(status=BookingStatus.CANCELLED), admin_ctx)
    assert [b.id for b in cancelled] == [elsewhere_id]

    by_venue = await booking_service.list_bookings(ListBookingsRequest(venue_id=second_venue.id), admin_ctx)
    assert [b.id for b in by_venue] == [elsewhere_id]


@pytest.mark.asyncio
async def test_public_booking_request(booking_service, venue, customer, customer_ctx, hotel, at):
    booking = await booking_service.create_public_booking(
        PublicBookingRequest(
            venue_id=venue.id,
            customer_id=customer.id,
            event_name="Wedding reception",
            event_type="wedding",
            start_time=at(16),
            end_time=at(23),
            guest_count=180,
            guaranteed_pax=150,
        ),
        customer_ctx,
    )

    assert booking.hotel_id == hotel.id
    assert booking.source == "PUBLIC"
    assert booking.is_public_booking is True
    assert booking.assigned_to_id is None
    assert booking.created_by_id == "marketplace-user-1"
    assert booking.guaranteed_pax == 150
    assert booking.status == BookingStatus.INQUIRY


@pytest.mark.asyncio
async def test_public_booking_checks_capacity(booking_service, venue, customer, customer_ctx, at):
    with pytest.raises(CapacityExceededError):
        await booking_service.create_public_booking(
            PublicBookingRequest(
                venue_id=venue.id,
                customer_id=customer.id,
                event_name="Festival",
                start_time=at(12),
                end_time=at(20),
                guest_count=201,
            ),
            customer_ctx,
        )


@pytest.mark.asyncio
async def test_staff_cannot_use_public_booking(booking_service, venue, customer, sales_ctx, at):
    with pytest.raises(AuthorizationError):
        await booking_service.create_public_booking(
            PublicBookingRequest(
                venue_id=venue.id,
                customer_id=customer.id,
                event_name="Team lunch",
                start_time=at(12),
                end_time=at(14),
                guest_count=10,
            ),
            sales_ctx,
        )


@pytest.mark.asyncio
async def test_audit_entries_only_under_impersonation(
    booking_service, booking_payload, admin_ctx, impersonation_ctx, test_session, hotel, at
):
    await booking_service.create_booking(CreateBookingRequest(**booking_payload()), admin_ctx)
    assert await _count(test_session, AuditLogEntry) == 0

    booking = await booking_service.create_booking(
        CreateBookingRequest(**booking_payload(start=at(16), end=at(18))), impersonation_ctx
    )
    await booking_service.cancel_booking(CancelBookingRequest(booking_id=booking.id), impersonation_ctx)

    result = await test_session.execute(select(AuditLogEntry))
    entries = list(result.scalars())
    assert sorted(entry.action for entry in entries) == ["CANCEL_BOOKING", "CREATE_BOOKING"]
    assert all(entry.actor_id == "super-1" for entry in entries)
    assert all(entry.hotel_id == hotel.id for entry in entries)


@pytest.mark.asyncio
async def test_failed_mutation_leaves_no_audit_entry(
    booking_service, booking_payload, impersonation_ctx, test_session
):
    with pytest.raises(CapacityExceededError):
        await booking_service.create_booking(
            CreateBookingRequest(**booking_payload(guest_count=500)), impersonation_ctx
        )

    assert await _count(test_session, AuditLogEntry) == 0

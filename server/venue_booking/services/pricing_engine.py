"""Snapshot pricing: service charge, VAT and totals frozen at booking creation."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..models.hotel import Hotel, TaxStrategy
from ..models.venue import Venue

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps float inputs from dragging binary noise into the result
    return Decimal(str(value))


@dataclass(frozen=True)
class TaxPolicy:
    """A hotel's tax configuration as read at pricing time."""

    strategy: TaxStrategy
    vat_rate: Decimal
    service_charge_rate: Decimal
    currency: str

    @classmethod
    def from_hotel(cls, hotel: Hotel) -> "TaxPolicy":
        return cls(
            strategy=TaxStrategy(hotel.tax_strategy),
            vat_rate=_decimal(hotel.vat_rate),
            service_charge_rate=_decimal(hotel.service_charge_rate),
            currency=hotel.currency,
        )


@dataclass(frozen=True)
class PricingSnapshot:
    """Monetary figures and the exact rates used to produce them."""

    base_price: Decimal
    service_charge: Decimal
    vat: Decimal
    total_amount: Decimal
    currency: str
    vat_rate_snapshot: Decimal
    service_charge_rate_snapshot: Decimal
    tax_strategy_snapshot: TaxStrategy

    def as_booking_fields(self) -> dict:
        return {
            "base_price": self.base_price,
            "service_charge": self.service_charge,
            "vat": self.vat,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "vat_rate_snapshot": self.vat_rate_snapshot,
            "service_charge_rate_snapshot": self.service_charge_rate_snapshot,
            "tax_strategy_snapshot": self.tax_strategy_snapshot,
        }


def compute_snapshot(
    venue: Venue,
    policy: TaxPolicy,
    base_price_override: Optional[Decimal] = None,
) -> PricingSnapshot:
    """
    Price a booking against the venue and the hotel's current tax policy.

    STANDARD applies VAT to the base price; COMPOUND applies it to base price
    plus service charge. Each component is rounded to cents and the total is
    the sum of the rounded components, so the invoice always adds up.

    Args:
        venue: Venue supplying the default base price
        policy: Hotel tax policy at the time of pricing
        base_price_override: Explicit base price; wins over the venue price when given

    Returns:
        PricingSnapshot with every rate copied verbatim
    """
    if base_price_override is not None:
        base_price = _decimal(base_price_override)
    elif venue.base_price is not None:
        base_price = _decimal(venue.base_price)
    else:
        base_price = Decimal("0")
    base_price = _money(base_price)

    service_charge = _money(base_price * policy.service_charge_rate / HUNDRED)

    taxable = base_price
    if policy.strategy == TaxStrategy.COMPOUND:
        taxable = base_price + service_charge

    vat = _money(taxable * policy.vat_rate / HUNDRED)
    total_amount = base_price + service_charge + vat

    return PricingSnapshot(
        base_price=base_price,
        service_charge=service_charge,
        vat=vat,
        total_amount=total_amount,
        currency=policy.currency,
        vat_rate_snapshot=policy.vat_rate,
        service_charge_rate_snapshot=policy.service_charge_rate,
        tax_strategy_snapshot=policy.strategy,
    )

"""Pricing engine for storage and parking bookings.

Storage is priced per square foot on a logarithmic-decay curve so that longer
single reservations get progressively cheaper per 15-minute block; parking is a
flat per-block rate looked up by vehicle class and coverage. Every function is
pure and takes an explicit :class:`PricingConfig`, so the unauthenticated price
preview and booking creation always agree for identical inputs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from types import MappingProxyType
from typing import Any

from stow.core.config import get_settings
from stow.models.listing import Listing, ListingKind, VehicleClass
from stow.models.mixins import coerce_utc

DEFAULT_PARKING_RATES: Mapping[tuple[VehicleClass, bool], int] = MappingProxyType(
    {
        (VehicleClass.TWO_WHEELER, False): 4,
        (VehicleClass.TWO_WHEELER, True): 8,
        (VehicleClass.FOUR_WHEELER, False): 8,
        (VehicleClass.FOUR_WHEELER, True): 12,
    }
)


@dataclass(frozen=True, slots=True)
class PricingConfig:
    """Immutable rate table injected into the pricing functions."""

    base_rate: float = 2.40
    decay_constant: float = 10.0
    min_area_sqft: float = 4.0
    min_price: int = 30
    block_minutes: int = 15
    parking_rates: Mapping[tuple[VehicleClass, bool], int] = field(
        default_factory=lambda: DEFAULT_PARKING_RATES
    )
    parking_min_price: int = 4


@dataclass(slots=True)
class PriceBreakdown:
    """Total price plus the figures that explain it."""

    total: int
    blocks: int
    minutes: int
    per_block: float
    effective_rate: float
    savings_percent: int
    area: float | None = None
    decay: float | None = None
    base_rate: int | None = None
    parking_type: str | None = None
    vehicle_class: str | None = None
    is_parking: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@lru_cache
def get_pricing_config() -> PricingConfig:
    """Build the process-wide pricing configuration from settings."""
    settings = get_settings()
    return PricingConfig(
        base_rate=settings.pricing_base_rate,
        decay_constant=settings.pricing_decay_constant,
        min_area_sqft=settings.pricing_min_area_sqft,
        min_price=settings.pricing_min_price,
        parking_min_price=settings.pricing_parking_min_price,
    )


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def count_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero."""
    seconds = (coerce_utc(end) - coerce_utc(start)).total_seconds()
    return math.trunc(seconds / 60)


def count_blocks(minutes: int, config: PricingConfig) -> int:
    """Billable blocks for a duration; always at least one."""
    return max(1, math.ceil(minutes / config.block_minutes))


def decay_factor(blocks: int, config: PricingConfig) -> float:
    return 1 / (1 + config.decay_constant * math.log(blocks))


def billable_area(area_sqft: float | None, config: PricingConfig) -> float:
    return max(config.min_area_sqft, float(area_sqft or 0))


def storage_breakdown(
    start: datetime,
    end: datetime,
    area_sqft: float | None,
    config: PricingConfig,
) -> PriceBreakdown:
    """Price a storage booking on the logarithmic-decay curve."""
    minutes = count_minutes(start, end)
    blocks = count_blocks(minutes, config)
    area = billable_area(area_sqft, config)
    decay = decay_factor(blocks, config)
    raw_total = config.base_rate * decay * area * blocks
    total = max(config.min_price, int(_round_half_up(raw_total)))
    return PriceBreakdown(
        total=total,
        blocks=blocks,
        minutes=minutes,
        per_block=float(_round_half_up(total / blocks, 2)),
        effective_rate=float(_round_half_up(config.base_rate * decay, 2)),
        savings_percent=int(_round_half_up((1 - decay) * 100)) if blocks > 1 else 0,
        area=area,
        decay=float(_round_half_up(decay, 4)),
    )


def calculate_storage_price(
    start: datetime,
    end: datetime,
    area_sqft: float | None,
    config: PricingConfig,
) -> int:
    return storage_breakdown(start, end, area_sqft, config).total


def normalize_vehicle_class(value: VehicleClass | str | None) -> VehicleClass:
    """Unknown or missing vehicle classes are billed as 2-wheelers."""
    if isinstance(value, VehicleClass):
        return value
    try:
        return VehicleClass(value)
    except ValueError:
        return VehicleClass.TWO_WHEELER


def parking_rate(
    vehicle_class: VehicleClass | str | None,
    is_covered: bool,
    config: PricingConfig,
) -> int:
    return config.parking_rates[(normalize_vehicle_class(vehicle_class), bool(is_covered))]


def parking_breakdown(
    start: datetime,
    end: datetime,
    is_covered: bool,
    vehicle_class: VehicleClass | str | None,
    config: PricingConfig,
) -> PriceBreakdown:
    """Price a parking booking at a flat per-block rate with no decay."""
    minutes = count_minutes(start, end)
    blocks = count_blocks(minutes, config)
    rate = parking_rate(vehicle_class, is_covered, config)
    total = max(config.parking_min_price, rate * blocks)
    return PriceBreakdown(
        total=total,
        blocks=blocks,
        minutes=minutes,
        per_block=float(rate),
        effective_rate=float(rate),
        savings_percent=0,
        base_rate=rate,
        parking_type="Covered" if is_covered else "Open",
        vehicle_class=normalize_vehicle_class(vehicle_class).value,
        is_parking=True,
    )


def calculate_parking_price(
    start: datetime,
    end: datetime,
    is_covered: bool,
    vehicle_class: VehicleClass | str | None,
    config: PricingConfig,
) -> int:
    return parking_breakdown(start, end, is_covered, vehicle_class, config).total


def quote_listing(
    listing: Listing,
    start: datetime,
    end: datetime,
    config: PricingConfig | None = None,
) -> PriceBreakdown:
    """Price a time range on a listing using the branch for its kind."""
    config = config or get_pricing_config()
    if listing.kind == ListingKind.PARKING:
        return parking_breakdown(
            start, end, listing.is_covered, listing.vehicle_class, config
        )
    return storage_breakdown(start, end, listing.area_sqft, config)


def listing_block_rate(listing: Listing, config: PricingConfig | None = None) -> Decimal:
    """Informational single-block price shown on a listing card."""
    config = config or get_pricing_config()
    if listing.kind == ListingKind.PARKING:
        rate = parking_rate(listing.vehicle_class, listing.is_covered, config)
        return Decimal(rate).quantize(Decimal("0.01"))
    area = billable_area(listing.area_sqft, config)
    return _round_half_up(area * config.base_rate, 2)


__all__ = [
    "DEFAULT_PARKING_RATES",
    "PriceBreakdown",
    "PricingConfig",
    "calculate_parking_price",
    "calculate_storage_price",
    "count_blocks",
    "count_minutes",
    "get_pricing_config",
    "listing_block_rate",
    "parking_breakdown",
    "parking_rate",
    "quote_listing",
    "storage_breakdown",
]

"""
Rider Earning Calculator.

A rider earns a share of the parcel cost: 80% when the parcel stays within
one region, 30% when it crosses regions. Earnings are derived on every read
and never stored.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from parcel_backend.app.core.exceptions import InvalidAmountError
from parcel_backend.app.models.parcel_enums import CashoutStatus

SAME_REGION_RATE = Decimal("0.8")
CROSS_REGION_RATE = Decimal("0.3")


def parse_amount(value: Any) -> Decimal:
    """
    Strictly parse a non-negative currency amount.

    Accepts Decimal, int, float and numeric strings. Anything else, including
    driver-wrapped numbers such as {"$numberInt": "5"}, booleans, NaN,
    infinities and negatives, raises InvalidAmountError.
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float, str)):
        raise InvalidAmountError(value)

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(value)

    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(value)

    return amount


def canonical_region(region: Optional[str]) -> str:
    return (region or "").strip()


def earning_rate(sender_region: Optional[str], receiver_region: Optional[str]) -> Decimal:
    if canonical_region(sender_region) == canonical_region(receiver_region):
        return SAME_REGION_RATE
    return CROSS_REGION_RATE


def compute_rider_earning(cost: Any, sender_region: Optional[str], receiver_region: Optional[str]) -> Decimal:
    """
    Compute the rider's earning for a parcel.

    Args:
        cost: Parcel cost (parsed strictly, see parse_amount)
        sender_region: Region code of the sender
        receiver_region: Region code of the receiver

    Returns:
        cost * 0.8 for same-region parcels, cost * 0.3 otherwise

    Raises:
        InvalidAmountError: If cost is not a valid non-negative amount
    """
    return parse_amount(cost) * earning_rate(sender_region, receiver_region)


def summarize_earnings(parcels: Iterable[Any]) -> dict:
    """
    Total earnings over a rider's parcels, split by cashout state.

    Only delivered parcels contribute; pass the parcels already filtered by
    rider.
    """
    total = Decimal("0")
    cashed_out = Decimal("0")
    count = 0

    for parcel in parcels:
        earning = compute_rider_earning(parcel.cost, parcel.sender_region, parcel.receiver_region)
        total += earning
        count += 1
        if parcel.cashout_status == CashoutStatus.CASHED_OUT:
            cashed_out += earning

    return {
        "parcel_count": count,
        "total_earning": total,
        "cashed_out": cashed_out,
        "pending": total - cashed_out,
    }

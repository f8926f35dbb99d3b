from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import pandas as pd

from .records import ACTIONABLE_STATUSES

SECONDS_PER_DAY = 24 * 60 * 60

# (exclusive upper bound, label); 120-149 days fall into "150-179D"
TENOR_LADDER: List[Tuple[int, str]] = [
    (30, "0-29D"),
    (60, "30-59D"),
    (90, "60-89D"),
    (120, "90-119D"),
    (180, "150-179D"),
    (210, "180-209D"),
]
TENOR_OVERFLOW = "≥210D"
TENOR_UNKNOWN = "N/A"
TENOR_BUCKETS: List[str] = [label for _, label in TENOR_LADDER] + [TENOR_OVERFLOW]

NOTIONAL_LADDER: List[Tuple[float, str]] = [
    (100_000, "0-100k"),
    (500_000, "100k-500k"),
    (1_000_000, "500k-1M"),
]
NOTIONAL_OVERFLOW = ">1M"
NOTIONAL_BUCKETS: List[str] = [label for _, label in NOTIONAL_LADDER] + [NOTIONAL_OVERFLOW]

BUY_SIDES = ("COMPRA", "BUY")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort ISO-like parse; tz-aware values become naive UTC."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(timezone.utc).tz_localize(None)
    return ts.to_pydatetime()


def tenor_days(rfq_timestamp: Optional[datetime], maturity_date: Optional[datetime]) -> Optional[int]:
    if rfq_timestamp is None or maturity_date is None:
        return None
    diff = (maturity_date - rfq_timestamp).total_seconds() / SECONDS_PER_DAY
    days = math.ceil(diff)
    return days if days >= 0 else None


def tenor_bucket(days: Optional[int]) -> str:
    if days is None:
        return TENOR_UNKNOWN
    for upper, label in TENOR_LADDER:
        if days < upper:
            return label
    return TENOR_OVERFLOW


def notional_bucket(notional: float) -> str:
    for upper, label in NOTIONAL_LADDER:
        if notional < upper:
            return label
    return NOTIONAL_OVERFLOW


def markup_bps(
    fwd_client: Optional[float],
    fwd: Optional[float],
    yield_client: Optional[float],
    yield_ccy: Optional[float],
) -> Optional[float]:
    """Client spread over cost in basis points.

    Forward rates are preferred; the yield difference is only used when the
    forwards cannot produce a value.
    """
    if fwd_client is not None and fwd is not None and fwd != 0:
        return (fwd_client - fwd) / fwd * 10000
    if yield_client is not None and yield_ccy is not None:
        return (yield_client - yield_ccy) * 10000
    return None


def pl_brl(
    is_buy: bool,
    fwd_client: Optional[float],
    fwd: Optional[float],
    notional: float,
    parity: str,
    spot_fx: Optional[float],
    home_currency: str = "BRL",
) -> Optional[float]:
    """P&L in the home currency.

    Pairs quoted outside the home currency are converted with a plain
    ``spot_fx`` multiplication, an approximation rather than a cross-rate.
    """
    if fwd_client is None or fwd is None:
        return None

    if is_buy:
        pl_quote = (fwd_client - fwd) * notional
    else:
        pl_quote = (fwd - fwd_client) * notional

    home_pair = home_currency.upper() in (parity or "").upper()
    if not home_pair and spot_fx is not None and spot_fx != 0:
        return pl_quote * spot_fx
    return pl_quote


def is_buy(side: str) -> bool:
    return (side or "").strip().upper() in BUY_SIDES


def is_actionable(status: str) -> bool:
    return status in ACTIONABLE_STATUSES

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Status(str, Enum):
    DEAL = "DEAL"
    NOTHING_DONE = "NOTH.DONE"
    REJECTED = "REJECTED"
    EXPIRED_QUOTE = "EXP.QUOTE"
    QUOTE = "QUOTE"


ACTIONABLE_STATUSES = (Status.DEAL.value, Status.NOTHING_DONE.value)


@dataclass(frozen=True)
class NDFRecord:
    """One normalized NDF quote.

    ``status`` keeps the stripped file text, so a status outside ``Status``
    passes through unchanged and is never actionable. ``known_status`` gives
    the enum member when there is one.
    """

    rfq_timestamp: Optional[datetime]
    maturity_date: Optional[datetime]
    status: str
    rejected_message: str
    cnpj: str
    counterparty: str
    product: str
    tenor_dc: Optional[int]
    tenor_bucket: str
    currency: str
    parity: str
    notional: float
    notional_bucket: str
    spot_cost: Optional[float]
    spot_fx: Optional[float]
    yield_ccy: Optional[float]
    yield_client: Optional[float]
    yield_brl_cost: Optional[float]
    yield_brl_client: Optional[float]
    fwd: Optional[float]
    rfq_channel: str
    fwd_client: Optional[float]
    side_blotter: str
    side: str
    is_buy: bool
    is_actionable: bool
    markup_bps: Optional[float]
    pl_brl: Optional[float]

    @property
    def known_status(self) -> Optional[Status]:
        try:
            return Status(self.status)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for key in ("rfq_timestamp", "maturity_date"):
            value = out[key]
            out[key] = value.isoformat() if value is not None else None
        return out


# Column order used by DataFrame conversion and exports
RECORD_COLUMNS: List[str] = list(NDFRecord.__dataclass_fields__.keys())


@dataclass
class DateRange:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    preset: Optional[str] = None  # YTD | MTD | D1 | D2 | CUSTOM


@dataclass
class FilterState:
    """Filter criteria of the dashboard filter panel.

    Declared for the presentation layer; no filtering logic consumes it yet.
    """

    date_range: DateRange = field(default_factory=DateRange)
    counterparties: List[str] = field(default_factory=list)
    currencies: List[str] = field(default_factory=list)
    statuses: List[str] = field(default_factory=list)
    sides: List[str] = field(default_factory=list)
    channels: List[str] = field(default_factory=list)
    notional_range: Tuple[float, float] = (0.0, float("inf"))
    tenor_range: Tuple[int, int] = (0, 10_000)

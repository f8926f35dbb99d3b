from __future__ import annotations

from typing import Dict, Mapping, Optional

from app.config import settings
from app.core.derived import (
    is_actionable,
    is_buy,
    markup_bps,
    notional_bucket,
    parse_timestamp,
    pl_brl,
    tenor_bucket,
    tenor_days,
)
from app.core.records import NDFRecord, Status

from .mapping import DEFAULT_MAPPING, CanonicalField, ColumnMapping, resolve_fields
from .numbers import parse_locale_number

F = CanonicalField


def build_record(fields: Dict[CanonicalField, str], home_currency: Optional[str] = None) -> NDFRecord:
    """Assemble one record from resolved field text. Never raises on bad content."""
    home_currency = home_currency or settings.HOME_CURRENCY

    rfq_timestamp = parse_timestamp(fields[F.RFQ_TIMESTAMP])
    maturity_date = parse_timestamp(fields[F.MATURITY_DATE])
    tenor_dc = tenor_days(rfq_timestamp, maturity_date)

    notional = parse_locale_number(fields[F.NOTIONAL]) or 0.0
    fwd = parse_locale_number(fields[F.FWD])
    fwd_client = parse_locale_number(fields[F.FWD_CLIENT])
    yield_ccy = parse_locale_number(fields[F.YIELD_CCY])
    yield_client = parse_locale_number(fields[F.YIELD_CLIENT])
    spot_fx = parse_locale_number(fields[F.SPOT_FX])

    # Blotter side fills in when the main side column is blank
    buy = is_buy(fields[F.SIDE] or fields[F.SIDE_BLOTTER])

    status = fields[F.STATUS] or Status.QUOTE.value
    parity = fields[F.PARITY]

    return NDFRecord(
        rfq_timestamp=rfq_timestamp,
        maturity_date=maturity_date,
        status=status,
        rejected_message=fields[F.REJECTED_MESSAGE],
        cnpj=fields[F.CNPJ],
        counterparty=fields[F.COUNTERPARTY],
        product=fields[F.PRODUCT],
        tenor_dc=tenor_dc,
        tenor_bucket=tenor_bucket(tenor_dc),
        currency=fields[F.CURRENCY],
        parity=parity,
        notional=float(notional),
        notional_bucket=notional_bucket(notional),
        spot_cost=parse_locale_number(fields[F.SPOT_COST]),
        spot_fx=spot_fx,
        yield_ccy=yield_ccy,
        yield_client=yield_client,
        yield_brl_cost=parse_locale_number(fields[F.YIELD_BRL_COST]),
        yield_brl_client=parse_locale_number(fields[F.YIELD_BRL_CLIENT]),
        fwd=fwd,
        rfq_channel=fields[F.RFQ_CHANNEL],
        fwd_client=fwd_client,
        side_blotter=fields[F.SIDE_BLOTTER],
        side=fields[F.SIDE],
        is_buy=buy,
        is_actionable=is_actionable(status),
        markup_bps=markup_bps(fwd_client, fwd, yield_client, yield_ccy),
        pl_brl=pl_brl(buy, fwd_client, fwd, notional, parity, spot_fx, home_currency),
    )


def normalize_row(row: Mapping[str, Optional[str]], home_currency: Optional[str] = None) -> NDFRecord:
    """Normalize a row of the fixed export layout."""
    return build_record(resolve_fields(row, DEFAULT_MAPPING), home_currency)


def normalize_row_with_mapping(
    row: Mapping[str, Optional[str]],
    mapping: ColumnMapping,
    home_currency: Optional[str] = None,
) -> NDFRecord:
    return build_record(resolve_fields(row, mapping), home_currency)

"""Brazilian display formatting for KPI cards and report labels."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

_PT_BR = str.maketrans({",": ".", ".": ","})


def format_brazilian_number(value: float, decimals: int = 2) -> str:
    """1234567.891 -> '1.234.567,89'"""
    return f"{value:,.{decimals}f}".translate(_PT_BR)


def format_brl(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}R$ {format_brazilian_number(abs(value), 2)}"


def format_thousands(value: float) -> str:
    return f"{format_brazilian_number(value / 1000, 2)} mil"


def format_millions(value: float) -> str:
    return f"{format_brazilian_number(value / 1_000_000, 2)} M"


def format_bps(value: float) -> str:
    return f"{format_brazilian_number(value, 2)} bps"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Ratio to percent: 0.75 -> '75,00%'"""
    return f"{format_brazilian_number(value * 100, decimals)}%"


def format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def format_datetime(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M")


def kpi_display(kpis: Dict[str, Any]) -> Dict[str, str]:
    return {
        "volume_total": format_brazilian_number(kpis["volume_total"], 0),
        "volume_total_short": format_millions(kpis["volume_total"]),
        "result_total": format_brl(kpis["result_total"]),
        "markup_avg_bps": format_bps(kpis["markup_avg_bps"]),
        "conversion_rate": format_percentage(kpis["conversion_rate"]),
        "tenor_avg_weighted": f"{format_brazilian_number(kpis['tenor_avg_weighted'], 0)} dias",
    }


def period_display(timestamps: Iterable[Optional[datetime]]) -> Dict[str, Optional[str]]:
    """First and last quote dates of a record set, ``None`` when no date parsed."""
    known = [t for t in timestamps if t is not None]
    if not known:
        return {"start": None, "end": None}
    return {"start": format_date(min(known)), "end": format_date(max(known))}

from dataclasses import replace

import pytest

from app.core.engine import (
    build_analytics,
    build_overview,
    client_notional_distribution,
    compute_kpis,
    conversion_bubbles,
    conversion_by_tenor,
    records_to_frame,
    rejection_reasons,
    result_by_currency,
    side_volume_by_tenor,
    status_distribution,
)
from app.core.derived import notional_bucket
from app.parsing.normalizer import normalize_row

BASE = normalize_row({
    "RFQ Timestamp": "2024-01-01",
    "Maturity Date": "2024-01-31",
    "Status": "DEAL",
    "Currency": "USD",
    "Parity": "USD/BRL",
    "Notional": "1000",
    "Side": "BUY",
})


def rec(status="DEAL", notional=1000.0, pl=None, markup=None, tenor=30, bucket="30-59D",
        ccy="USD", cpty="A", buy=True, reason=""):
    return replace(
        BASE,
        status=status,
        is_actionable=status in ("DEAL", "NOTH.DONE"),
        notional=notional,
        notional_bucket=notional_bucket(notional),
        pl_brl=pl,
        markup_bps=markup,
        tenor_dc=tenor,
        tenor_bucket=bucket,
        currency=ccy,
        counterparty=cpty,
        is_buy=buy,
        rejected_message=reason,
    )


def frame(*records):
    return records_to_frame(records)


def test_kpis_on_deals_only():
    df = frame(
        rec("DEAL", 1000, pl=100, markup=10, tenor=30),
        rec("DEAL", 3000, pl=-50, markup=20, tenor=90),
        rec("NOTH.DONE", 5000, pl=999, markup=999),
        rec("REJECTED", 7000, pl=999),
    )
    k = compute_kpis(df)
    assert k["volume_total"] == 4000
    assert k["result_total"] == 50
    assert k["markup_avg_bps"] == pytest.approx((10 * 1000 + 20 * 3000) / 4000)
    assert k["tenor_avg_weighted"] == pytest.approx((30 * 1000 + 90 * 3000) / 4000)
    assert k["conversion_rate"] == pytest.approx(2 / 3)
    assert (k["records"], k["deals"], k["actionable"]) == (4, 2, 3)


def test_kpis_null_markup_keeps_notional_in_denominator():
    k = compute_kpis(frame(rec(notional=1000, markup=10), rec(notional=1000, markup=None, tenor=None)))
    assert k["markup_avg_bps"] == pytest.approx(5)
    assert k["tenor_avg_weighted"] == pytest.approx(15)


def test_kpis_empty():
    k = compute_kpis(frame())
    assert k["volume_total"] == 0.0
    assert k["conversion_rate"] == 0.0


def test_conversion_excludes_rejected_and_quote():
    k = compute_kpis(frame(rec("DEAL"), rec("REJECTED"), rec("QUOTE")))
    assert k["conversion_rate"] == 1.0


def test_result_by_currency_with_subtotal():
    out = result_by_currency(frame(
        rec(pl=1000, ccy="USD"), rec(pl=500, ccy="EUR"), rec(pl=2000, ccy="USD"), rec("REJECTED", pl=9999, ccy="GBP"),
    ))
    assert list(out["currency"]) == ["USD", "EUR", "Subtotal"]
    assert list(out["value"]) == [3.0, 0.5, 3.5]


def test_status_distribution_renames_not_done():
    out = status_distribution(frame(rec("DEAL"), rec("NOTH.DONE"), rec("NOTH.DONE"), rec("QUOTE")))
    assert out.to_dict(orient="records") == [
        {"status": "DEAL", "count": 1},
        {"status": "NOT DONE", "count": 2},
        {"status": "REJECTED", "count": 0},
    ]


def test_rejection_reasons_sorted():
    out = rejection_reasons(frame(
        rec("REJECTED", reason="Limite"),
        rec("REJECTED", reason=""),
        rec("REJECTED", reason="Limite"),
        rec("DEAL"),
    ))
    assert list(out["name"]) == ["Limite", "Unknown"]
    assert list(out["value"]) == [2, 1]
    assert out.iloc[0]["pct_of_rejections"] == pytest.approx(200 / 3)
    assert out.iloc[0]["pct_of_total"] == pytest.approx(50)


def test_client_notional_ranges_skip_5k_to_10k():
    out = client_notional_distribution(frame(
        rec(notional=500, cpty="A"),
        rec(notional=2000, cpty="B"),
        rec(notional=7000, cpty="C"),  # no range covers 5k-10k
        rec(notional=10000, cpty="D"),
        rec(notional=60000, cpty="E"),
        rec(notional=200000, cpty="F"),  # above the last range
        rec(notional=100, cpty=""),
    ))
    assert list(out["label"]) == ["0-1k", "1k-5k", "10k-50k", "50k-100k"]
    assert list(out["count"]) == [1, 1, 1, 1]


def test_client_notional_sums_per_counterparty():
    out = client_notional_distribution(frame(rec(notional=600, cpty="A"), rec(notional=600, cpty="A")))
    assert list(out["count"]) == [0, 1, 0, 0]


def test_conversion_by_tenor_per_side():
    out = conversion_by_tenor(frame(
        rec("DEAL", bucket="0-29D", buy=True),
        rec("NOTH.DONE", bucket="0-29D", buy=True),
        rec("NOTH.DONE", bucket="0-29D", buy=False),
        rec("QUOTE", bucket="N/A", buy=False),
        rec("DEAL", bucket="150-179D", buy=False),
    ))
    assert list(out["tenor_bucket"]) == ["0-29D", "150-179D", "N/A"]
    first = out.iloc[0]
    assert first["buy_conversion"] == 0.5
    assert first["sell_conversion"] == 0.0
    assert out.iloc[1]["sell_conversion"] == 1.0
    assert out.iloc[2]["buy_conversion"] == 0.0


def test_side_volume_and_bubbles():
    df = frame(
        rec("DEAL", 1000, bucket="0-29D", buy=True),
        rec("QUOTE", 500, bucket="0-29D", buy=True),
        rec("NOTH.DONE", 2000, bucket="0-29D", buy=False),
        rec("QUOTE", 300, bucket="30-59D", buy=False),
    )
    vol = side_volume_by_tenor(df)
    assert vol.to_dict(orient="records") == [
        {"tenor_bucket": "0-29D", "buy": 1500.0, "sell": 2000.0},
        {"tenor_bucket": "30-59D", "buy": 0.0, "sell": 300.0},
    ]
    bubbles = conversion_bubbles(df)
    # 30-59D has no actionable rows and is dropped
    assert list(zip(bubbles["tenor_bucket"], bubbles["side"])) == [("0-29D", "BUY"), ("0-29D", "SELL")]
    assert list(bubbles["conversion"]) == [1.0, 0.0]
    assert list(bubbles["notional"]) == [1500.0, 2000.0]


def test_builders_on_empty_collection():
    overview = build_overview([])
    analytics = build_analytics([])
    assert overview["result_by_currency"].empty
    assert overview["kpis"]["records"] == 0
    assert all(v.empty for v in analytics.values())
    heat = build_analytics([rec(buy=True), rec(buy=False), rec(buy=True)])["buy_share_heatmap"]
    assert heat.iloc[0]["buy_pct"] == pytest.approx(2 / 3)

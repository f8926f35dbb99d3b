from datetime import datetime

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


def test_tenor_days_rounds_up_partial_days():
    assert tenor_days(datetime(2024, 1, 15, 10, 30), datetime(2024, 4, 15)) == 90
    assert tenor_days(datetime(2024, 1, 15), datetime(2024, 1, 15)) == 0
    assert tenor_days(datetime(2024, 1, 15), datetime(2024, 1, 15, 0, 0, 1)) == 1


def test_tenor_days_invalid_inputs():
    assert tenor_days(None, datetime(2024, 1, 1)) is None
    assert tenor_days(datetime(2024, 1, 1), None) is None
    # past maturities are invalid rather than negative
    assert tenor_days(datetime(2024, 2, 1), datetime(2024, 1, 1)) is None


def test_tenor_bucket_boundaries():
    assert tenor_bucket(None) == "N/A"
    assert tenor_bucket(0) == "0-29D"
    assert tenor_bucket(29) == "0-29D"
    assert tenor_bucket(30) == "30-59D"
    assert tenor_bucket(89) == "60-89D"
    assert tenor_bucket(119) == "90-119D"
    assert tenor_bucket(209) == "180-209D"
    assert tenor_bucket(210) == "≥210D"


def test_tenor_bucket_120_to_149_gap():
    # there is no 120-149D bucket; those tenors are labelled 150-179D
    assert tenor_bucket(120) == "150-179D"
    assert tenor_bucket(149) == "150-179D"
    assert tenor_bucket(179) == "150-179D"


def test_notional_bucket_boundaries():
    assert notional_bucket(0) == "0-100k"
    assert notional_bucket(99_999) == "0-100k"
    assert notional_bucket(100_000) == "100k-500k"
    assert notional_bucket(500_000) == "500k-1M"
    assert notional_bucket(1_000_000) == ">1M"


def test_markup_prefers_forwards():
    assert round(markup_bps(101, 100, None, None), 6) == 100
    # yields present too, forward formula still wins
    assert round(markup_bps(101, 100, 0.5, 0.1), 6) == 100


def test_markup_falls_back_to_yields():
    assert round(markup_bps(5.1, 0, 0.05, 0.04), 6) == 100
    assert round(markup_bps(None, 5.0, 0.05, 0.04), 6) == 100
    assert markup_bps(None, None, None, 0.04) is None


def test_pl_sign_follows_side():
    assert round(pl_brl(True, 5.10, 5.00, 1000, "USD/BRL", None), 6) == 100
    assert round(pl_brl(False, 5.10, 5.00, 1000, "USD/BRL", None), 6) == -100


def test_pl_converts_non_home_pairs_with_spot():
    assert round(pl_brl(True, 1.10, 1.09, 1000, "EUR/USD", 5.0), 6) == 50
    # home pair is never converted
    assert round(pl_brl(True, 5.10, 5.00, 1000, "usd/brl", 5.0), 6) == 100
    # missing or zero spot leaves quote-currency P&L
    assert round(pl_brl(True, 1.10, 1.09, 1000, "EUR/USD", 0), 6) == 10
    assert round(pl_brl(True, 1.10, 1.09, 1000, "EUR/USD", None), 6) == 10


def test_pl_needs_both_forwards():
    assert pl_brl(True, None, 5.0, 1000, "USD/BRL", None) is None
    assert pl_brl(True, 5.0, None, 1000, "USD/BRL", None) is None


def test_side_and_status_flags():
    assert is_buy(" compra ")
    assert is_buy("BUY")
    assert not is_buy("VENDA")
    assert not is_buy("")
    assert is_actionable("DEAL")
    assert is_actionable("NOTH.DONE")
    assert not is_actionable("REJECTED")
    assert not is_actionable("QUOTE")


def test_parse_timestamp():
    assert parse_timestamp("2024-01-15 10:30:00") == datetime(2024, 1, 15, 10, 30)
    assert parse_timestamp("2024-01-15T13:30:00+03:00") == datetime(2024, 1, 15, 10, 30)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("") is None

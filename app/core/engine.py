from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from .derived import NOTIONAL_BUCKETS, TENOR_BUCKETS, TENOR_UNKNOWN
from .records import RECORD_COLUMNS, NDFRecord, Status

# Client notional ranges of the overview page. There is no 5k-10k range, so
# clients in that band are not counted anywhere.
CLIENT_NOTIONAL_RANGES: List[Tuple[str, float, float]] = [
    ("0-1k", 0, 1_000),
    ("1k-5k", 1_000, 5_000),
    ("10k-50k", 10_000, 50_000),
    ("50k-100k", 50_000, 100_000),
]

_TENOR_ORDER = TENOR_BUCKETS + [TENOR_UNKNOWN]


def records_to_frame(records: Iterable[NDFRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    for num in ["notional", "markup_bps", "pl_brl", "tenor_dc"]:
        df[num] = pd.to_numeric(df[num], errors="coerce")
    df["is_buy"] = df["is_buy"].astype(bool)
    df["is_actionable"] = df["is_actionable"].astype(bool)
    return df


def _deals(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["status"] == Status.DEAL.value]


def _tenor_sorted(keys: Iterable[str]) -> List[str]:
    rank = {b: i for i, b in enumerate(_TENOR_ORDER)}
    return sorted(keys, key=lambda k: rank.get(k, len(rank)))


def compute_kpis(df: pd.DataFrame) -> Dict[str, Any]:
    """Headline KPIs computed over DEAL rows; markup and tenor weighted by notional."""
    if df.empty:
        return {
            "volume_total": 0.0,
            "result_total": 0.0,
            "markup_avg_bps": 0.0,
            "tenor_avg_weighted": 0.0,
            "conversion_rate": 0.0,
            "records": 0,
            "deals": 0,
            "actionable": 0,
        }

    deals = _deals(df)
    actionable_count = int(df["is_actionable"].sum())

    volume_total = float(deals["notional"].sum())
    result_total = float(deals["pl_brl"].fillna(0.0).sum())

    # Null markups/tenors drop out of the numerator but keep their notional
    # in the denominator.
    weighted_markup = float((deals["markup_bps"] * deals["notional"]).sum())
    weighted_tenor = float((deals["tenor_dc"] * deals["notional"]).sum())

    return {
        "volume_total": volume_total,
        "result_total": result_total,
        "markup_avg_bps": weighted_markup / volume_total if volume_total > 0 else 0.0,
        "tenor_avg_weighted": weighted_tenor / volume_total if volume_total > 0 else 0.0,
        "conversion_rate": len(deals) / actionable_count if actionable_count > 0 else 0.0,
        "records": int(len(df)),
        "deals": int(len(deals)),
        "actionable": actionable_count,
    }


def result_by_currency(df: pd.DataFrame) -> pd.DataFrame:
    """DEAL P&L per currency in thousands, followed by a Subtotal row."""
    if df.empty:
        return pd.DataFrame(columns=["currency", "value"])
    deals = _deals(df)
    by_ccy = deals["pl_brl"].fillna(0.0).groupby(deals["currency"], sort=False).sum() / 1000
    out = pd.DataFrame({"currency": list(by_ccy.index), "value": [float(v) for v in by_ccy.values]})
    subtotal = pd.DataFrame([{"currency": "Subtotal", "value": float(out["value"].sum())}])
    return pd.concat([out, subtotal], ignore_index=True)


def status_distribution(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["status", "count"])
    counts = df["status"].replace({Status.NOTHING_DONE.value: "NOT DONE"}).value_counts()
    return pd.DataFrame(
        [{"status": s, "count": int(counts.get(s, 0))} for s in ["DEAL", "NOT DONE", "REJECTED"]]
    )


def rejection_reasons(df: pd.DataFrame) -> pd.DataFrame:
    columns = ["name", "value", "pct_of_rejections", "pct_of_total"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    rejected = df[df["status"] == Status.REJECTED.value]
    if rejected.empty:
        return pd.DataFrame(columns=columns)
    reasons = rejected["rejected_message"].where(rejected["rejected_message"] != "", "Unknown")
    counts = reasons.value_counts(sort=False)
    out = pd.DataFrame({"name": list(counts.index), "value": [int(v) for v in counts.values]})
    out["pct_of_rejections"] = out["value"] / len(rejected) * 100
    out["pct_of_total"] = out["value"] / len(df) * 100
    return out.sort_values("value", ascending=False, kind="stable").reset_index(drop=True)


def client_notional_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Number of counterparties whose total notional falls in each range."""
    columns = ["label", "min", "max", "count"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    named = df[df["counterparty"] != ""]
    per_client = named.groupby("counterparty", sort=False)["notional"].sum()
    rows = []
    for label, lo, hi in CLIENT_NOTIONAL_RANGES:
        rows.append({"label": label, "min": lo, "max": hi, "count": 0})
    for notional in per_client.values:
        for row in rows:
            if row["min"] <= notional < row["max"]:
                row["count"] += 1
                break
    return pd.DataFrame(rows, columns=columns)


def conversion_by_tenor(df: pd.DataFrame) -> pd.DataFrame:
    """Deals / actionable per tenor bucket, separately for buys and sells."""
    columns = ["tenor_bucket", "buy_conversion", "sell_conversion"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    rows = []
    for bucket in _tenor_sorted(df["tenor_bucket"].unique()):
        g = df[(df["tenor_bucket"] == bucket) & df["is_actionable"]]
        row: Dict[str, Any] = {"tenor_bucket": bucket}
        for side, mask in (("buy", g["is_buy"]), ("sell", ~g["is_buy"])):
            sub = g[mask]
            deals = int((sub["status"] == Status.DEAL.value).sum())
            row[f"{side}_conversion"] = deals / len(sub) if len(sub) > 0 else 0.0
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def side_volume_by_tenor(df: pd.DataFrame) -> pd.DataFrame:
    columns = ["tenor_bucket", "buy", "sell"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    rows = []
    for bucket in _tenor_sorted(df["tenor_bucket"].unique()):
        g = df[df["tenor_bucket"] == bucket]
        rows.append(
            {
                "tenor_bucket": bucket,
                "buy": float(g.loc[g["is_buy"], "notional"].sum()),
                "sell": float(g.loc[~g["is_buy"], "notional"].sum()),
            }
        )
    return pd.DataFrame(rows, columns=columns)


def buy_share_heatmap(df: pd.DataFrame) -> pd.DataFrame:
    """Share of buys per (tenor bucket, notional bucket) cell."""
    columns = ["tenor_bucket", "notional_bucket", "buy", "sell", "buy_pct"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    rows = []
    for tenor in _tenor_sorted(df["tenor_bucket"].unique()):
        for notional in NOTIONAL_BUCKETS:
            g = df[(df["tenor_bucket"] == tenor) & (df["notional_bucket"] == notional)]
            if g.empty:
                continue
            buy = int(g["is_buy"].sum())
            sell = int(len(g) - buy)
            rows.append(
                {
                    "tenor_bucket": tenor,
                    "notional_bucket": notional,
                    "buy": buy,
                    "sell": sell,
                    "buy_pct": buy / (buy + sell),
                }
            )
    return pd.DataFrame(rows, columns=columns)


def conversion_bubbles(df: pd.DataFrame) -> pd.DataFrame:
    """Conversion and notional per (tenor bucket, side); cells without actionable rows are dropped."""
    columns = ["tenor_bucket", "side", "deals", "total", "conversion", "notional"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    rows = []
    for tenor in _tenor_sorted(df["tenor_bucket"].unique()):
        for side, is_buy in (("BUY", True), ("SELL", False)):
            g = df[(df["tenor_bucket"] == tenor) & (df["is_buy"] == is_buy)]
            total = int(g["is_actionable"].sum())
            if total == 0:
                continue
            deals = int((g["status"] == Status.DEAL.value).sum())
            rows.append(
                {
                    "tenor_bucket": tenor,
                    "side": side,
                    "deals": deals,
                    "total": total,
                    "conversion": deals / total,
                    "notional": float(g["notional"].sum()),
                }
            )
    return pd.DataFrame(rows, columns=columns)


def build_overview(records: Iterable[NDFRecord]) -> Dict[str, Any]:
    df = records_to_frame(records)
    return {
        "records": df,
        "kpis": compute_kpis(df),
        "result_by_currency": result_by_currency(df),
        "status_distribution": status_distribution(df),
        "rejection_reasons": rejection_reasons(df),
        "client_notional_distribution": client_notional_distribution(df),
    }


def build_analytics(records: Iterable[NDFRecord]) -> Dict[str, Any]:
    df = records_to_frame(records)
    return {
        "conversion_by_tenor": conversion_by_tenor(df),
        "side_volume_by_tenor": side_volume_by_tenor(df),
        "buy_share_heatmap": buy_share_heatmap(df),
        "conversion_bubbles": conversion_bubbles(df),
    }

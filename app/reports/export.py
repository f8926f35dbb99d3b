from __future__ import annotations

import io
import zipfile
from typing import Any, Dict

import pandas as pd
from openpyxl.chart import BarChart, PieChart, Reference
from openpyxl.chart.label import DataLabelList

# (file/sheet base name, results key)
_TABLES = [
    ("Records", "records"),
    ("KPIs", "kpis"),
    ("ResultByCurrency", "result_by_currency"),
    ("StatusDistribution", "status_distribution"),
    ("RejectionReasons", "rejection_reasons"),
    ("ClientNotional", "client_notional_distribution"),
    ("ConversionByTenor", "conversion_by_tenor"),
    ("SideVolumeByTenor", "side_volume_by_tenor"),
    ("BuyShareHeatmap", "buy_share_heatmap"),
    ("ConversionBubbles", "conversion_bubbles"),
]


def _as_frame(value: Any) -> pd.DataFrame:
    if isinstance(value, pd.DataFrame):
        return value
    # KPI block is a flat dict
    return pd.DataFrame([value])


def dataframes_to_csv_bytes(results: Dict[str, Any]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for _, key in _TABLES:
            if key not in results:
                continue
            zf.writestr(f"{key}.csv", _as_frame(results[key]).to_csv(index=False))
    return buf.getvalue()


def dataframes_to_excel_bytes(results: Dict[str, Any]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, key in _TABLES:
            if key not in results:
                continue
            _as_frame(results[key]).to_excel(writer, index=False, sheet_name=name)

        workbook = writer.book
        if "result_by_currency" in results:
            _add_currency_chart(workbook, results["result_by_currency"])
        if "status_distribution" in results:
            _add_status_chart(workbook, results["status_distribution"])
        if "side_volume_by_tenor" in results:
            _add_side_volume_chart(workbook, results["side_volume_by_tenor"])

    return buf.getvalue()


def _add_currency_chart(workbook, by_ccy: pd.DataFrame):
    """Bar chart of DEAL result per currency (thousands)"""
    if by_ccy.empty:
        return

    ws = workbook["ResultByCurrency"]
    num_rows = len(by_ccy)

    chart = BarChart()
    chart.type = "col"
    chart.style = 10
    chart.title = "Resultado por Moeda (mil)"
    chart.y_axis.title = "Resultado (BRL mil)"
    chart.x_axis.title = "Moeda"

    # currency in col A, value in col B
    data = Reference(ws, min_col=2, min_row=1, max_row=num_rows + 1)
    cats = Reference(ws, min_col=1, min_row=2, max_row=num_rows + 1)
    chart.add_data(data, titles_from_data=True)
    chart.set_categories(cats)

    ws.add_chart(chart, "D2")


def _add_status_chart(workbook, status_df: pd.DataFrame):
    if status_df.empty or int(status_df["count"].sum()) == 0:
        return

    ws = workbook["StatusDistribution"]
    num_rows = len(status_df)

    pie = PieChart()
    pie.title = "Status"
    labels = Reference(ws, min_col=1, min_row=2, max_row=num_rows + 1)
    data = Reference(ws, min_col=2, min_row=1, max_row=num_rows + 1)
    pie.add_data(data, titles_from_data=True)
    pie.set_categories(labels)

    pie.dataLabels = DataLabelList()
    pie.dataLabels.showCatName = True
    pie.dataLabels.showVal = True

    ws.add_chart(pie, "D2")


def _add_side_volume_chart(workbook, volume_df: pd.DataFrame):
    """Buy vs sell notional per tenor bucket"""
    if volume_df.empty:
        return

    ws = workbook["SideVolumeByTenor"]
    num_rows = len(volume_df)

    chart = BarChart()
    chart.type = "bar"
    chart.grouping = "stacked"
    chart.overlap = 100
    chart.style = 11
    chart.title = "Volume por Prazo e Side"
    chart.x_axis.title = "Prazo"
    chart.y_axis.title = "Notional"

    # tenor in col A, buy in col B, sell in col C
    data = Reference(ws, min_col=2, min_row=1, max_row=num_rows + 1, max_col=3)
    cats = Reference(ws, min_col=1, min_row=2, max_row=num_rows + 1)
    chart.add_data(data, titles_from_data=True)
    chart.set_categories(cats)

    ws.add_chart(chart, "E2")

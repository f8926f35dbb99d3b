from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from datetime import datetime
from typing import Any, Dict, List, Tuple
import io
import json
import logging

import pandas as pd

from .config import settings
from .core.engine import build_analytics, build_overview
from .core.records import NDFRecord
from .core.store import RecordStore
from .parsing.mapping import FIELD_DEFINITIONS, OPTIONAL_FIELDS, mapping_from_labels, validate_mapping
from .parsing.reader import CSVIngestionError, detect_columns, parse_csv, parse_csv_with_mapping
from .reports.export import dataframes_to_csv_bytes, dataframes_to_excel_bytes
from .reports.formatters import format_datetime, format_thousands, kpi_display, period_display


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
_log = logging.getLogger(__name__)

app = FastAPI(title="NDF Insight", version="1.0.0")
app.state.store = RecordStore()


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def _error(errors: List[str], status_code: int = 400, warnings: List[str] = None) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "validations": {"errors": errors, "warnings": warnings or []}},
        status_code=status_code,
    )


async def _read_upload(file: UploadFile) -> bytes:
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a .csv file")
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=400, detail=f"File exceeds {settings.MAX_UPLOAD_MB:g}MB")
    return content


def _frame_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    # NaN is not valid JSON
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def _overview_for_ui(records: Tuple[NDFRecord, ...]) -> Dict[str, Any]:
    results = build_overview(records)
    by_currency = _frame_records(results["result_by_currency"])
    for row in by_currency:
        # values are already in thousands
        row["display"] = format_thousands(row["value"] * 1000)
    return {
        "kpis": results["kpis"],
        "kpis_display": kpi_display(results["kpis"]),
        "period": period_display(r.rfq_timestamp for r in records),
        "result_by_currency": by_currency,
        "status_distribution": _frame_records(results["status_distribution"]),
        "rejection_reasons": _frame_records(results["rejection_reasons"]),
        "client_notional_distribution": _frame_records(results["client_notional_distribution"]),
    }


@app.get("/")
def index(store: RecordStore = Depends(get_store)):
    loaded_at = store.loaded_at
    return {
        "service": app.title,
        "version": app.version,
        "records": len(store),
        "source": store.source,
        "loaded_at": format_datetime(datetime.fromtimestamp(loaded_at)) if loaded_at is not None else None,
    }


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get("/api/fields")
def fields():
    return [
        {"key": f.key.value, "label": f.label, "description": f.description, "required": f.required}
        for f in FIELD_DEFINITIONS
    ]


@app.post("/api/upload")
async def upload(file: UploadFile = File(...), store: RecordStore = Depends(get_store)):
    try:
        content = await _read_upload(file)
        try:
            records = parse_csv(io.BytesIO(content))
        except CSVIngestionError as e:
            _log.warning("Upload of %s rejected: %s", file.filename, e)
            return _error([str(e)])
        store.replace(records, source=file.filename)
        return {"ok": True, "count": len(records), "source": file.filename}
    except HTTPException:
        raise
    except Exception as e:
        _log.exception("Unexpected failure importing %s", file.filename)
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)


@app.post("/api/columns")
async def columns(file: UploadFile = File(...)):
    content = await _read_upload(file)
    try:
        detection = detect_columns(io.BytesIO(content))
    except CSVIngestionError as e:
        _log.warning("Column detection for %s failed: %s", file.filename, e)
        return _error([str(e)])
    report = validate_mapping(detection.suggested)
    unmapped = [f.value for f in OPTIONAL_FIELDS if f not in detection.suggested]
    return {"ok": True, **detection.to_dict(), "unmapped_optional": unmapped, "validations": report.__dict__}


@app.post("/api/import")
async def import_mapped(
    file: UploadFile = File(...),
    mapping: str = Form(...),
    store: RecordStore = Depends(get_store),
):
    try:
        raw_mapping = json.loads(mapping)
    except json.JSONDecodeError as e:
        return _error([f"Invalid mapping JSON: {e}"])
    if not isinstance(raw_mapping, dict):
        return _error(["Mapping must be a JSON object of field -> column"])

    colmap = mapping_from_labels(raw_mapping)
    report = validate_mapping(colmap)
    if not report.ok:
        return _error(report.errors, warnings=report.warnings)

    content = await _read_upload(file)
    try:
        records = parse_csv_with_mapping(io.BytesIO(content), colmap)
    except CSVIngestionError as e:
        _log.warning("Mapped import of %s rejected: %s", file.filename, e)
        return _error([str(e)])
    store.replace(records, source=file.filename)
    return {"ok": True, "count": len(records), "source": file.filename, "validations": report.__dict__}


@app.get("/api/records")
def records(store: RecordStore = Depends(get_store)):
    return [r.to_dict() for r in store.records]


@app.delete("/api/records")
def clear_records(store: RecordStore = Depends(get_store)):
    store.clear()
    return {"ok": True}


@app.get("/api/kpis")
def kpis(store: RecordStore = Depends(get_store)):
    results = build_overview(store.records)
    return {"kpis": results["kpis"], "display": kpi_display(results["kpis"])}


@app.get("/api/overview")
def overview(store: RecordStore = Depends(get_store)):
    return _overview_for_ui(store.records)


@app.get("/api/analytics")
def analytics(store: RecordStore = Depends(get_store)):
    results = build_analytics(store.records)
    return {k: _frame_records(v) for k, v in results.items()}


@app.get("/api/filters/toggle")
def filters_state(store: RecordStore = Depends(get_store)):
    return {"show_filters": store.show_filters}


@app.post("/api/filters/toggle")
def filters_toggle(store: RecordStore = Depends(get_store)):
    return {"show_filters": store.toggle_filters()}


def _all_results(store: RecordStore) -> Dict[str, Any]:
    if not len(store):
        raise HTTPException(status_code=404, detail="No records loaded")
    snapshot = store.records
    return {**build_overview(snapshot), **build_analytics(snapshot)}


@app.get("/download/csv")
def download_csv(store: RecordStore = Depends(get_store)):
    bio = io.BytesIO(dataframes_to_csv_bytes(_all_results(store)))
    headers = {"Content-Disposition": "attachment; filename=ndf_reports.zip"}
    return StreamingResponse(bio, media_type="application/zip", headers=headers)


@app.get("/download/excel")
def download_excel(store: RecordStore = Depends(get_store)):
    bio = io.BytesIO(dataframes_to_excel_bytes(_all_results(store)))
    headers = {"Content-Disposition": "attachment; filename=ndf_reports.xlsx"}
    return StreamingResponse(bio, media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", headers=headers)


@app.get("/sample/template.csv")
def sample_template():
    header = [f.label for f in FIELD_DEFINITIONS]
    rows = [
        ["2024-01-15 10:30:00", "2024-04-15", "DEAL", "1.000.000,00", "COMPRA", "Empresa A", "USD", "USD/BRL",
         "4,9500", "4,9500", "5,25", "5,40", "10,50", "10,65", "5,0100", "5,0250", "12.345.678/0001-90",
         "NDF", "e-Sales", "COMPRA", ""],
        ["2024-01-15 11:00:00", "2024-02-15", "REJECTED", "250.000,00", "VENDA", "Empresa B", "EUR", "EUR/USD",
         "1,0900", "4,9500", "3,10", "3,00", "10,50", "10,40", "1,0950", "1,0940", "98.765.432/0001-10",
         "NDF", "e-Sales", "VENDA", "Limite excedido"],
    ]
    bio = io.BytesIO()
    pd.DataFrame(rows, columns=header).to_csv(bio, index=False, encoding="utf-8")
    bio.seek(0)
    headers = {"Content-Disposition": "attachment; filename=ndf_template.csv"}
    return StreamingResponse(bio, media_type="text/csv", headers=headers)

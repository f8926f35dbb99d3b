from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from app.config import settings
from app.core.records import NDFRecord

from .mapping import ColumnMapping, mapping_to_labels, suggest_mapping
from .normalizer import normalize_row, normalize_row_with_mapping

_log = logging.getLogger(__name__)

RawRow = Dict[str, str]


class CSVIngestionError(ValueError):
    """The uploaded file could not be read as delimited text."""


@dataclass
class ColumnDetection:
    headers: List[str]
    preview: List[RawRow]
    total_rows: int
    suggested: ColumnMapping

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": self.headers,
            "preview": self.preview,
            "total_rows": self.total_rows,
            "suggested_mapping": mapping_to_labels(self.suggested),
        }


def _read_bytes(fobj: Any, encoding: str) -> bytes:
    if hasattr(fobj, "read"):
        data = fobj.read()
    else:
        with open(fobj, "rb") as fh:
            data = fh.read()
    if isinstance(data, str):
        data = data.encode(encoding)
    return data


def _read_frame(fobj: Any, encoding: Optional[str] = None) -> pd.DataFrame:
    encoding = encoding or settings.CSV_ENCODING
    data = _read_bytes(fobj, encoding)
    options = dict(sep=",", dtype=str, keep_default_na=False, skip_blank_lines=True, encoding=encoding)
    try:
        n_headers = len(pd.read_csv(io.BytesIO(data), nrows=0, **options).columns)
        # index_col=False: a trailing delimiter must not turn the first column
        # into the index. usecols: cells past the header are dropped instead
        # of failing the whole file.
        df = pd.read_csv(io.BytesIO(data), index_col=False, usecols=list(range(n_headers)), **options)
    except ValueError as e:  # ParserError, EmptyDataError and UnicodeDecodeError included
        raise CSVIngestionError(f"Could not parse CSV file: {e}") from e

    df.columns = [str(c) for c in df.columns]
    # Short rows leave NaN behind even with keep_default_na=False
    return df.fillna("")


def read_rows(fobj: Any, encoding: Optional[str] = None) -> Tuple[List[str], List[RawRow]]:
    """Read a CSV upload into its header list and raw text rows (file order)."""
    df = _read_frame(fobj, encoding)
    return list(df.columns), df.to_dict(orient="records")


def parse_csv(fobj: Any, home_currency: Optional[str] = None) -> List[NDFRecord]:
    """Ingest a CSV in the fixed export layout."""
    _, rows = read_rows(fobj)
    records = [normalize_row(r, home_currency) for r in rows]
    _log.info("Imported %d NDF records (fixed layout)", len(records))
    return records


def parse_csv_with_mapping(fobj: Any, mapping: ColumnMapping, home_currency: Optional[str] = None) -> List[NDFRecord]:
    """Ingest a CSV with arbitrary headers through a confirmed column mapping."""
    _, rows = read_rows(fobj)
    records = [normalize_row_with_mapping(r, mapping, home_currency) for r in rows]
    _log.info("Imported %d NDF records (%d mapped fields)", len(records), len(mapping))
    return records


def detect_columns(fobj: Any, preview: Optional[int] = None) -> ColumnDetection:
    """Headers, a few sample rows and a suggested mapping for the mapping step."""
    headers, rows = read_rows(fobj)
    n = settings.PREVIEW_ROWS if preview is None else preview
    return ColumnDetection(
        headers=headers,
        preview=rows[:n],
        total_rows=len(rows),
        suggested=suggest_mapping(headers),
    )

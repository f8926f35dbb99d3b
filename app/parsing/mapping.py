from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional


class CanonicalField(str, Enum):
    RFQ_TIMESTAMP = "rfq_timestamp"
    MATURITY_DATE = "maturity_date"
    STATUS = "status"
    NOTIONAL = "notional"
    SIDE = "side"
    COUNTERPARTY = "counterparty"
    CURRENCY = "currency"
    PARITY = "parity"
    SPOT_COST = "spot_cost"
    SPOT_FX = "spot_fx"
    YIELD_CCY = "yield_ccy"
    YIELD_CLIENT = "yield_client"
    YIELD_BRL_COST = "yield_brl_cost"
    YIELD_BRL_CLIENT = "yield_brl_client"
    FWD = "fwd"
    FWD_CLIENT = "fwd_client"
    CNPJ = "cnpj"
    PRODUCT = "product"
    RFQ_CHANNEL = "rfq_channel"
    SIDE_BLOTTER = "side_blotter"
    REJECTED_MESSAGE = "rejected_message"


@dataclass(frozen=True)
class FieldDefinition:
    key: CanonicalField
    label: str
    description: str
    required: bool = False


# Canonical field -> label shown in the mapping step; labels double as the
# exact headers of the fixed export layout.
FIELD_DEFINITIONS: List[FieldDefinition] = [
    FieldDefinition(CanonicalField.RFQ_TIMESTAMP, "RFQ Timestamp", "Data e hora da cotação (YYYY-MM-DD HH:MM:SS)", True),
    FieldDefinition(CanonicalField.MATURITY_DATE, "Maturity Date", "Data de vencimento (YYYY-MM-DD)", True),
    FieldDefinition(CanonicalField.STATUS, "Status", "Status da operação (DEAL, NOTH.DONE, REJECTED, etc.)", True),
    FieldDefinition(CanonicalField.NOTIONAL, "Notional", "Valor nocional da operação", True),
    FieldDefinition(CanonicalField.SIDE, "Side", "Lado da operação (Compra/Venda ou BUY/SELL)", True),
    FieldDefinition(CanonicalField.COUNTERPARTY, "Counterparty", "Nome da contraparte"),
    FieldDefinition(CanonicalField.CURRENCY, "Currency", "Moeda da operação (USD, EUR, etc.)"),
    FieldDefinition(CanonicalField.PARITY, "Parity", "Paridade (ex: USD/BRL)"),
    FieldDefinition(CanonicalField.SPOT_COST, "Spot Cost (Sett. Rate)", "Taxa spot de custo (liquidação)"),
    FieldDefinition(CanonicalField.SPOT_FX, "Spot FX", "Taxa de câmbio spot"),
    FieldDefinition(CanonicalField.YIELD_CCY, "Yield (CCY)", "Yield em moeda estrangeira"),
    FieldDefinition(CanonicalField.YIELD_CLIENT, "Yield (Client)", "Yield do cliente"),
    FieldDefinition(CanonicalField.YIELD_BRL_COST, "Yield (BRL) cost rate", "Yield em BRL (custo)"),
    FieldDefinition(CanonicalField.YIELD_BRL_CLIENT, "Yield (BRL) client rate", "Yield em BRL (cliente)"),
    FieldDefinition(CanonicalField.FWD, "FWD", "Taxa forward (custo)"),
    FieldDefinition(CanonicalField.FWD_CLIENT, "FWD-Client", "Taxa forward (cliente)"),
    FieldDefinition(CanonicalField.CNPJ, "CNPJ", "CNPJ da contraparte"),
    FieldDefinition(CanonicalField.PRODUCT, "Product", "Produto"),
    FieldDefinition(CanonicalField.RFQ_CHANNEL, "rfq_channel", "Canal da cotação"),
    FieldDefinition(CanonicalField.SIDE_BLOTTER, "Side (Blotter)", "Lado registrado no blotter"),
    FieldDefinition(CanonicalField.REJECTED_MESSAGE, "Rejected message", "Motivo da rejeição"),
]

REQUIRED_FIELDS: List[CanonicalField] = [f.key for f in FIELD_DEFINITIONS if f.required]
OPTIONAL_FIELDS: List[CanonicalField] = [f.key for f in FIELD_DEFINITIONS if not f.required]

ColumnMapping = Dict[CanonicalField, str]

# Fixed export layout: every canonical field read from its exact header
DEFAULT_MAPPING: ColumnMapping = {f.key: f.label for f in FIELD_DEFINITIONS}


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def suggest_mapping(headers: Iterable[str]) -> ColumnMapping:
    """Propose a mapping by case-insensitive exact match of labels to headers."""
    lower_cols: Dict[str, str] = {}
    for col in headers:
        lower_cols.setdefault(str(col).strip().lower(), col)
    suggested: ColumnMapping = {}
    for definition in FIELD_DEFINITIONS:
        match = lower_cols.get(definition.label.lower())
        if match is not None:
            suggested[definition.key] = match
    return suggested


def mapping_from_labels(raw: Mapping[str, Optional[str]]) -> ColumnMapping:
    """Build a mapping from a ``{"field_name": "CSV header"}`` payload.

    Unknown field names and empty or ``"none"`` selections are dropped.
    """
    known = {f.value: f for f in CanonicalField}
    out: ColumnMapping = {}
    for name, header in raw.items():
        key = known.get(str(name))
        if key is None or header is None:
            continue
        header = str(header)
        if header.strip() == "" or header == "none":
            continue
        out[key] = header
    return out


def mapping_to_labels(mapping: ColumnMapping) -> Dict[str, str]:
    return {k.value: v for k, v in mapping.items()}


def validate_mapping(mapping: ColumnMapping) -> ValidationReport:
    report = ValidationReport()
    labels = {f.key: f.label for f in FIELD_DEFINITIONS}
    for req in REQUIRED_FIELDS:
        if not mapping.get(req):
            report.errors.append(f"Missing required field mapping: {labels[req]}")

    used = Counter(h for h in mapping.values() if h)
    for header, count in used.items():
        if count > 1:
            fields = ", ".join(labels[k] for k, v in mapping.items() if v == header)
            report.warnings.append(f"Column '{header}' is mapped to several fields: {fields}")
    return report


def resolve_fields(row: Mapping[str, Optional[str]], mapping: ColumnMapping) -> Dict[CanonicalField, str]:
    """One stripped text value per canonical field; blank when unmapped or absent."""
    resolved: Dict[CanonicalField, str] = {}
    for canon in CanonicalField:
        header = mapping.get(canon)
        value = row.get(header) if header else None
        resolved[canon] = str(value).strip() if value is not None else ""
    return resolved
